"""
API route handlers for the BadgerSublets API.
"""

from .auth import router as auth_router
from .users import router as users_router
from .listings import router as listings_router
from .saved_listings import router as saved_listings_router
from .messages import router as messages_router
from .reports import router as reports_router
from .admin import router as admin_router
from .email import router as email_router

__all__ = [
    "auth_router",
    "users_router",
    "listings_router",
    "saved_listings_router",
    "messages_router",
    "reports_router",
    "admin_router",
    "email_router"
]
