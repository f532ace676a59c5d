"""
Service layer for business logic implementation.
Contains services for accounts, listings, messaging, moderation, email and error handling.
"""

from .auth import AuthService
from .listing import ListingService
from .saved_listing import SavedListingService
from .message import MessageService
from .report import ReportService
from .admin import AdminService
from .email import EmailService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "ListingService",
    "SavedListingService",
    "MessageService",
    "ReportService",
    "AdminService",
    "EmailService",
    "ErrorHandlerService"
]
