"""
FastAPI dependency injection utilities for authentication, services and database sessions.
Provides reusable dependencies for route protection and user extraction.
"""

from functools import lru_cache
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.database import get_db
from sublets.models.user import User
from sublets.services.auth import AuthService
from sublets.services.listing import ListingService
from sublets.services.saved_listing import SavedListingService
from sublets.services.message import MessageService
from sublets.services.report import ReportService
from sublets.services.admin import AdminService
from sublets.services.email import EmailService
from sublets.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    EmailNotVerifiedError,
    InsufficientPermissionsError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_email_service() -> EmailService:
    """Shared email service using the configured delivery backend."""
    return EmailService()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> AuthService:
    return AuthService(db, email_service)


async def get_listing_service(db: AsyncSession = Depends(get_db)) -> ListingService:
    return ListingService(db)


async def get_saved_listing_service(db: AsyncSession = Depends(get_db)) -> SavedListingService:
    return SavedListingService(db)


async def get_message_service(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


async def get_report_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> ReportService:
    return ReportService(db, email_service)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError):
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_verified_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Raises:
        EmailNotVerifiedError: If the user has not confirmed their email
    """
    if not current_user.is_verified:
        raise EmailNotVerifiedError()
    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsError("access admin resources")
    return current_user


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a valid token is provided, otherwise None.

    Public endpoints use this to personalize results; a bad or expired
    token is treated like no token.
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        return None
