"""
Authentication service for signup, login, token management and account recovery.
Handles JWT token generation, email verification, password resets and profile changes.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.config import settings
from sublets.database import utcnow
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.repositories.message import MessageRepository
from sublets.models.user import User
from sublets.models.listing import Listing
from sublets.schemas.auth import SignupRequest
from sublets.schemas.user import ProfileUpdate
from sublets.services.email import EmailService
from sublets.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    generate_account_token,
    account_token_expiry,
)
from sublets.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InvalidAccountTokenError,
    EmailNotVerifiedError,
    EmailDeliveryError,
    UserNotFoundError,
    ValidationError,
    BadRequestError,
    DuplicateResourceError,
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent"


class AuthService:
    """
    Authentication service for user accounts.
    Owns the account lifecycle: signup, verification, login, refresh and recovery.
    """

    def __init__(self, db_session: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.email_service = email_service or EmailService()

    async def signup(self, signup_data: SignupRequest) -> User:
        """
        Register a new, unverified account and email a verification link.

        A failed verification email is logged but does not undo the signup.

        Raises:
            BadRequestError: If the email domain is not allowed
            DuplicateResourceError: If the email is already registered
        """
        try:
            email = signup_data.email.lower().strip()
            self._validate_email_domain(email)

            if not await self.user_repo.check_email_availability(email):
                raise DuplicateResourceError("User", email)

            token = generate_account_token()
            user = await self.user_repo.create_user({
                "email": email,
                "password": signup_data.password,
                "name": signup_data.name,
                "verification_token": token,
                "token_expiry": account_token_expiry(hours=settings.verification_token_expire_hours),
            })

            try:
                await self.email_service.send_verification_email(user.email, user.name, token)
            except EmailDeliveryError as e:
                logger.warning(f"Verification email to {user.email} failed: {e}")

            logger.info(f"User signed up: {user.email} (ID: {user.id})")
            return user

        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Signup failed for {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to create account: {str(e)}")

    async def verify_email(self, token: str) -> User:
        """
        Confirm an email address with the token from the verification email.

        Raises:
            InvalidAccountTokenError: If the token is unknown or expired
        """
        user = await self.user_repo.get_by_token(token)
        if not user or not user.has_valid_token(token):
            logger.warning("Email verification attempted with an invalid or expired token")
            raise InvalidAccountTokenError("Invalid or expired verification token")

        verified = await self.user_repo.mark_email_verified(user.id, utcnow())
        return verified

    async def resend_verification(self, email: str) -> None:
        """Issue a fresh verification token for an unverified account."""
        user = await self.user_repo.get_by_email(email)
        if not user or user.is_verified:
            return

        token = generate_account_token()
        await self.user_repo.set_account_token(
            user.id, token, account_token_expiry(hours=settings.verification_token_expire_hours)
        )
        try:
            await self.email_service.send_verification_email(user.email, user.name, token)
        except EmailDeliveryError as e:
            logger.warning(f"Verification email to {user.email} failed: {e}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            EmailNotVerifiedError: If the email address is not confirmed yet
        """
        try:
            if not email or not email.strip():
                raise ValidationError("Email is required")

            if not password:
                raise ValidationError("Password is required")

            user = await self.user_repo.authenticate_user(email, password)

            if not user:
                logger.warning(f"Failed authentication attempt for email: {email}")
                raise InvalidCredentialsError()

            if not user.is_verified:
                logger.info(f"Login blocked for unverified account: {email}")
                raise EmailNotVerifiedError("Please verify your email before logging in")

            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Create (access_token, refresh_token) for user."""
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role.value
        )

        refresh_token = create_refresh_token(
            user_id=user.id,
            email=user.email
        )

        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        logger.info(f"User logged in: {user.email}")
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid or its user is gone
            TokenExpiredError: If refresh token is expired
        """
        try:
            token_payload = verify_token(refresh_token, token_type="refresh")
            user = await self.user_repo.get_by_id(uuid.UUID(token_payload.user_id))

            if not user:
                raise InvalidTokenError("User no longer exists")

            return create_access_token(
                user_id=user.id,
                email=user.email,
                role=user.role.value
            )

        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e))

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            InvalidTokenError: If token is invalid or its user no longer exists
            TokenExpiredError: If token is expired
        """
        try:
            token_payload = verify_token(token, token_type="access")
            user = await self.user_repo.get_by_id(uuid.UUID(token_payload.user_id))

            if not user:
                raise InvalidTokenError("User no longer exists")

            return user

        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e))

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Get user by ID.

        Raises:
            UserNotFoundError: If user not found
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    async def forgot_password(self, email: str) -> str:
        """
        Start a password reset.

        The response is the same whether or not the account exists, so the
        endpoint cannot be used to probe for registered addresses.
        """
        user = await self.user_repo.get_by_email(email)
        if not user:
            logger.info(f"Password reset requested for unknown email: {email}")
            return FORGOT_PASSWORD_MESSAGE

        token = generate_account_token()
        await self.user_repo.set_account_token(
            user.id, token, account_token_expiry(minutes=settings.reset_token_expire_minutes)
        )

        try:
            await self.email_service.send_password_reset_email(user.email, user.name, token)
        except EmailDeliveryError as e:
            logger.warning(f"Password reset email to {user.email} failed: {e}")

        logger.info(f"Password reset issued for user: {user.id}")
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> User:
        """
        Complete a password reset.

        Raises:
            InvalidAccountTokenError: If the token is unknown or expired
            ValidationError: If the new password is too short
        """
        user = await self.user_repo.get_by_token(token)
        if not user or not user.has_valid_token(token):
            logger.warning("Password reset attempted with an invalid or expired token")
            raise InvalidAccountTokenError("Invalid or expired reset token")

        try:
            updated = await self.user_repo.update_password(user.id, new_password)
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Password reset completed for user: {user.id}")
        return updated

    async def change_password(self, current_user: User, current_password: str, new_password: str) -> User:
        """
        Change the caller's password after checking the current one.

        Raises:
            BadRequestError: If the current password is wrong
            ValidationError: If the new password is too short
        """
        if not current_user.verify_password(current_password):
            raise BadRequestError("Current password is incorrect")

        try:
            updated = await self.user_repo.update_password(current_user.id, new_password)
        except ValueError as e:
            raise ValidationError(str(e))

        if not updated:
            raise UserNotFoundError(str(current_user.id))

        logger.info(f"Password changed for user: {current_user.id}")
        return updated

    async def get_profile(self, current_user: User) -> Tuple[User, List[Listing], int]:
        """Caller, their listings in any state and their unread message count."""
        listings = await ListingRepository(self.db).get_listings_by_owner(current_user.id)
        unread = await MessageRepository(self.db).count_unread(current_user.id)
        return current_user, listings, unread

    async def update_profile(self, current_user: User, profile: ProfileUpdate) -> User:
        """
        Update the caller's name, email and avatar.

        Raises:
            ConflictError: If the email belongs to another account
        """
        try:
            email = profile.email.lower().strip()
            if not await self.user_repo.check_email_availability(email, exclude_user_id=current_user.id):
                raise DuplicateResourceError("User", email)

            update_data = {"name": profile.name, "email": email}
            if "image" in profile.model_fields_set:
                update_data["image"] = profile.image

            updated = await self.user_repo.update(current_user.id, update_data)
            if not updated:
                raise UserNotFoundError(str(current_user.id))

            logger.info(f"Profile updated for user: {current_user.id}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update profile for {current_user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

    async def delete_account(self, current_user: User) -> None:
        """Delete the caller's account along with everything they own."""
        deleted = await self.user_repo.delete(current_user.id)
        if not deleted:
            raise UserNotFoundError(str(current_user.id))
        logger.info(f"Account deleted: {current_user.id}")

    def _validate_email_domain(self, email: str) -> None:
        domain = settings.allowed_email_domain
        if domain and not email.endswith(f"@{domain}"):
            raise BadRequestError(f"Please use a valid @{domain} email address")
