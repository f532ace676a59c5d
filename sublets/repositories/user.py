"""
User repository for authentication and account management operations.
Provides secure user operations with password handling and admin lookups.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from sublets.repositories.base import BaseRepository
from sublets.models.user import User, UserRole
from sublets.models.listing import Listing
from sublets.models.message import Message
from sublets.models.report import Report
from sublets.utils.auth import hash_password
from sublets.utils.formatting import contains_pattern
from typing import Optional, List, Dict, Any, Iterable, Tuple
from datetime import datetime
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Handles registration, credential checks, account tokens and admin queries.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password, name.
                       Optional: role, email_verified, verification_token, token_expiry, image

        Raises:
            ValueError: If the email is invalid, taken, or the password too short
        """
        try:
            data = dict(user_data)
            email = User.validate_email_format(data.pop("email"))
            password = data.pop("password", None)

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            create_data = {
                **data,
                "email": email,
                "hashed_password": hash_password(password),
                "role": data.get("role", UserRole.USER),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)."""
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {normalized_email}")
            else:
                logger.debug(f"User with email {normalized_email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def get_by_token(self, token: str) -> Optional[User]:
        """Find the user holding a verification or reset token."""
        if not token:
            return None
        return await self.get_by_field("verification_token", token)

    async def get_by_ids(self, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, User]:
        """Load several users in one query, keyed by id."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        try:
            result = await self.db.execute(select(User).where(User.id.in_(ids)))
            return {user.id: user for user in result.scalars().all()}
        except Exception as e:
            logger.error(f"Failed to load users {ids}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if the credentials match, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            logger.info(f"User authenticated successfully: {email}")
            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise

    async def update_password(self, user_id: uuid.UUID, new_password: str) -> Optional[User]:
        """
        Update user's password and clear any outstanding account token.

        Raises:
            ValueError: If password validation fails
        """
        try:
            updated_user = await self.update(user_id, {
                "hashed_password": hash_password(new_password),
                "verification_token": None,
                "token_expiry": None,
            })

            if updated_user:
                logger.info(f"Password updated for user: {updated_user.email}")

            return updated_user
        except ValueError as e:
            logger.error(f"Password validation failed for user {user_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to update password for user {user_id}: {e}")
            raise

    async def set_account_token(self, user_id: uuid.UUID, token: str, expires_at: datetime) -> Optional[User]:
        """Store a one-time token replacing any previous one."""
        return await self.update(user_id, {"verification_token": token, "token_expiry": expires_at})

    async def mark_email_verified(self, user_id: uuid.UUID, verified_at: datetime) -> Optional[User]:
        """Record the verification time and consume the token."""
        try:
            updated_user = await self.update(user_id, {
                "email_verified": verified_at,
                "verification_token": None,
                "token_expiry": None,
            })
            if updated_user:
                logger.info(f"Email verified for user: {updated_user.email}")
            return updated_user
        except Exception as e:
            logger.error(f"Failed to mark user {user_id} verified: {e}")
            raise

    async def update_user_role(self, user_id: uuid.UUID, new_role: UserRole) -> Optional[User]:
        try:
            updated_user = await self.update(user_id, {"role": new_role})

            if updated_user:
                logger.info(f"User {updated_user.email} role updated to {new_role.value}")

            return updated_user
        except Exception as e:
            logger.error(f"Failed to update user role {user_id}: {e}")
            raise

    async def check_email_availability(self, email: str, exclude_user_id: Optional[uuid.UUID] = None) -> bool:
        """
        Check if email address is free for registration or a profile update.

        Args:
            email: Email address to check
            exclude_user_id: User whose own address should not count as taken
        """
        try:
            query = select(func.count(User.id)).where(User.email == email.lower().strip())

            if exclude_user_id:
                query = query.where(User.id != exclude_user_id)

            result = await self.db.execute(query)
            is_available = (result.scalar() or 0) == 0
            logger.debug(f"Email {email} availability: {is_available}")
            return is_available
        except Exception as e:
            logger.error(f"Failed to check email availability: {e}")
            raise

    async def search_users(
        self,
        search_term: Optional[str] = None,
        verified: Optional[bool] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Tuple[User, int]]:
        """
        Search users by name or email with an optional verification filter.

        Returns:
            (user, listing count) pairs, newest account first
        """
        try:
            conditions = []
            if search_term:
                pattern = contains_pattern(search_term.strip())
                conditions.append(or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                ))
            if verified is True:
                conditions.append(User.email_verified.is_not(None))
            elif verified is False:
                conditions.append(User.email_verified.is_(None))

            listing_counts = (
                select(Listing.owner_id, func.count(Listing.id).label("listing_count"))
                .group_by(Listing.owner_id)
                .subquery()
            )

            query = (
                select(User, func.coalesce(listing_counts.c.listing_count, 0))
                .outerjoin(listing_counts, listing_counts.c.owner_id == User.id)
                .order_by(desc(User.created_at), desc(User.id))
            )
            if conditions:
                query = query.where(and_(*conditions))
            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)

            result = await self.db.execute(query)
            rows = [(row[0], int(row[1])) for row in result.all()]

            logger.debug(f"User search for '{search_term}' returned {len(rows)} results")
            return rows
        except Exception as e:
            logger.error(f"Failed to search users with term '{search_term}': {e}")
            raise

    async def count_verified(self) -> int:
        try:
            result = await self.db.execute(
                select(func.count(User.id)).where(User.email_verified.is_not(None))
            )
            return result.scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count verified users: {e}")
            raise

    async def get_activity_counts(self, user_id: uuid.UUID) -> Dict[str, int]:
        """Sent/received message and report counts for the admin user view."""
        try:
            sent = await self.db.execute(
                select(func.count(Message.id)).where(Message.sender_id == user_id)
            )
            received = await self.db.execute(
                select(func.count(Message.id)).where(Message.receiver_id == user_id)
            )
            reports = await self.db.execute(
                select(func.count(Report.id)).where(Report.reporter_id == user_id)
            )
            return {
                "sent_messages": sent.scalar() or 0,
                "received_messages": received.scalar() or 0,
                "reports": reports.scalar() or 0,
            }
        except Exception as e:
            logger.error(f"Failed to count activity for user {user_id}: {e}")
            raise
