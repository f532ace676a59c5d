"""
Admin service for the moderation dashboard and user management.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.repositories.report import ReportRepository
from sublets.models.user import User
from sublets.models.listing import Listing
from sublets.schemas.user import AdminUserUpdate
from sublets.utils.exceptions import (
    APIException,
    UserNotFoundError,
    BusinessRuleViolationError,
    BadRequestError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AdminService:
    """
    Operations reserved for admins.

    Admins cannot demote or delete their own account, so there is always
    at least the acting admin left.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.listing_repo = ListingRepository(db_session)
        self.report_repo = ReportRepository(db_session)

    async def get_stats(self) -> Dict[str, int]:
        return {
            "total_users": await self.user_repo.count(),
            "verified_users": await self.user_repo.count_verified(),
            "total_listings": await self.listing_repo.count(),
            "active_listings": await self.listing_repo.count_active(),
            "pending_reports": await self.report_repo.count_pending(),
        }

    async def list_users(
        self,
        search: Optional[str] = None,
        verified: Optional[bool] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Returns:
            (user rows with listing_count, total matching users)
        """
        rows = await self.user_repo.search_users(search, verified, skip=skip, limit=limit)
        total = len(await self.user_repo.search_users(search, verified)) if (skip or limit) else len(rows)
        users = [{**user.to_dict(), "listing_count": listing_count} for user, listing_count in rows]
        return users, total

    async def get_user_detail(self, user_id: uuid.UUID) -> Dict[str, Any]:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))

        listings = await self.listing_repo.get_listings_by_owner(user_id)
        counts = await self.user_repo.get_activity_counts(user_id)
        return {
            **user.to_dict(),
            "listings": [listing.to_dict() for listing in listings],
            **counts,
        }

    async def update_user(self, user_id: uuid.UUID, update: AdminUserUpdate, current_user: User) -> User:
        """
        Change a user's name or role.

        Raises:
            UserNotFoundError: If the user doesn't exist
            BusinessRuleViolationError: If an admin changes their own role
        """
        try:
            user = await self.user_repo.get_by_id(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))

            if update.role is not None and user_id == current_user.id and update.role != user.role:
                raise BusinessRuleViolationError("You cannot change your own role")

            update_data = update.model_dump(exclude_unset=True, exclude_none=True)
            if not update_data:
                return user

            updated = await self.user_repo.update(user_id, update_data)
            if not updated:
                raise UserNotFoundError(str(user_id))

            logger.info(f"Admin {current_user.email} updated user {user_id}: {sorted(update_data)}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise BadRequestError(f"Failed to update user: {str(e)}")

    async def delete_user(self, user_id: uuid.UUID, current_user: User) -> None:
        if user_id == current_user.id:
            raise BusinessRuleViolationError("You cannot delete your own account from the admin panel")

        deleted = await self.user_repo.delete(user_id)
        if not deleted:
            raise UserNotFoundError(str(user_id))
        logger.info(f"Admin {current_user.email} deleted user {user_id}")

    async def list_listings(self, skip: int = 0, limit: Optional[int] = None) -> List[Listing]:
        """Every listing regardless of state, newest first."""
        return await self.listing_repo.get_all_listings(skip=skip, limit=limit)
