"""
Saved listing repository: per-user bookmarks.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, desc
from sublets.repositories.base import BaseRepository
from sublets.models.saved_listing import SavedListing
from typing import Optional, List, Iterable, Set
import uuid
import logging

logger = logging.getLogger(__name__)


class SavedListingRepository(BaseRepository[SavedListing]):
    """Repository for (user, listing) bookmark rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(SavedListing, db)

    async def get_saved(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> Optional[SavedListing]:
        try:
            result = await self.db.execute(
                select(SavedListing).where(
                    SavedListing.user_id == user_id,
                    SavedListing.listing_id == listing_id,
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get saved listing {listing_id} for user {user_id}: {e}")
            raise

    async def get_saved_ids(self, user_id: uuid.UUID, listing_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        """
        Which of listing_ids the user has saved.

        One query for the whole batch, used to annotate search results.
        """
        ids = list(listing_ids)
        if not ids:
            return set()
        try:
            result = await self.db.execute(
                select(SavedListing.listing_id).where(
                    SavedListing.user_id == user_id,
                    SavedListing.listing_id.in_(ids),
                )
            )
            saved = set(result.scalars().all())
            logger.debug(f"User {user_id} has saved {len(saved)} of {len(ids)} listings")
            return saved
        except Exception as e:
            logger.error(f"Failed to look up saved listings for user {user_id}: {e}")
            raise

    async def get_user_saved_listings(self, user_id: uuid.UUID) -> List[SavedListing]:
        """Bookmarks of a user, most recently saved first."""
        try:
            result = await self.db.execute(
                select(SavedListing)
                .where(SavedListing.user_id == user_id)
                .order_by(desc(SavedListing.created_at), desc(SavedListing.id))
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list saved listings for user {user_id}: {e}")
            raise

    async def save(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> SavedListing:
        saved = await self.create({"user_id": user_id, "listing_id": listing_id})
        logger.info(f"User {user_id} saved listing {listing_id}")
        return saved

    async def unsave(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> bool:
        """Remove a bookmark. Returns False if it did not exist."""
        try:
            result = await self.db.execute(
                delete(SavedListing).where(
                    SavedListing.user_id == user_id,
                    SavedListing.listing_id == listing_id,
                )
            )
            await self.db.commit()
            removed = result.rowcount > 0
            if removed:
                logger.info(f"User {user_id} unsaved listing {listing_id}")
            return removed
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to unsave listing {listing_id} for user {user_id}: {e}")
            raise
