"""
Saved listing service: bookmarking listings for later.
"""

from typing import List, Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.repositories.listing import ListingRepository
from sublets.models.saved_listing import SavedListing
from sublets.models.user import User
from sublets.utils.exceptions import (
    APIException,
    ListingNotFoundError,
    NotFoundError,
    ConflictError,
    BadRequestError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class SavedListingService:
    """Each user can save a listing at most once."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.saved_repo = SavedListingRepository(db_session)
        self.listing_repo = ListingRepository(db_session)

    async def get_saved_listings(self, current_user: User) -> List[Dict[str, Any]]:
        """The caller's saved listings, most recently saved first."""
        saved = await self.saved_repo.get_user_saved_listings(current_user.id)
        return [entry.listing.to_dict(is_saved=True) for entry in saved if entry.listing is not None]

    async def save_listing(self, listing_id: uuid.UUID, current_user: User) -> SavedListing:
        """
        Save a listing for the caller.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
            ConflictError: If it is already saved
        """
        try:
            if not await self.listing_repo.exists(listing_id):
                raise ListingNotFoundError(str(listing_id))

            if await self.saved_repo.get_saved(current_user.id, listing_id):
                raise ConflictError("Listing already saved")

            return await self.saved_repo.save(current_user.id, listing_id)

        except APIException:
            raise
        except IntegrityError:
            # Lost a race with a concurrent save of the same pair
            raise ConflictError("Listing already saved")
        except Exception as e:
            logger.error(f"Failed to save listing {listing_id} for {current_user.id}: {e}")
            raise BadRequestError(f"Failed to save listing: {str(e)}")

    async def unsave_listing(self, listing_id: uuid.UUID, current_user: User) -> None:
        """
        Raises:
            NotFoundError: If the listing was not saved
        """
        removed = await self.saved_repo.unsave(current_user.id, listing_id)
        if not removed:
            raise NotFoundError("Saved listing", str(listing_id))
