"""
Listing repository for sublet offers with filtered search.
Provides the database side of the listing browse page, owner views and moderation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sublets.repositories.base import BaseRepository
from sublets.models.listing import Listing
from sublets.utils.filters import ListingFilters, ListingPredicateBuilder
from typing import Optional, List, Dict, Any, Iterable
import uuid
import logging

logger = logging.getLogger(__name__)


class ListingRepository(BaseRepository[Listing]):
    """
    Repository for listings.
    Owner and amenity rows are eager-loaded with every listing.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def create_listing(self, listing_data: Dict[str, Any], amenities: Iterable[str] = ()) -> Listing:
        """
        Create a listing together with its amenity rows.

        Args:
            listing_data: Column values, must include owner_id
            amenities: Amenity labels to attach
        """
        try:
            listing = Listing(**listing_data)
            listing.set_amenities(amenities)
            self.db.add(listing)
            await self.db.commit()

            created = await self.get_by_id(listing.id)
            logger.info(f"Created listing: {created.title} (ID: {created.id})")
            return created
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create listing: {e}")
            raise

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        update_data: Dict[str, Any],
        amenities: Optional[Iterable[str]] = None
    ) -> Optional[Listing]:
        """
        Partially update a listing. Amenities are replaced when given.

        Returns:
            Updated listing or None if not found
        """
        try:
            listing = await self.get_by_id(listing_id)
            if not listing:
                logger.debug(f"Listing with id {listing_id} not found for update")
                return None

            for field, value in update_data.items():
                if hasattr(Listing, field) and field not in ("id", "owner_id", "created_at"):
                    setattr(listing, field, value)

            if amenities is not None:
                listing.set_amenities(amenities)

            await self.db.commit()

            updated = await self.get_by_id(listing_id)
            logger.info(f"Updated listing: {listing_id}")
            return updated
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update listing {listing_id}: {e}")
            raise

    async def search_listings(
        self,
        filters: ListingFilters,
        caller_id: Optional[uuid.UUID] = None
    ) -> List[Listing]:
        """
        Run a filtered listing query.

        Ordering is newest first with id as the tie-break, truncated to
        filters.limit when one is set.

        Args:
            filters: Normalized search filters
            caller_id: Authenticated caller, needed for the 'mine' scope
        """
        try:
            predicate = ListingPredicateBuilder(filters, caller_id).build()

            query = (
                select(Listing)
                .where(predicate)
                .order_by(desc(Listing.created_at), desc(Listing.id))
            )

            if filters.limit is not None:
                query = query.limit(filters.limit)

            result = await self.db.execute(query)
            listings = list(result.scalars().all())

            logger.debug(f"Listing search returned {len(listings)} results for filters {filters.to_dict()}")
            return listings
        except Exception as e:
            logger.error(f"Failed to search listings: {e}")
            raise

    async def get_listings_by_owner(self, owner_id: uuid.UUID) -> List[Listing]:
        """All listings of one owner regardless of visibility, newest first."""
        return await self.get_multi(limit=None, filters={"owner_id": owner_id})

    async def get_all_listings(self, skip: int = 0, limit: Optional[int] = None) -> List[Listing]:
        return await self.get_multi(skip=skip, limit=limit)

    async def count_active(self) -> int:
        """Listings that are published and not drafts."""
        return await self.count({"published": True, "is_draft": False})

