"""
Listing service for sublet offers.
Handles the filtered listing query, CRUD with ownership checks and publish validation.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.listing import ListingRepository
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.models.listing import Listing
from sublets.models.user import User
from sublets.schemas.listing import ListingCreate, ListingUpdate
from sublets.utils.filters import ListingFilters
from sublets.utils.formatting import as_utc
from sublets.utils.exceptions import (
    APIException,
    ListingNotFoundError,
    EmailNotVerifiedError,
    BadRequestError,
    InsufficientPermissionsError
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Columns that must hold a value before a listing can go live
REQUIRED_FOR_PUBLISH = (
    "title",
    "description",
    "price",
    "address",
    "bedrooms",
    "bathrooms",
    "available_from",
    "available_until",
)


class ListingService:
    """
    Listing service with visibility, ownership and publish rules.

    A listing is visible to everyone only while published and not a draft;
    owners and admins can always see and manage it.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.saved_repo = SavedListingRepository(db_session)

    async def search_listings(
        self,
        filters: ListingFilters,
        current_user: Optional[User] = None
    ) -> List[Dict[str, Any]]:
        """
        Run the listing query for a caller.

        The 'mine' scope needs an authenticated caller; anonymous callers
        always get the public scope. Each result carries is_saved, which is
        always false for anonymous callers.

        Returns:
            Serialized listings, newest first
        """
        try:
            caller_id = current_user.id if current_user else None
            listings = await self.listing_repo.search_listings(filters, caller_id)
            return await self._serialize_with_saved(listings, current_user)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Listing search failed for filters {filters.to_dict()}: {e}")
            raise

    async def get_listing(self, listing_id: uuid.UUID, current_user: Optional[User] = None) -> Dict[str, Any]:
        """
        Get one listing with its owner and is_saved flag.

        Hidden listings are reported as missing to everyone but the owner and admins.

        Raises:
            ListingNotFoundError: If the listing doesn't exist or is hidden from the caller
        """
        listing = await self.listing_repo.get_by_id(listing_id)

        if not listing or not self._can_view_listing(listing, current_user):
            raise ListingNotFoundError(str(listing_id))

        is_saved = False
        if current_user:
            is_saved = listing.id in await self.saved_repo.get_saved_ids(current_user.id, [listing.id])

        logger.debug(f"Retrieved listing: {listing_id}")
        return listing.to_dict(is_saved=is_saved)

    async def get_listing_model(self, listing_id: uuid.UUID) -> Listing:
        """Fetch a listing regardless of visibility."""
        listing = await self.listing_repo.get_by_id(listing_id)
        if not listing:
            raise ListingNotFoundError(str(listing_id))
        return listing

    async def create_listing(self, listing_data: ListingCreate, current_user: User) -> Listing:
        """
        Create a listing owned by the caller.

        Raises:
            EmailNotVerifiedError: If the caller has not verified their email
        """
        try:
            if not current_user.is_verified:
                raise EmailNotVerifiedError("Please verify your email before posting a listing")

            create_data = listing_data.model_dump(exclude={"amenities"})
            create_data["owner_id"] = current_user.id

            listing = await self.listing_repo.create_listing(create_data, amenities=listing_data.amenities)

            logger.info(f"Listing created by user {current_user.email}: {listing.title} (ID: {listing.id})")
            return listing

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create listing for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create listing: {str(e)}")

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        listing_data: ListingUpdate,
        current_user: User
    ) -> Listing:
        """
        Partially update a listing as its owner or an admin.

        Fields set to null are left unchanged unless the update would publish
        the listing, in which case a missing required field is an error.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
            InsufficientPermissionsError: If the caller is neither owner nor admin
            BadRequestError: If publishing with required fields missing
        """
        try:
            listing = await self.get_listing_model(listing_id)

            if not current_user.can_manage(listing.owner_id):
                raise InsufficientPermissionsError("update this listing")

            update_data = listing_data.model_dump(exclude_unset=True)
            amenities = update_data.pop("amenities", None)
            if "images" in update_data and update_data["images"] is None:
                update_data["images"] = []

            self._validate_publish_rules(listing, update_data)

            available_from = update_data.get("available_from") or listing.available_from
            available_until = update_data.get("available_until") or listing.available_until
            if as_utc(available_until) < as_utc(available_from):
                raise BadRequestError("available_until must not be before available_from")

            # Required columns cannot be cleared
            update_data = {k: v for k, v in update_data.items() if v is not None}

            updated = await self.listing_repo.update_listing(listing_id, update_data, amenities=amenities)
            if not updated:
                raise ListingNotFoundError(str(listing_id))

            logger.info(f"Listing updated by user {current_user.email}: {listing_id}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to update listing: {str(e)}")

    async def delete_listing(self, listing_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a listing as its owner or an admin.
        Saved entries, amenities and reports go with it; messages keep their text.
        """
        try:
            listing = await self.get_listing_model(listing_id)

            if not current_user.can_manage(listing.owner_id):
                raise InsufficientPermissionsError("delete this listing")

            deleted = await self.listing_repo.delete(listing_id)
            if not deleted:
                raise ListingNotFoundError(str(listing_id))

            logger.info(f"Listing deleted by user {current_user.email}: {listing_id}")

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to delete listing: {str(e)}")

    async def _serialize_with_saved(
        self,
        listings: List[Listing],
        current_user: Optional[User]
    ) -> List[Dict[str, Any]]:
        """Attach is_saved with one batched lookup of the caller's saved rows."""
        saved_ids = set()
        if current_user and listings:
            saved_ids = await self.saved_repo.get_saved_ids(current_user.id, [listing.id for listing in listings])
        return [listing.to_dict(is_saved=listing.id in saved_ids) for listing in listings]

    def _can_view_listing(self, listing: Listing, user: Optional[User]) -> bool:
        if listing.is_visible:
            return True
        if user is None:
            return False
        return user.can_manage(listing.owner_id)

    def _validate_publish_rules(self, listing: Listing, update_data: Dict[str, Any]) -> None:
        """Going live requires every required field to have a value."""
        published = update_data.get("published")
        is_draft = update_data.get("is_draft")
        published = listing.published if published is None else published
        is_draft = listing.is_draft if is_draft is None else is_draft

        if not published or is_draft:
            return

        missing = []
        for field in REQUIRED_FOR_PUBLISH:
            value = update_data[field] if field in update_data else getattr(listing, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)

        if missing:
            raise BadRequestError(f"Cannot publish listing, missing required fields: {', '.join(missing)}")
