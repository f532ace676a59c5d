"""
Tests for the filtered listing query: visibility, filters, ordering and is_saved.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sublets.models.listing import Listing
from sublets.models.user import User
from sublets.repositories.listing import ListingRepository
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.services.listing import ListingService
from sublets.utils.filters import ListingFilters
from tests.conftest import ListingFactory, days_from_now


def titles(results):
    return [item["title"] for item in results]


class TestListingVisibility:
    """Which listings a caller may see."""

    @pytest.mark.asyncio
    async def test_public_scope_hides_drafts_and_unpublished(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Live listing here")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Draft listing here", is_draft=True)
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Hidden listing here", published=False)

        results = await listing_service.search_listings(ListingFilters.from_query())

        assert titles(results) == ["Live listing here"]

    @pytest.mark.asyncio
    async def test_mine_scope_returns_own_listings_in_any_state(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="My live listing")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="My draft listing", is_draft=True)
        await ListingFactory.create_listing(listing_repository, other_user.id, title="Someone else's listing")

        results = await listing_service.search_listings(ListingFilters.from_query(scope="mine"), test_user)

        assert set(titles(results)) == {"My live listing", "My draft listing"}

    @pytest.mark.asyncio
    async def test_mine_scope_for_anonymous_falls_back_to_public(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Public listing")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Private draft", is_draft=True)

        results = await listing_service.search_listings(ListingFilters.from_query(scope="mine"), None)

        assert titles(results) == ["Public listing"]

    @pytest.mark.asyncio
    async def test_empty_result_is_valid(self, listing_service: ListingService):
        results = await listing_service.search_listings(ListingFilters.from_query(search="nothing matches"))
        assert results == []


class TestListingFiltersApplied:
    """Content filters against real rows."""

    @pytest.mark.asyncio
    async def test_price_range(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Budget room", price=Decimal("500"))
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Mid range flat", price=Decimal("900"))
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Luxury loft", price=Decimal("2500"))

        results = await listing_service.search_listings(
            ListingFilters.from_query(min_price="600", max_price="1000")
        )
        assert titles(results) == ["Mid range flat"]

    @pytest.mark.asyncio
    async def test_default_max_price_excludes_expensive_listings(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Penthouse suite", price=Decimal("12000"))

        results = await listing_service.search_listings(ListingFilters.from_query())
        assert results == []

    @pytest.mark.asyncio
    async def test_bedrooms_exact_match(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        for bedrooms in (1, 2, 3):
            await ListingFactory.create_listing(
                listing_repository, test_user.id, title=f"{bedrooms} bedroom place", bedrooms=bedrooms
            )

        results = await listing_service.search_listings(ListingFilters.from_query(bedrooms="2"))
        assert titles(results) == ["2 bedroom place"]

    @pytest.mark.asyncio
    async def test_bedrooms_four_means_four_or_more(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        for bedrooms in (3, 4, 6):
            await ListingFactory.create_listing(
                listing_repository, test_user.id, title=f"{bedrooms} bedroom house", bedrooms=bedrooms
            )

        results = await listing_service.search_listings(ListingFilters.from_query(bedrooms="4"))
        assert set(titles(results)) == {"4 bedroom house", "6 bedroom house"}

    @pytest.mark.asyncio
    async def test_availability_window_must_cover_request(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Whole summer",
            available_from=days_from_now(10), available_until=days_from_now(100)
        )
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Starts too late",
            available_from=days_from_now(40), available_until=days_from_now(100)
        )
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Ends too early",
            available_from=days_from_now(10), available_until=days_from_now(50)
        )

        filters = ListingFilters.from_query(
            available_from=days_from_now(20).isoformat(),
            available_until=days_from_now(80).isoformat()
        )
        results = await listing_service.search_listings(filters)

        assert titles(results) == ["Whole summer"]

    @pytest.mark.asyncio
    async def test_amenities_must_all_be_present(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Fully equipped", amenities=["WiFi", "Parking", "Laundry"]
        )
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Only internet", amenities=["WiFi"]
        )
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Bare bones")

        results = await listing_service.search_listings(ListingFilters.from_query(amenities="WiFi,Parking"))
        assert titles(results) == ["Fully equipped"]

        results = await listing_service.search_listings(ListingFilters.from_query(amenities="WiFi"))
        assert set(titles(results)) == {"Fully equipped", "Only internet"}

    @pytest.mark.asyncio
    async def test_search_matches_title_description_or_address(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Lakeside studio")
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Quiet bedroom",
            description="Large bedroom with a view of the lake from the window."
        )
        await ListingFactory.create_listing(
            listing_repository, test_user.id, title="Corner apartment", address="1 Lake St, Madison, WI"
        )
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Downtown loft")

        results = await listing_service.search_listings(ListingFilters.from_query(search="LAKE"))

        assert set(titles(results)) == {"Lakeside studio", "Quiet bedroom", "Corner apartment"}

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_as_literal_text(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Plain studio here")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Room 100% furnished")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Unit A_2 near campus")

        results = await listing_service.search_listings(ListingFilters.from_query(search="%"))
        assert titles(results) == ["Room 100% furnished"]

        results = await listing_service.search_listings(ListingFilters.from_query(search="100%"))
        assert titles(results) == ["Room 100% furnished"]

        results = await listing_service.search_listings(ListingFilters.from_query(search="_"))
        assert titles(results) == ["Unit A_2 near campus"]

        results = await listing_service.search_listings(ListingFilters.from_query(search="\\"))
        assert results == []


class TestListingOrderingAndShape:
    """Ordering, limit and result annotation."""

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        for index in range(4):
            await ListingFactory.create_listing(listing_repository, test_user.id, title=f"Listing number {index}")

        results = await listing_service.search_listings(ListingFilters.from_query(limit="2"))

        assert titles(results) == ["Listing number 3", "Listing number 2"]

    @pytest.mark.asyncio
    async def test_owner_fields_and_timestamps(
        self,
        listing_service: ListingService,
        test_listing,
        test_user: User
    ):
        results = await listing_service.search_listings(ListingFilters.from_query())

        assert len(results) == 1
        listing = results[0]
        assert listing["owner"] == {
            "id": str(test_user.id),
            "name": test_user.name,
            "email": test_user.email,
            "image": None,
        }
        assert listing["amenities"] == ["Laundry", "WiFi"]
        assert listing["created_at"].endswith("Z")
        assert len(listing["created_at"]) == len("2024-01-01T00:00:00.000Z")
        assert "hashed_password" not in listing["owner"]

    @pytest.mark.asyncio
    async def test_is_saved_is_relative_to_caller(
        self,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        saved_listing_repository: SavedListingRepository,
        test_user: User,
        other_user: User
    ):
        saved = await ListingFactory.create_listing(listing_repository, test_user.id, title="Saved by Becky")
        await ListingFactory.create_listing(listing_repository, test_user.id, title="Not saved")
        await saved_listing_repository.save(other_user.id, saved.id)

        as_other = await listing_service.search_listings(ListingFilters.from_query(), other_user)
        flags = {item["title"]: item["is_saved"] for item in as_other}
        assert flags == {"Saved by Becky": True, "Not saved": False}

        as_owner = await listing_service.search_listings(ListingFilters.from_query(), test_user)
        assert all(item["is_saved"] is False for item in as_owner)

        anonymous = await listing_service.search_listings(ListingFilters.from_query(), None)
        assert all(item["is_saved"] is False for item in anonymous)

    @pytest.mark.asyncio
    async def test_equal_timestamps_order_by_id_and_repeat_stably(
        self,
        db_session: AsyncSession,
        listing_service: ListingService,
        listing_repository: ListingRepository,
        test_user: User
    ):
        for index in range(5):
            await ListingFactory.create_listing(listing_repository, test_user.id, title=f"Same moment {index}")

        created_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        await db_session.execute(update(Listing).values(created_at=created_at))
        await db_session.commit()

        filters = ListingFilters.from_query(search="same moment")
        first = await listing_service.search_listings(filters)
        second = await listing_service.search_listings(filters)

        first_ids = [item["id"] for item in first]
        assert len(first_ids) == 5
        assert first_ids == [item["id"] for item in second]
        assert first_ids == sorted(first_ids, key=lambda value: uuid.UUID(value), reverse=True)
