"""
Listing API endpoints: the filtered listing query and listing CRUD.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional, List
from uuid import UUID

from sublets.config import settings
from sublets.models.user import User
from sublets.services.listing import ListingService
from sublets.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingListResponse
)
from sublets.schemas.error import error_responses
from sublets.utils.filters import ListingFilters
from sublets.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_listing_service
)


router = APIRouter(prefix="/listings", tags=["Listings"])


@router.get(
    "",
    response_model=ListingListResponse,
    status_code=status.HTTP_200_OK,
    summary="Search listings",
    description=(
        "Filter listings by text, price, bedrooms, availability window and amenities. "
        "Malformed filter values are ignored. scope=mine returns the caller's own listings in any state."
    )
)
async def search_listings(
    search: Optional[str] = Query(None, description="Text matched against title, description and address"),
    min_price: Optional[str] = Query(None, alias="minPrice", description="Minimum monthly rent"),
    max_price: Optional[str] = Query(None, alias="maxPrice", description="Maximum monthly rent"),
    bedrooms: Optional[str] = Query(None, description="Exact bedroom count, or 4 for four or more"),
    available_from: Optional[str] = Query(None, alias="availableFrom", description="Requested move-in date"),
    available_until: Optional[str] = Query(None, alias="availableUntil", description="Requested move-out date"),
    amenities: Optional[List[str]] = Query(None, description="Comma separated amenities, all required"),
    limit: Optional[str] = Query(None, description="Maximum number of results"),
    scope: Optional[str] = Query(None, description="public (default) or mine"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingListResponse:
    filters = ListingFilters.from_query(
        search=search,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        available_from=available_from,
        available_until=available_until,
        amenities=amenities,
        limit=limit,
        scope=scope,
        default_min_price=settings.default_min_price,
        default_max_price=settings.default_max_price,
        max_limit=settings.max_page_size,
    )

    listings = await listing_service.search_listings(filters, current_user)
    return ListingListResponse(listings=[ListingResponse.model_validate(item) for item in listings])


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Post a new sublet. Requires a verified email address.",
    responses=error_responses(400, 401, 403, 422)
)
async def create_listing(
    listing_data: ListingCreate,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.create_listing(listing_data, current_user)
    return ListingResponse.model_validate(listing.to_dict())


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get listing",
    responses=error_responses(404, 422)
)
async def get_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Get a listing with its owner.

    Drafts and unpublished listings are only visible to their owner and admins.
    """
    listing = await listing_service.get_listing(listing_id, current_user)
    return ListingResponse.model_validate(listing)


@router.put(
    "/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Update listing",
    description="Partially update a listing. Only the owner or an admin may update.",
    responses=error_responses(400, 401, 403, 404, 422)
)
async def update_listing(
    listing_data: ListingUpdate,
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.update_listing(listing_id, listing_data, current_user)
    return ListingResponse.model_validate(listing.to_dict())


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
    responses=error_responses(401, 403, 404)
)
async def delete_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> None:
    await listing_service.delete_listing(listing_id, current_user)
