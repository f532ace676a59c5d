"""
Saved listing endpoints.
"""

from fastapi import APIRouter, Depends, status, Path
from uuid import UUID

from sublets.models.user import User
from sublets.services.saved_listing import SavedListingService
from sublets.schemas.saved_listing import (
    SaveListingRequest,
    SavedListingResponse,
    SavedListingListResponse
)
from sublets.schemas.listing import ListingResponse
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import get_current_user, get_saved_listing_service


router = APIRouter(prefix="/saved-listings", tags=["Saved Listings"])


@router.get(
    "",
    response_model=SavedListingListResponse,
    summary="List saved listings",
    description="The caller's saved listings, most recently saved first",
    responses=error_responses(401)
)
async def list_saved_listings(
    current_user: User = Depends(get_current_user),
    saved_service: SavedListingService = Depends(get_saved_listing_service)
) -> SavedListingListResponse:
    listings = await saved_service.get_saved_listings(current_user)
    return SavedListingListResponse(listings=[ListingResponse.model_validate(item) for item in listings])


@router.post(
    "",
    response_model=SavedListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a listing",
    responses=error_responses(401, 404, 409, 422)
)
async def save_listing(
    request_data: SaveListingRequest,
    current_user: User = Depends(get_current_user),
    saved_service: SavedListingService = Depends(get_saved_listing_service)
) -> SavedListingResponse:
    saved = await saved_service.save_listing(request_data.listing_id, current_user)
    return SavedListingResponse.model_validate(saved.to_dict())


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a saved listing",
    responses=error_responses(401, 404)
)
async def unsave_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_user),
    saved_service: SavedListingService = Depends(get_saved_listing_service)
) -> None:
    await saved_service.unsave_listing(listing_id, current_user)
