"""
Pydantic schemas for saved listings.
"""

from pydantic import BaseModel, Field
from typing import List
import uuid
from sublets.schemas.listing import ListingResponse


class SaveListingRequest(BaseModel):
    listing_id: uuid.UUID = Field(..., description="Listing to save")


class SavedListingResponse(BaseModel):
    """A bookmark row."""

    id: str
    user_id: str
    listing_id: str
    created_at: str


class SavedListingListResponse(BaseModel):
    listings: List[ListingResponse]
