"""
Pydantic schemas for listing requests and responses.
Handles listing creation, partial updates and response shaping.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from sublets.utils.filters import parse_datetime


class ListingOwner(BaseModel):
    """Owner fields embedded in listing responses."""

    id: str
    name: str
    email: str
    image: Optional[str] = None


def _coerce_datetime(v):
    """Accept dates, ISO datetimes and trailing-Z timestamps; normalize to UTC."""
    if v is None:
        return v
    parsed = parse_datetime(v)
    if parsed is None:
        raise ValueError("Invalid date, expected ISO-8601 (YYYY-MM-DD or full timestamp)")
    return parsed


def _clean_strings(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class ListingBase(BaseModel):
    """Base listing schema with common fields."""

    title: str = Field(
        ...,
        min_length=5,
        max_length=255,
        description="Listing title (at least 5 characters)",
        examples=["Sunny studio near Bascom Hill"]
    )
    description: str = Field(
        ...,
        min_length=20,
        description="Detailed description (at least 20 characters)",
        examples=["Furnished studio with lake views, five minutes from campus."]
    )
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Monthly rent", examples=[950])
    address: str = Field(
        ...,
        min_length=5,
        max_length=500,
        description="Street address",
        examples=["123 State St, Madison, WI"]
    )
    bedrooms: int = Field(..., ge=0, le=50, description="Number of bedrooms", examples=[1])
    bathrooms: Decimal = Field(..., ge=Decimal("0.5"), le=50, description="Number of bathrooms", examples=[1])
    available_from: datetime = Field(..., description="Start of the sublet window", examples=["2024-06-01"])
    available_until: datetime = Field(..., description="End of the sublet window", examples=["2024-08-15"])
    amenities: List[str] = Field(default_factory=list, description="Amenity labels", examples=[["WiFi", "Parking"]])
    images: List[str] = Field(default_factory=list, description="Ordered image URLs")

    @field_validator("title", "description", "address")
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator("available_from", "available_until", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _coerce_datetime(v)

    @field_validator("amenities", "images")
    @classmethod
    def clean_lists(cls, v):
        return _clean_strings(v)


class ListingCreate(ListingBase):
    """Schema for creating a new listing."""

    published: bool = Field(True, description="Publish immediately")
    is_draft: bool = Field(False, description="Keep as a draft")

    @model_validator(mode="after")
    def validate_window(self):
        if self.available_until < self.available_from:
            raise ValueError("available_until must not be before available_from")
        return self


class ListingUpdate(BaseModel):
    """Schema for partially updating a listing. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=20)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    address: Optional[str] = Field(None, min_length=5, max_length=500)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[Decimal] = Field(None, ge=Decimal("0.5"), le=50)
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    published: Optional[bool] = None
    is_draft: Optional[bool] = None

    @field_validator("available_from", "available_until", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _coerce_datetime(v)

    @field_validator("amenities", "images")
    @classmethod
    def clean_lists(cls, v):
        return _clean_strings(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.available_from and self.available_until and self.available_until < self.available_from:
            raise ValueError("available_until must not be before available_from")
        return self


class ListingResponse(BaseModel):
    """Listing response schema."""

    id: str
    title: str
    description: str
    price: float
    address: str
    bedrooms: int
    bathrooms: float
    available_from: str = Field(..., examples=["2024-06-01T00:00:00.000Z"])
    available_until: str
    amenities: List[str]
    images: List[str]
    published: bool
    is_draft: bool
    owner_id: str
    owner: Optional[ListingOwner] = None
    is_saved: bool = Field(False, description="Whether the caller has saved this listing")
    created_at: str
    updated_at: str


class ListingListResponse(BaseModel):
    listings: List[ListingResponse]
