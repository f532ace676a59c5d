"""
Pydantic schemas for listing reports and their moderation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
import uuid
from sublets.models.report import ReportStatus


class ReportCreate(BaseModel):
    """Schema for reporting a listing."""

    listing_id: uuid.UUID = Field(..., description="Listing being reported")
    reason: str = Field(..., min_length=1, max_length=255, description="Reason category", examples=["Scam"])
    details: str = Field(
        ...,
        min_length=10,
        max_length=5000,
        description="Explanation (at least 10 characters)",
        examples=["The owner asked for a wire transfer before any viewing."]
    )

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError("Reason cannot be empty")
        return v.strip()

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        if len(v.strip()) < 10:
            raise ValueError("Details must be at least 10 characters")
        return v.strip()


class ReportReporter(BaseModel):
    id: str
    name: str
    email: str


class ReportListing(BaseModel):
    id: str
    title: str


class ReportResponse(BaseModel):
    """Report response schema."""

    id: str
    reason: str
    details: str
    status: ReportStatus
    reporter_id: str
    listing_id: str
    created_at: str
    reporter: Optional[ReportReporter] = None
    listing: Optional[ReportListing] = None


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]


class ReportStatusUpdate(BaseModel):
    status: ReportStatus = Field(..., description="New moderation status")
