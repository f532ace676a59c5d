"""
Pydantic schemas for user-initiated emails.
"""

from pydantic import BaseModel, Field, field_validator
import uuid


class ContactOwnerRequest(BaseModel):
    """Email a listing's owner about the listing."""

    listing_id: uuid.UUID = Field(..., description="Listing being asked about")
    subject: str = Field(..., min_length=1, max_length=200, examples=["Question about your sublet"])
    message: str = Field(..., min_length=1, max_length=5000, examples=["Is parking included?"])

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class ContactOwnerResponse(BaseModel):
    message: str = Field(..., examples=["Your message has been sent to the owner"])
