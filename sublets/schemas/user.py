"""
Pydantic schemas for user requests and responses.
Covers public profiles, the own-profile view and admin user management.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from sublets.models.user import UserRole
from sublets.schemas.listing import ListingResponse


class UserPublic(BaseModel):
    """Fields of a user visible to other users."""

    id: str = Field(..., description="User's unique identifier", examples=["123e4567-e89b-12d3-a456-426614174000"])
    name: str = Field(..., description="Display name", examples=["Bucky Badger"])
    email: str = Field(..., description="Email address", examples=["bucky@wisc.edu"])
    image: Optional[str] = Field(None, description="Avatar URL")


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str
    email: str
    name: str
    image: Optional[str] = None
    role: UserRole
    email_verified: Optional[str] = Field(None, description="Verification timestamp, null while unverified")
    created_at: str
    updated_at: str


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's own profile."""

    name: str = Field(..., min_length=2, max_length=255, description="Display name", examples=["Bucky Badger"])
    email: EmailStr = Field(..., description="New email address", examples=["bucky@wisc.edu"])
    image: Optional[str] = Field(None, max_length=1024, description="Avatar URL")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class PasswordChangeRequest(BaseModel):
    """Schema for changing the caller's password."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=128, description="New password (minimum 8 characters)")


class ProfileResponse(BaseModel):
    """Own profile with listings and unread message count."""

    user: UserResponse
    listings: List[ListingResponse] = Field(default_factory=list, description="Listings owned by the user, any state")
    unread_messages: int = Field(0, description="Unread messages addressed to the user")


class AdminUserSummary(UserResponse):
    """User row in the admin user list."""

    listing_count: int = Field(0, description="Number of listings owned")


class AdminUserListResponse(BaseModel):
    users: List[AdminUserSummary]
    total: int


class AdminUserDetail(UserResponse):
    """Admin view of one user with activity counts."""

    listings: List[ListingResponse] = Field(default_factory=list)
    sent_messages: int = 0
    received_messages: int = 0
    reports: int = 0


class AdminUserUpdate(BaseModel):
    """Fields an admin may change on a user."""

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    role: Optional[UserRole] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v


class AdminStatsResponse(BaseModel):
    """Moderation dashboard counters."""

    total_users: int
    verified_users: int
    total_listings: int
    active_listings: int = Field(..., description="Published, non-draft listings")
    pending_reports: int
