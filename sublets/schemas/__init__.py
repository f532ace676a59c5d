"""
Pydantic schemas for request/response validation.
"""

from .auth import (
    SignupRequest,
    SignupResponse,
    VerifyEmailRequest,
    LoginRequest,
    LoginResponse,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse
)

from .user import (
    UserPublic,
    UserResponse,
    ProfileUpdate,
    ProfileResponse,
    PasswordChangeRequest,
    AdminUserSummary,
    AdminUserListResponse,
    AdminUserDetail,
    AdminUserUpdate,
    AdminStatsResponse
)

from .listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingListResponse
)

from .message import (
    MessageCreate,
    MessageListResponse,
    ConversationResponse,
    ConversationListResponse,
    MarkReadResponse
)

from .saved_listing import (
    SaveListingRequest,
    SavedListingResponse,
    SavedListingListResponse
)

from .report import (
    ReportCreate,
    ReportResponse,
    ReportListResponse,
    ReportStatusUpdate
)

from .email import ContactOwnerRequest, ContactOwnerResponse

__all__ = [
    # Authentication
    "SignupRequest",
    "SignupResponse",
    "VerifyEmailRequest",
    "LoginRequest",
    "LoginResponse",
    "TokenResponse",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",

    # Users
    "UserPublic",
    "UserResponse",
    "ProfileUpdate",
    "ProfileResponse",
    "PasswordChangeRequest",
    "AdminUserSummary",
    "AdminUserListResponse",
    "AdminUserDetail",
    "AdminUserUpdate",
    "AdminStatsResponse",

    # Listings
    "ListingCreate",
    "ListingUpdate",
    "ListingResponse",
    "ListingListResponse",

    # Messages
    "MessageCreate",
    "MessageListResponse",
    "ConversationResponse",
    "ConversationListResponse",
    "MarkReadResponse",

    # Saved listings
    "SaveListingRequest",
    "SavedListingResponse",
    "SavedListingListResponse",

    # Reports
    "ReportCreate",
    "ReportResponse",
    "ReportListResponse",
    "ReportStatusUpdate",

    # Email
    "ContactOwnerRequest",
    "ContactOwnerResponse",
]
