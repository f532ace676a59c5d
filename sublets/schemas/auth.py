"""
Pydantic schemas for authentication requests and responses.
Handles signup, email verification, login, token refresh and password resets.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from sublets.schemas.user import UserResponse


class SignupRequest(BaseModel):
    """Signup request schema."""

    name: str = Field(..., min_length=2, max_length=255, description="Display name", examples=["Bucky Badger"])
    email: EmailStr = Field(..., description="University email address", examples=["bucky@wisc.edu"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)",
        examples=["securepassword123"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v.strip()


class SignupResponse(BaseModel):
    message: str = Field(..., examples=["Account created. Check your email to verify your address."])
    user_id: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token from the verification email")


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address", examples=["bucky@wisc.edu"])
    password: str = Field(..., min_length=1, max_length=128, description="User's password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class LoginResponse(BaseModel):
    """Login response with user information and tokens."""

    user: UserResponse
    tokens: TokenResponse


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token from the reset email")
    password: str = Field(..., min_length=8, max_length=128, description="New password (minimum 8 characters)")


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""

    message: str
