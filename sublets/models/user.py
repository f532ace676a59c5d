"""
User model with authentication, email verification and role management.
Handles student accounts and marketplace administrators.
"""

from sqlalchemy import String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from sublets.database import Base, utcnow
from sublets.utils.auth import hash_password, verify_password
from sublets.utils.formatting import as_utc, format_timestamp
from email_validator import validate_email, EmailNotValidError
from datetime import datetime
from typing import Optional
import enum
import uuid


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    """
    User model for authentication and authorization.
    Owns listings, sends and receives messages, saves listings and files reports.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - unique, stored lower-cased"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    image: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        comment="Avatar URL"
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.USER,
        index=True,
        comment="User role for access control"
    )

    email_verified: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the email address was confirmed"
    )

    # Shared by the verification and password reset flows
    verification_token: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        unique=True,
        index=True,
        comment="Outstanding one-time account token"
    )

    token_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Expiry of the outstanding account token"
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Returns:
            Normalized, lower-cased email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email.strip(), check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.hashed_password)

    def set_password(self, password: str) -> None:
        self.hashed_password = hash_password(password)

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    @property
    def is_verified(self) -> bool:
        return self.email_verified is not None

    def has_valid_token(self, token: str) -> bool:
        """Check an account token against the stored one and its expiry."""
        if not self.verification_token or self.verification_token != token:
            return False
        if self.token_expiry is None:
            return False
        return as_utc(self.token_expiry) > utcnow()

    def can_manage(self, owner_id: uuid.UUID) -> bool:
        """
        Check if user can modify a resource owned by owner_id.
        Admins can manage everything; everyone else only their own resources.
        """
        if self.is_admin:
            return True
        return self.id == owner_id

    def to_public_dict(self) -> dict:
        """Fields safe to show to other users."""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "image": self.image,
        }

    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding sensitive data).
        """
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "image": self.image,
            "role": self.role.value,
            "email_verified": format_timestamp(self.email_verified),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }
