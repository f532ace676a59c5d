"""
SavedListing model: a user's bookmark of a listing.
"""

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sublets.database import Base
from sublets.utils.formatting import format_timestamp
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from sublets.models.listing import Listing


class SavedListing(Base):
    """At most one row per (user, listing) pair."""

    __tablename__ = "saved_listings"
    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_saved_listing_user_listing"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    listing: Mapped["Listing"] = relationship("Listing", lazy="selectin")

    def __repr__(self) -> str:
        return f"<SavedListing(user_id={self.user_id}, listing_id={self.listing_id})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "listing_id": str(self.listing_id),
            "created_at": format_timestamp(self.created_at),
        }
