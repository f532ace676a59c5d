"""
Listing model for sublet offers.
Handles pricing, availability window, amenities and visibility flags.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, DateTime, JSON, ForeignKey, Index, UniqueConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sublets.database import Base
from sublets.utils.formatting import format_timestamp, to_number
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from sublets.models.user import User


class ListingAmenity(Base):
    """One amenity tag attached to a listing."""

    __tablename__ = "listing_amenities"
    __table_args__ = (
        UniqueConstraint("listing_id", "name", name="uq_listing_amenity"),
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Amenity label, e.g. 'Parking'"
    )


class Listing(Base):
    """
    A sublet offer posted by a user.

    A listing is publicly visible only while it is published and not a draft;
    its owner can always see it.
    """

    __tablename__ = "listings"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed listing description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Monthly rent"
    )

    address: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Street address"
    )

    bedrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Number of bedrooms"
    )

    bathrooms: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=1),
        nullable=False,
        comment="Number of bathrooms, half baths allowed"
    )

    available_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Start of the sublet window"
    )

    available_until: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="End of the sublet window"
    )

    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered list of image URLs"
    )

    published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the owner has published the listing"
    )

    is_draft: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the listing is still a draft"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who posted the listing"
    )

    owner: Mapped["User"] = relationship("User", lazy="selectin")

    amenity_links: Mapped[List[ListingAmenity]] = relationship(
        ListingAmenity,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by=ListingAmenity.name
    )

    def __repr__(self) -> str:
        """String representation of the listing."""
        return f"<Listing(id={self.id}, title={self.title[:30]}, price={self.price})>"

    @property
    def amenities(self) -> List[str]:
        return [link.name for link in self.amenity_links]

    def set_amenities(self, names: Iterable[str]) -> None:
        """Replace the amenity set, ignoring blanks and duplicates."""
        wanted = []
        for name in names:
            name = name.strip()
            if name and name not in wanted:
                wanted.append(name)

        existing = {link.name: link for link in self.amenity_links}
        self.amenity_links = [existing.get(name) or ListingAmenity(name=name) for name in wanted]

    @property
    def is_visible(self) -> bool:
        """Publicly visible: published and not a draft."""
        return self.published and not self.is_draft

    def to_dict(self, include_owner: bool = True, is_saved: bool = False) -> dict:
        """
        Convert listing to dictionary.

        Args:
            include_owner: Whether to include the owner's public fields
            is_saved: Whether the calling user has saved this listing
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "price": to_number(self.price),
            "address": self.address,
            "bedrooms": self.bedrooms,
            "bathrooms": to_number(self.bathrooms),
            "available_from": format_timestamp(self.available_from),
            "available_until": format_timestamp(self.available_until),
            "amenities": self.amenities,
            "images": list(self.images or []),
            "published": self.published,
            "is_draft": self.is_draft,
            "owner_id": str(self.owner_id),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "is_saved": is_saved,
        }

        if include_owner and self.owner is not None:
            result["owner"] = self.owner.to_public_dict()

        return result


# Visibility filter plus newest-first ordering used by the public browse page
visibility_index = Index(
    "idx_listings_visibility_created",
    Listing.published,
    Listing.is_draft,
    Listing.created_at.desc()
)

availability_index = Index(
    "idx_listings_availability",
    Listing.available_from,
    Listing.available_until
)
