"""
Report model for flagging listings to the moderators.
"""

from sqlalchemy import String, Text, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sublets.database import Base
from sublets.utils.formatting import format_timestamp
from typing import TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from sublets.models.user import User
    from sublets.models.listing import Listing


class ReportStatus(str, enum.Enum):
    """Moderation state of a report."""
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class Report(Base):
    """A user's complaint about a listing."""

    __tablename__ = "reports"

    reason: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Short reason category"
    )

    details: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-form explanation from the reporter"
    )

    status: Mapped[ReportStatus] = mapped_column(
        SQLEnum(ReportStatus, name="report_status"),
        nullable=False,
        default=ReportStatus.PENDING,
        index=True
    )

    reporter_id: Mapped[uuid.UUID] = mapped_column(
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

    reporter: Mapped["User"] = relationship("User", lazy="selectin")
    listing: Mapped["Listing"] = relationship("Listing", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, listing_id={self.listing_id}, status={self.status})>"

    def to_dict(self) -> dict:
        result = {
            "id": str(self.id),
            "reason": self.reason,
            "details": self.details,
            "status": self.status.value,
            "reporter_id": str(self.reporter_id),
            "listing_id": str(self.listing_id),
            "created_at": format_timestamp(self.created_at),
        }
        if self.reporter is not None:
            result["reporter"] = {
                "id": str(self.reporter.id),
                "name": self.reporter.name,
                "email": self.reporter.email,
            }
        if self.listing is not None:
            result["listing"] = {"id": str(self.listing.id), "title": self.listing.title}
        return result
