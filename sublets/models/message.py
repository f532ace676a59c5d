"""
Message model for direct messages between users.
Messages may optionally reference the listing they are about.
"""

from sqlalchemy import Text, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sublets.database import Base
from sublets.utils.formatting import format_timestamp
from typing import Optional, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from sublets.models.user import User
    from sublets.models.listing import Listing


class Message(Base):
    """
    A single message from sender to receiver.
    The read flag is only ever flipped by the receiver.
    """

    __tablename__ = "messages"

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Message body"
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    listing_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the receiver has read the message"
    )

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    receiver: Mapped["User"] = relationship("User", foreign_keys=[receiver_id], lazy="selectin")
    listing: Mapped[Optional["Listing"]] = relationship("Listing", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, sender_id={self.sender_id}, receiver_id={self.receiver_id})>"

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        """The participant that is not user_id."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def to_dict(self, include_users: bool = True) -> dict:
        result = {
            "id": str(self.id),
            "content": self.content,
            "sender_id": str(self.sender_id),
            "receiver_id": str(self.receiver_id),
            "listing_id": str(self.listing_id) if self.listing_id else None,
            "read": self.read,
            "created_at": format_timestamp(self.created_at),
        }

        if include_users:
            result["sender"] = self.sender.to_public_dict() if self.sender else None
            result["receiver"] = self.receiver.to_public_dict() if self.receiver else None
            result["listing"] = (
                {"id": str(self.listing.id), "title": self.listing.title} if self.listing else None
            )

        return result


# Per-pair thread lookups and unread counts
thread_index = Index(
    "idx_messages_thread",
    Message.sender_id,
    Message.receiver_id,
    Message.created_at
)

unread_index = Index(
    "idx_messages_unread",
    Message.receiver_id,
    Message.read
)
