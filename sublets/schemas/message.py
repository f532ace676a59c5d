"""
Pydantic schemas for direct messages and conversations.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
import uuid
from sublets.schemas.user import UserPublic


class MessageCreate(BaseModel):
    """Schema for sending a message."""

    receiver_id: uuid.UUID = Field(..., description="Recipient user ID")
    content: str = Field(..., min_length=1, max_length=5000, description="Message body", examples=["Is this still available?"])
    listing_id: Optional[uuid.UUID] = Field(None, description="Listing the message is about")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError("Message content cannot be empty")
        return v.strip()


class ListingReference(BaseModel):
    id: str
    title: str


class MessageResponse(BaseModel):
    """Message response schema."""

    id: str
    content: str
    sender_id: str
    receiver_id: str
    listing_id: Optional[str] = None
    read: bool
    created_at: str
    sender: Optional[UserPublic] = None
    receiver: Optional[UserPublic] = None
    listing: Optional[ListingReference] = None


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]


class ConversationResponse(BaseModel):
    """One inbox row: a counterpart, the latest message and the unread count."""

    other_user: UserPublic
    last_message: MessageResponse
    unread_count: int = Field(..., ge=0, description="Unread messages from the counterpart")


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]


class MarkReadResponse(BaseModel):
    updated: int = Field(..., description="Messages newly marked as read")
