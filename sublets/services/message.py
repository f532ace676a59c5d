"""
Message service: direct messages, threads and the conversation inbox.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.message import MessageRepository
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.models.message import Message
from sublets.models.user import User
from sublets.schemas.message import MessageCreate
from sublets.utils.formatting import as_utc
from sublets.utils.exceptions import (
    APIException,
    UnauthorizedError,
    UserNotFoundError,
    ListingNotFoundError,
    EmailNotVerifiedError,
    BadRequestError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class MessageService:
    """
    Messaging between users.

    Conversations are not stored. The inbox is derived from the flat message
    table: one entry per counterpart with the latest message and the number
    of unread messages from that counterpart.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.message_repo = MessageRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.listing_repo = ListingRepository(db_session)

    async def send_message(self, message_data: MessageCreate, current_user: User) -> Message:
        """
        Send a message from the caller.

        Raises:
            EmailNotVerifiedError: If the caller has not verified their email
            BadRequestError: If the caller messages themself
            UserNotFoundError: If the receiver doesn't exist
            ListingNotFoundError: If a referenced listing doesn't exist
        """
        try:
            if not current_user.is_verified:
                raise EmailNotVerifiedError("Please verify your email before sending messages")

            if message_data.receiver_id == current_user.id:
                raise BadRequestError("You cannot send a message to yourself")

            if not await self.user_repo.exists(message_data.receiver_id):
                raise UserNotFoundError(str(message_data.receiver_id))

            if message_data.listing_id and not await self.listing_repo.exists(message_data.listing_id):
                raise ListingNotFoundError(str(message_data.listing_id))

            return await self.message_repo.create_message(
                sender_id=current_user.id,
                receiver_id=message_data.receiver_id,
                content=message_data.content,
                listing_id=message_data.listing_id,
            )

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to send message from {current_user.id}: {e}")
            raise BadRequestError(f"Failed to send message: {str(e)}")

    async def get_messages(
        self,
        current_user: User,
        conversation_with: Optional[uuid.UUID] = None,
        listing_id: Optional[uuid.UUID] = None
    ) -> List[Message]:
        """The caller's messages, oldest first, optionally narrowed."""
        return await self.message_repo.get_messages_for_user(
            current_user.id,
            conversation_with=conversation_with,
            listing_id=listing_id,
        )

    async def get_thread(self, other_user_id: uuid.UUID, current_user: User) -> List[Dict[str, Any]]:
        """
        Messages between the caller and another user, oldest first.

        Opening a thread marks the counterpart's messages to the caller as
        read. The returned messages show their state from before that update.
        """
        if not await self.user_repo.exists(other_user_id):
            raise UserNotFoundError(str(other_user_id))

        messages = await self.message_repo.get_thread(current_user.id, other_user_id)
        serialized = [message.to_dict() for message in messages]
        await self.message_repo.mark_thread_read(receiver_id=current_user.id, sender_id=other_user_id)
        return serialized

    async def mark_thread_read(self, other_user_id: uuid.UUID, current_user: User) -> int:
        return await self.message_repo.mark_thread_read(receiver_id=current_user.id, sender_id=other_user_id)

    async def get_conversations(self, current_user: Optional[User]) -> List[Dict[str, Any]]:
        """
        Build the caller's inbox.

        Returns:
            One entry per counterpart with other_user, last_message and
            unread_count, most recent conversation first

        Raises:
            UnauthorizedError: If there is no authenticated caller
        """
        if current_user is None:
            raise UnauthorizedError()

        try:
            counterpart_ids = await self.message_repo.get_counterpart_ids(current_user.id)
            users = await self.user_repo.get_by_ids(counterpart_ids)

            conversations = []
            for other_id in counterpart_ids:
                other_user = users.get(other_id)
                last_message = await self.message_repo.get_last_message(current_user.id, other_id)
                if other_user is None or last_message is None:
                    continue

                unread_count = await self.message_repo.count_unread(
                    receiver_id=current_user.id, sender_id=other_id
                )
                conversations.append({
                    "other_user": other_user.to_public_dict(),
                    "last_message": last_message.to_dict(),
                    "unread_count": unread_count,
                    "_sort_key": (as_utc(last_message.created_at), str(last_message.id)),
                })

            conversations.sort(key=lambda c: c["_sort_key"], reverse=True)
            for conversation in conversations:
                del conversation["_sort_key"]

            logger.debug(f"Built {len(conversations)} conversations for user {current_user.id}")
            return conversations

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to build conversations for user {current_user.id}: {e}")
            raise
