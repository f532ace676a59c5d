"""
Message repository for direct messages and the per-counterpart inbox view.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_, or_, func, case, desc, asc
from sublets.repositories.base import BaseRepository
from sublets.models.message import Message
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


def _between(user_id: uuid.UUID, other_id: uuid.UUID):
    """Messages exchanged in either direction between two users."""
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )


class MessageRepository(BaseRepository[Message]):
    """
    Repository for messages.
    Conversations are not stored; they are derived from the flat message table.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def create_message(
        self,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        content: str,
        listing_id: Optional[uuid.UUID] = None
    ) -> Message:
        message = await self.create({
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "content": content,
            "listing_id": listing_id,
            "read": False,
        })
        logger.info(f"Message {message.id} sent from {sender_id} to {receiver_id}")
        return message

    async def get_messages_for_user(
        self,
        user_id: uuid.UUID,
        conversation_with: Optional[uuid.UUID] = None,
        listing_id: Optional[uuid.UUID] = None
    ) -> List[Message]:
        """
        Messages the user sent or received, oldest first.

        Args:
            user_id: Participant whose messages are listed
            conversation_with: Restrict to the exchange with this user
            listing_id: Restrict to messages about this listing
        """
        try:
            if conversation_with:
                condition = _between(user_id, conversation_with)
            else:
                condition = or_(Message.sender_id == user_id, Message.receiver_id == user_id)

            query = select(Message).where(condition)
            if listing_id:
                query = query.where(Message.listing_id == listing_id)
            query = query.order_by(asc(Message.created_at), asc(Message.id))

            result = await self.db.execute(query)
            messages = list(result.scalars().all())
            logger.debug(f"Retrieved {len(messages)} messages for user {user_id}")
            return messages
        except Exception as e:
            logger.error(f"Failed to get messages for user {user_id}: {e}")
            raise

    async def get_thread(self, user_id: uuid.UUID, other_id: uuid.UUID) -> List[Message]:
        return await self.get_messages_for_user(user_id, conversation_with=other_id)

    async def get_counterpart_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Distinct users the given user has exchanged messages with."""
        try:
            counterpart = case(
                (Message.sender_id == user_id, Message.receiver_id),
                else_=Message.sender_id,
            )
            query = (
                select(counterpart)
                .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
                .distinct()
            )
            result = await self.db.execute(query)
            ids = [row[0] for row in result.all()]
            logger.debug(f"User {user_id} has {len(ids)} conversation partners")
            return ids
        except Exception as e:
            logger.error(f"Failed to get conversation partners for user {user_id}: {e}")
            raise

    async def get_last_message(self, user_id: uuid.UUID, other_id: uuid.UUID) -> Optional[Message]:
        """Most recent message between two users; id breaks timestamp ties."""
        try:
            query = (
                select(Message)
                .where(_between(user_id, other_id))
                .order_by(desc(Message.created_at), desc(Message.id))
                .limit(1)
            )
            result = await self.db.execute(query)
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Failed to get last message between {user_id} and {other_id}: {e}")
            raise

    async def count_unread(self, receiver_id: uuid.UUID, sender_id: Optional[uuid.UUID] = None) -> int:
        """Unread messages addressed to receiver_id, optionally from one sender."""
        try:
            query = select(func.count(Message.id)).where(
                Message.receiver_id == receiver_id,
                Message.read.is_(False),
            )
            if sender_id:
                query = query.where(Message.sender_id == sender_id)
            result = await self.db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count unread messages for {receiver_id}: {e}")
            raise

    async def mark_thread_read(self, receiver_id: uuid.UUID, sender_id: uuid.UUID) -> int:
        """
        Mark everything sender_id sent to receiver_id as read.

        Returns:
            Number of messages that changed state
        """
        try:
            result = await self.db.execute(
                update(Message)
                .where(
                    Message.receiver_id == receiver_id,
                    Message.sender_id == sender_id,
                    Message.read.is_(False),
                )
                .values(read=True)
                .execution_options(synchronize_session="fetch")
            )
            await self.db.commit()
            count = result.rowcount or 0
            if count:
                logger.info(f"Marked {count} messages from {sender_id} to {receiver_id} as read")
            return count
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to mark messages read for {receiver_id}: {e}")
            raise
