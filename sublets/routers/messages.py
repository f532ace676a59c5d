"""
Messaging endpoints: sending, listing, threads and the conversation inbox.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID

from sublets.models.user import User
from sublets.services.message import MessageService
from sublets.schemas.message import (
    MessageCreate,
    MessageResponse,
    MessageListResponse,
    ConversationResponse,
    ConversationListResponse,
    MarkReadResponse
)
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_message_service
)


router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
    responses=error_responses(400, 401, 403, 404, 422)
)
async def send_message(
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    message = await message_service.send_message(message_data, current_user)
    return MessageResponse.model_validate(message.to_dict())


@router.get(
    "",
    response_model=MessageListResponse,
    summary="List messages",
    description="Messages sent or received by the caller, oldest first",
    responses=error_responses(401, 422)
)
async def list_messages(
    conversation_with: Optional[UUID] = Query(None, description="Only messages exchanged with this user"),
    listing_id: Optional[UUID] = Query(None, description="Only messages about this listing"),
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageListResponse:
    messages = await message_service.get_messages(current_user, conversation_with, listing_id)
    return MessageListResponse(messages=[MessageResponse.model_validate(m.to_dict()) for m in messages])


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List conversations",
    description="One entry per counterpart with the latest message and unread count, most recent first",
    responses=error_responses(401)
)
async def list_conversations(
    current_user: Optional[User] = Depends(get_optional_current_user),
    message_service: MessageService = Depends(get_message_service)
) -> ConversationListResponse:
    conversations = await message_service.get_conversations(current_user)
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations]
    )


@router.get(
    "/thread/{user_id}",
    response_model=MessageListResponse,
    summary="Get a thread",
    description="Messages with one user, oldest first. Marks that user's messages to the caller as read.",
    responses=error_responses(401, 404, 422)
)
async def get_thread(
    user_id: UUID = Path(..., description="Counterpart user ID"),
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageListResponse:
    messages = await message_service.get_thread(user_id, current_user)
    return MessageListResponse(messages=[MessageResponse.model_validate(m) for m in messages])


@router.post(
    "/thread/{user_id}/read",
    response_model=MarkReadResponse,
    summary="Mark a thread read",
    responses=error_responses(401, 422)
)
async def mark_thread_read(
    user_id: UUID = Path(..., description="Counterpart user ID"),
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service)
) -> MarkReadResponse:
    updated = await message_service.mark_thread_read(user_id, current_user)
    return MarkReadResponse(updated=updated)
