"""Conversation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.pagination import paginate
from app.dependencies import CurrentIdentity, DatabaseSession
from app.schemas.base import OkResponse
from app.schemas.chats import (
    ChatCreate,
    ChatCreateResponse,
    ChatListResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from app.services.chat_service import ChatService

router = APIRouter()


@router.post(
    "",
    response_model=ChatCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start or reopen a chat with a provider",
)
async def create_or_get_chat(
    request: ChatCreate,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> ChatCreateResponse:
    """
    Open the conversation between the calling guest and a provider.

    Only guests start conversations; providers reply in existing ones.
    Repeating the call returns the same conversation.

    Args:
        request: Target provider's user ID
        identity: Authenticated caller
        db: Database session

    Returns:
        The conversation
    """
    conversation = await ChatService(db).create_or_get_chat(identity, request.provider_user_id)
    return ChatCreateResponse(conversation=conversation)


@router.get("", response_model=ChatListResponse, summary="List my chats")
async def list_chats(
    identity: CurrentIdentity,
    db: DatabaseSession,
    page: int | None = Query(None, description="Page number"),
    limit: int | None = Query(None, description="Items per page (max 50)"),
) -> ChatListResponse:
    """
    List the caller's conversations, most recently active first.

    Args:
        identity: Authenticated caller
        db: Database session
        page: Page number
        limit: Items per page

    Returns:
        Conversations with last message and unread count
    """
    pagination = paginate(page, limit, default_limit=20, max_limit=50)
    return await ChatService(db).list_chats(identity.id, pagination)


@router.get(
    "/{conversation_id}/messages",
    response_model=MessageListResponse,
    summary="List messages in a chat",
)
async def list_messages(
    conversation_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
    page: int | None = Query(None, description="Page number, counted from the newest"),
    limit: int | None = Query(None, description="Items per page (max 100)"),
) -> MessageListResponse:
    """Page through a conversation; each page reads oldest to newest."""
    pagination = paginate(page, limit, default_limit=30, max_limit=100)
    return await ChatService(db).list_messages(conversation_id, identity.id, pagination)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    conversation_id: UUID,
    request: MessageCreate,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> MessageResponse:
    """Post a message to a conversation the caller takes part in."""
    return await ChatService(db).send_message(conversation_id, identity.id, request.content)


@router.post("/{conversation_id}/read", response_model=OkResponse, summary="Mark a chat read")
async def mark_chat_read(
    conversation_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> OkResponse:
    """Reset the caller's unread count for a conversation."""
    await ChatService(db).mark_read(conversation_id, identity.id)
    return OkResponse()
