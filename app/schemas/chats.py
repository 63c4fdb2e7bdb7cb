"""Conversation and message schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.core.roles import UserRole
from app.schemas.base import CamelModel


class ChatCreate(CamelModel):
    """Start (or reopen) a conversation with a provider."""

    provider_user_id: UUID


class MessageCreate(CamelModel):
    """New message body."""

    content: str = Field(..., min_length=1, max_length=2000)


class ConversationResponse(CamelModel):
    """Conversation row."""

    id: UUID
    client_user_id: UUID
    provider_user_id: UUID
    created_at: datetime
    last_message_at: datetime


class ChatCreateResponse(CamelModel):
    """Wrapper for createOrGetChat."""

    conversation: ConversationResponse


class ChatParticipant(CamelModel):
    """The other side of a conversation."""

    id: UUID
    name: str | None = None
    role: UserRole
    avatar_url: str | None = None


class ChatSummary(CamelModel):
    """Inbox entry."""

    id: UUID
    created_at: datetime
    last_message_at: datetime
    other_user: ChatParticipant
    last_message: str | None = None
    last_message_created_at: datetime | None = None
    unread_count: int = 0


class ChatListResponse(CamelModel):
    """Paginated inbox."""

    page: int
    limit: int
    count: int
    items: list[ChatSummary]


class MessageSender(CamelModel):
    """Message author."""

    id: UUID
    name: str | None = None
    role: UserRole


class MessageItem(CamelModel):
    """Message in a conversation page."""

    id: UUID
    sender: MessageSender
    content: str
    created_at: datetime


class MessageListResponse(CamelModel):
    """Page of messages, oldest first."""

    page: int
    limit: int
    count: int
    items: list[MessageItem]


class MessageResponse(CamelModel):
    """Freshly stored message."""

    id: UUID
    content: str
    created_at: datetime
