"""Conversation and messaging service."""

from uuid import UUID

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from app.core.pagination import Pagination
from app.core.roles import Identity, UserRole
from app.database import transaction
from app.models.chats import conversation_reads, conversations
from app.models.users import users
from app.schemas.chats import (
    ChatListResponse,
    ChatParticipant,
    ChatSummary,
    ConversationResponse,
    MessageItem,
    MessageListResponse,
    MessageResponse,
    MessageSender,
)

logger = structlog.get_logger(__name__)

# Existing pairs are returned untouched: the no-op update keeps last_message_at
UPSERT_CONVERSATION_SQL = text(
    """
    INSERT INTO conversations (client_user_id, provider_user_id)
    VALUES (:client_user_id, :provider_user_id)
    ON CONFLICT (client_user_id, provider_user_id)
    DO UPDATE SET last_message_at = conversations.last_message_at
    RETURNING id, client_user_id, provider_user_id, created_at, last_message_at
    """
)

# Unread = messages from the other party newer than the caller's read marker
LIST_CHATS_SQL = text(
    """
    SELECT
      c.id,
      c.created_at,
      c.last_message_at,
      u.id AS other_user_id,
      u.display_name AS other_user_name,
      u.role AS other_user_role,
      pp.display_name AS provider_display_name,
      (SELECT m.url FROM provider_media m
        WHERE m.provider_id = pp.id AND m.is_avatar = true
        ORDER BY m.created_at DESC LIMIT 1) AS provider_avatar,
      lm.content AS last_message,
      lm.created_at AS last_message_created_at,
      COALESCE((
        SELECT COUNT(*)::int
        FROM messages msg
        JOIN conversation_reads cr
          ON cr.conversation_id = c.id AND cr.user_id = :user_id
        WHERE msg.conversation_id = c.id
          AND msg.created_at > cr.last_read_at
          AND msg.sender_user_id <> :user_id
      ), 0) AS unread_count
    FROM conversations c
    JOIN users u
      ON u.id = CASE
        WHEN c.client_user_id = :user_id THEN c.provider_user_id
        ELSE c.client_user_id
      END
    LEFT JOIN provider_profiles pp ON pp.user_id = u.id
    LEFT JOIN LATERAL (
      SELECT content, created_at
      FROM messages m
      WHERE m.conversation_id = c.id
      ORDER BY m.created_at DESC
      LIMIT 1
    ) lm ON true
    WHERE c.client_user_id = :user_id OR c.provider_user_id = :user_id
    ORDER BY c.last_message_at DESC
    LIMIT :limit OFFSET :offset
    """
)

LIST_MESSAGES_SQL = text(
    """
    SELECT
      m.id,
      m.sender_user_id,
      u.display_name AS sender_name,
      u.role AS sender_role,
      m.content,
      m.created_at
    FROM messages m
    JOIN users u ON u.id = m.sender_user_id
    WHERE m.conversation_id = :conversation_id
    ORDER BY m.created_at DESC
    LIMIT :limit OFFSET :offset
    """
)

INSERT_MESSAGE_SQL = text(
    """
    INSERT INTO messages (conversation_id, sender_user_id, content)
    VALUES (:conversation_id, :sender_user_id, :content)
    RETURNING id, content, created_at
    """
)

TOUCH_CONVERSATION_SQL = text(
    "UPDATE conversations SET last_message_at = now() WHERE id = :conversation_id"
)


class ChatService:
    """Service for conversations between a guest and a provider."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def ensure_member(self, conversation_id: UUID, user_id: UUID) -> dict:
        """
        Load a conversation the caller takes part in.

        Args:
            conversation_id: Conversation ID
            user_id: Caller's user ID

        Returns:
            Conversation row

        Raises:
            NotFoundException: If the conversation does not exist
            ForbiddenException: If the caller is neither participant
        """
        result = await self.db.execute(
            select(
                conversations.c.id,
                conversations.c.client_user_id,
                conversations.c.provider_user_id,
            )
            .where(conversations.c.id == conversation_id)
            .limit(1)
        )
        convo = result.mappings().first()
        if not convo:
            raise NotFoundException("Conversation not found")

        if user_id not in (convo["client_user_id"], convo["provider_user_id"]):
            raise ForbiddenException("Forbidden")

        return dict(convo)

    async def create_or_get_chat(
        self, initiator: Identity, provider_user_id: UUID
    ) -> ConversationResponse:
        """
        Open the conversation between a guest and a provider.

        Calling this again for the same pair returns the same conversation.
        Read markers for both participants are created on first contact.

        Args:
            initiator: Caller, must be a guest
            provider_user_id: Target provider's user ID

        Returns:
            The conversation

        Raises:
            ForbiddenException: If the caller is not a guest
            NotFoundException: If the target user does not exist
            BadRequestException: If the target user is not a provider
        """
        if not initiator.role.can_start_chat:
            raise ForbiddenException("Only clients can start a new chat")

        result = await self.db.execute(
            select(users.c.id, users.c.role).where(users.c.id == provider_user_id).limit(1)
        )
        target = result.mappings().first()
        if not target:
            raise NotFoundException("Provider user not found")
        if target["role"] != UserRole.PROVIDER.value:
            raise BadRequestException("Target user is not a provider")

        async with transaction(self.db):
            result = await self.db.execute(
                UPSERT_CONVERSATION_SQL,
                {"client_user_id": initiator.id, "provider_user_id": provider_user_id},
            )
            convo = dict(result.mappings().one())

            for participant in (initiator.id, provider_user_id):
                await self.db.execute(
                    pg_insert(conversation_reads)
                    .values(
                        conversation_id=convo["id"],
                        user_id=participant,
                        last_read_at=func.now(),
                    )
                    .on_conflict_do_nothing(index_elements=["conversation_id", "user_id"])
                )

        logger.info(
            "chat_created",
            conversation_id=str(convo["id"]),
            client_user_id=str(initiator.id),
            provider_user_id=str(provider_user_id),
        )

        return ConversationResponse.model_validate(convo)

    async def list_chats(self, user_id: UUID, pagination: Pagination) -> ChatListResponse:
        """
        List the caller's conversations, most recently active first.

        Each entry carries the other participant, the latest message and the
        number of messages the caller has not read.
        """
        result = await self.db.execute(
            LIST_CHATS_SQL,
            {"user_id": user_id, "limit": pagination.limit, "offset": pagination.offset},
        )

        items = [
            ChatSummary(
                id=row["id"],
                created_at=row["created_at"],
                last_message_at=row["last_message_at"],
                other_user=ChatParticipant(
                    id=row["other_user_id"],
                    name=row["provider_display_name"] or row["other_user_name"],
                    role=row["other_user_role"],
                    avatar_url=row["provider_avatar"],
                ),
                last_message=row["last_message"],
                last_message_created_at=row["last_message_created_at"],
                unread_count=row["unread_count"],
            )
            for row in result.mappings().all()
        ]

        return ChatListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(items),
            items=items,
        )

    async def list_messages(
        self, conversation_id: UUID, user_id: UUID, pagination: Pagination
    ) -> MessageListResponse:
        """
        Page through a conversation.

        Pages are counted from the newest message backwards, but each page is
        returned oldest to newest.
        """
        await self.ensure_member(conversation_id, user_id)

        result = await self.db.execute(
            LIST_MESSAGES_SQL,
            {
                "conversation_id": conversation_id,
                "limit": pagination.limit,
                "offset": pagination.offset,
            },
        )
        rows = list(reversed(result.mappings().all()))

        items = [
            MessageItem(
                id=row["id"],
                sender=MessageSender(
                    id=row["sender_user_id"],
                    name=row["sender_name"],
                    role=row["sender_role"],
                ),
                content=row["content"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

        return MessageListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(items),
            items=items,
        )

    async def send_message(
        self, conversation_id: UUID, sender_id: UUID, content: str
    ) -> MessageResponse:
        """
        Post a message and bump the conversation's activity time.

        Raises:
            NotFoundException: If the conversation does not exist
            ForbiddenException: If the sender is not a participant
        """
        await self.ensure_member(conversation_id, sender_id)

        async with transaction(self.db):
            result = await self.db.execute(
                INSERT_MESSAGE_SQL,
                {
                    "conversation_id": conversation_id,
                    "sender_user_id": sender_id,
                    "content": content,
                },
            )
            message = dict(result.mappings().one())
            await self.db.execute(TOUCH_CONVERSATION_SQL, {"conversation_id": conversation_id})

        logger.info(
            "message_sent",
            conversation_id=str(conversation_id),
            message_id=str(message["id"]),
            sender_user_id=str(sender_id),
        )

        return MessageResponse.model_validate(message)

    async def mark_read(self, conversation_id: UUID, user_id: UUID) -> None:
        """Move the caller's read marker to now."""
        await self.ensure_member(conversation_id, user_id)

        stmt = pg_insert(conversation_reads).values(
            conversation_id=conversation_id, user_id=user_id, last_read_at=func.now()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["conversation_id", "user_id"],
            set_={"last_read_at": stmt.excluded.last_read_at},
        )

        async with transaction(self.db):
            await self.db.execute(stmt)
