"""Tests for conversation control flow with a mocked session."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.pagination import Pagination
from app.core.roles import Identity, UserRole
from app.services.chat_service import ChatService


def conversation(client_id, provider_id, **extra):
    return {"id": uuid4(), "client_user_id": client_id, "provider_user_id": provider_id, **extra}


class TestMembership:
    """Tests for the participant check guarding every conversation route."""

    async def test_missing_conversation(self, mock_db: AsyncMock, make_result):
        mock_db.execute.return_value = make_result()

        with pytest.raises(NotFoundException) as exc_info:
            await ChatService(mock_db).ensure_member(uuid4(), uuid4())

        assert exc_info.value.message == "Conversation not found"

    async def test_outsider_is_forbidden(self, mock_db: AsyncMock, make_result):
        mock_db.execute.return_value = make_result([conversation(uuid4(), uuid4())])

        with pytest.raises(ForbiddenException):
            await ChatService(mock_db).ensure_member(uuid4(), uuid4())

    @pytest.mark.parametrize("side", ["client_user_id", "provider_user_id"])
    async def test_participants_are_members(self, mock_db: AsyncMock, make_result, side):
        convo = conversation(uuid4(), uuid4())
        mock_db.execute.return_value = make_result([convo])

        row = await ChatService(mock_db).ensure_member(convo["id"], convo[side])

        assert row["id"] == convo["id"]

    @pytest.mark.parametrize("action", ["send", "read", "list"])
    async def test_outsider_cannot_use_conversation(self, mock_db: AsyncMock, make_result, action):
        """Sending, marking read and listing all stop at the membership check."""
        mock_db.execute.return_value = make_result([conversation(uuid4(), uuid4())])
        service = ChatService(mock_db)
        calls = {
            "send": lambda: service.send_message(uuid4(), uuid4(), "hi"),
            "read": lambda: service.mark_read(uuid4(), uuid4()),
            "list": lambda: service.list_messages(uuid4(), uuid4(), Pagination(1, 30)),
        }

        with pytest.raises(ForbiddenException):
            await calls[action]()

        assert mock_db.execute.await_count == 1
        mock_db.commit.assert_not_called()


class TestCreateOrGetChat:
    """Tests for opening a conversation."""

    @pytest.mark.parametrize("role", [UserRole.PROVIDER, UserRole.ADMIN])
    async def test_only_guests_start_chats(self, mock_db: AsyncMock, role):
        with pytest.raises(ForbiddenException) as exc_info:
            await ChatService(mock_db).create_or_get_chat(Identity(uuid4(), role), uuid4())

        assert exc_info.value.message == "Only clients can start a new chat"
        mock_db.execute.assert_not_called()

    async def test_unknown_provider(self, mock_db: AsyncMock, make_result):
        mock_db.execute.return_value = make_result()

        with pytest.raises(NotFoundException):
            await ChatService(mock_db).create_or_get_chat(
                Identity(uuid4(), UserRole.GUEST), uuid4()
            )

    async def test_target_must_be_provider(self, mock_db: AsyncMock, make_result):
        target = uuid4()
        mock_db.execute.return_value = make_result([{"id": target, "role": "GUEST"}])

        with pytest.raises(BadRequestException) as exc_info:
            await ChatService(mock_db).create_or_get_chat(
                Identity(uuid4(), UserRole.GUEST), target
            )

        assert exc_info.value.message == "Target user is not a provider"

    async def test_creates_read_markers_for_both(self, mock_db: AsyncMock, make_result):
        guest, provider = uuid4(), uuid4()
        now = datetime.now(UTC)
        convo = conversation(guest, provider, created_at=now, last_message_at=now)
        mock_db.execute.side_effect = [
            make_result([{"id": provider, "role": "PROVIDER"}]),
            make_result([convo]),
            make_result(),
            make_result(),
        ]

        response = await ChatService(mock_db).create_or_get_chat(
            Identity(guest, UserRole.GUEST), provider
        )

        assert response.id == convo["id"]
        marker_users = {
            call.args[0].compile().params["user_id"]
            for call in mock_db.execute.await_args_list[2:]
        }
        assert marker_users == {guest, provider}
        mock_db.commit.assert_awaited_once()

    async def test_failed_read_marker_rolls_back(self, mock_db: AsyncMock, make_result):
        """A conversation is never committed without both read markers."""
        guest, provider = uuid4(), uuid4()
        now = datetime.now(UTC)
        convo = conversation(guest, provider, created_at=now, last_message_at=now)
        mock_db.execute.side_effect = [
            make_result([{"id": provider, "role": "PROVIDER"}]),
            make_result([convo]),
            make_result(),
            OperationalError("INSERT INTO conversation_reads", {}, Exception("connection lost")),
        ]

        with pytest.raises(OperationalError):
            await ChatService(mock_db).create_or_get_chat(
                Identity(guest, UserRole.GUEST), provider
            )

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()


async def test_list_messages_returns_page_oldest_first(mock_db: AsyncMock, make_result):
    guest, provider = uuid4(), uuid4()
    convo = conversation(guest, provider)
    now = datetime.now(UTC)
    newest_first = [
        {
            "id": uuid4(),
            "sender_user_id": guest,
            "sender_name": "G",
            "sender_role": "GUEST",
            "content": f"message {i}",
            "created_at": now - timedelta(minutes=i),
        }
        for i in range(3)
    ]
    mock_db.execute.side_effect = [make_result([convo]), make_result(newest_first)]

    response = await ChatService(mock_db).list_messages(convo["id"], guest, Pagination(1, 30))

    assert [item.content for item in response.items] == ["message 2", "message 1", "message 0"]
    assert response.count == 3


async def test_send_message_bumps_conversation(mock_db: AsyncMock, make_result):
    guest, provider = uuid4(), uuid4()
    convo = conversation(guest, provider)
    message = {"id": uuid4(), "content": "hello", "created_at": datetime.now(UTC)}
    mock_db.execute.side_effect = [make_result([convo]), make_result([message]), make_result()]

    response = await ChatService(mock_db).send_message(convo["id"], provider, "hello")

    assert response.content == "hello"
    touch_sql = str(mock_db.execute.await_args_list[2].args[0])
    assert "last_message_at = now()" in touch_sql
    mock_db.commit.assert_awaited_once()


async def test_send_message_rolls_back_when_bump_fails(mock_db: AsyncMock, make_result):
    """The message insert is undone if the conversation cannot be bumped."""
    guest, provider = uuid4(), uuid4()
    convo = conversation(guest, provider)
    message = {"id": uuid4(), "content": "hello", "created_at": datetime.now(UTC)}
    mock_db.execute.side_effect = [
        make_result([convo]),
        make_result([message]),
        OperationalError("UPDATE conversations", {}, Exception("connection lost")),
    ]

    with pytest.raises(OperationalError):
        await ChatService(mock_db).send_message(convo["id"], guest, "hello")

    assert mock_db.execute.await_count == 3
    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_awaited()
