"""Tests for the authentication service with a mocked session."""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.core.exceptions import BadRequestException, ConflictException, UnauthorizedException
from app.core.security import decode_access_token, get_password_hash, hash_reset_token
from app.schemas.auth import RegisterGuestRequest, RegisterProviderRequest
from app.services.auth_service import AuthService, calculate_age, normalize_email


def unique_violation() -> IntegrityError:
    orig = MagicMock(pgcode="23505", sqlstate="23505")
    return IntegrityError("INSERT INTO users ...", {}, orig)


class TestCalculateAge:
    """Tests for age computation from a date of birth."""

    def test_birthday_today_counts(self):
        assert calculate_age("2008-10-18", today=date(2026, 10, 18)) == 18

    def test_day_before_birthday(self):
        assert calculate_age("2008-10-19", today=date(2026, 10, 18)) == 17

    def test_leap_day_birthday(self):
        assert calculate_age("2008-02-29", today=date(2026, 2, 28)) == 17
        assert calculate_age("2008-02-29", today=date(2026, 3, 1)) == 18

    @pytest.mark.parametrize(
        "dob", ["18/10/2008", "2008-13-01", "yesterday", "", "20081018", "2008-W42-1"]
    )
    def test_unparsable(self, dob):
        assert calculate_age(dob) is None


def test_normalize_email():
    assert normalize_email("  Ada@Example.COM ") == "ada@example.com"


async def test_register_guest_issues_token(mock_db: AsyncMock, make_result):
    user_id = uuid4()
    mock_db.execute.return_value = make_result(
        [{"id": user_id, "email": "g@example.com", "role": "GUEST", "display_name": "G"}]
    )

    response = await AuthService(mock_db).register_guest(
        RegisterGuestRequest(email="G@Example.com", password="secret1", display_name="G")
    )

    assert response.user.id == user_id
    payload = decode_access_token(response.access_token)
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "GUEST"
    mock_db.commit.assert_awaited_once()


async def test_register_guest_duplicate_email(mock_db: AsyncMock):
    mock_db.execute.side_effect = unique_violation()

    with pytest.raises(ConflictException) as exc_info:
        await AuthService(mock_db).register_guest(
            RegisterGuestRequest(email="g@example.com", password="secret1", display_name="G")
        )

    assert exc_info.value.message == "Email already in use"
    mock_db.rollback.assert_awaited_once()


async def test_register_provider_under_18(mock_db: AsyncMock, provider_body, birthday):
    """A provider one day short of 18 is turned away before any write."""
    dob = birthday(18) + timedelta(days=1)
    request = RegisterProviderRequest.model_validate(provider_body(dob=dob.isoformat()))

    with pytest.raises(BadRequestException) as exc_info:
        await AuthService(mock_db).register_provider(request)

    assert exc_info.value.message == "You must be 18+ to register as a provider"
    mock_db.execute.assert_not_called()


async def test_register_provider_bad_dob(mock_db: AsyncMock, provider_body):
    request = RegisterProviderRequest.model_validate(provider_body(dob="18/10/2000"))

    with pytest.raises(BadRequestException) as exc_info:
        await AuthService(mock_db).register_provider(request)

    assert "YYYY-MM-DD" in exc_info.value.message


async def test_register_provider_writes_media(mock_db: AsyncMock, make_result, provider_body):
    """Cover, avatar, gallery and selfie rows are inserted in one batch."""
    user_id, profile_id = uuid4(), uuid4()
    mock_db.execute.side_effect = [
        make_result(
            [{"id": user_id, "email": "p@example.com", "role": "PROVIDER", "display_name": "Ada"}]
        ),
        make_result(
            [
                {
                    "id": profile_id,
                    "verification_status": "PENDING",
                    "is_suspended": False,
                    "subscription_expires_at": None,
                }
            ]
        ),
        make_result(),
    ]
    request = RegisterProviderRequest.model_validate(provider_body())

    response = await AuthService(mock_db).register_provider(request)

    assert response.provider_profile.id == profile_id
    assert response.provider_profile.verification_status == "PENDING"
    media_rows = mock_db.execute.await_args_list[2].args[1]
    assert len(media_rows) == 6
    assert sum(row["is_cover"] for row in media_rows) == 1
    assert sum(row["is_avatar"] for row in media_rows) == 1
    assert all(row["provider_id"] == profile_id for row in media_rows)
    mock_db.commit.assert_awaited_once()


async def test_login_wrong_password(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result(
        [
            {
                "id": uuid4(),
                "email": "g@example.com",
                "role": "GUEST",
                "display_name": "G",
                "password_hash": get_password_hash("right-pass"),
            }
        ]
    )

    with pytest.raises(UnauthorizedException) as exc_info:
        await AuthService(mock_db).login("g@example.com", "wrong-pass")

    assert exc_info.value.message == "Invalid credentials"


async def test_login_unknown_email(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result()

    with pytest.raises(UnauthorizedException):
        await AuthService(mock_db).login("nobody@example.com", "whatever")


async def test_forgot_password_unknown_email_is_silent(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result(scalar=None)

    response = await AuthService(mock_db).forgot_password("nobody@example.com")

    assert response.ok is True
    assert response.token is None
    mock_db.commit.assert_not_called()


async def test_forgot_password_stores_only_digest(
    mock_db: AsyncMock, make_result, monkeypatch
):
    monkeypatch.setattr(settings, "expose_reset_token", True)
    mock_db.execute.side_effect = [make_result(scalar=uuid4()), make_result()]

    response = await AuthService(mock_db).forgot_password("g@example.com")

    assert response.token is not None
    insert_stmt = mock_db.execute.await_args_list[1].args[0]
    params = insert_stmt.compile().params
    assert params["token_hash"] == hash_reset_token(response.token)
    assert response.token not in params.values()


def _token_row(**overrides):
    row = {
        "id": uuid4(),
        "user_id": uuid4(),
        "expires_at": datetime.now(UTC) + timedelta(minutes=30),
        "used_at": None,
    }
    row.update(overrides)
    return row


async def test_reset_password_unknown_token(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result()

    with pytest.raises(BadRequestException) as exc_info:
        await AuthService(mock_db).reset_password("x" * 64, "new-pass")

    assert exc_info.value.message == "Invalid or expired token"
    mock_db.rollback.assert_awaited_once()


async def test_reset_password_used_token(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result([_token_row(used_at=datetime.now(UTC))])

    with pytest.raises(BadRequestException) as exc_info:
        await AuthService(mock_db).reset_password("x" * 64, "new-pass")

    assert exc_info.value.message == "Token already used"


async def test_reset_password_expired_token(mock_db: AsyncMock, make_result):
    expired = _token_row(expires_at=datetime.now(UTC) - timedelta(seconds=1))
    mock_db.execute.return_value = make_result([expired])

    with pytest.raises(BadRequestException) as exc_info:
        await AuthService(mock_db).reset_password("x" * 64, "new-pass")

    assert exc_info.value.message == "Invalid or expired token"


async def test_reset_password_success(mock_db: AsyncMock, make_result):
    mock_db.execute.side_effect = [make_result([_token_row()]), make_result(), make_result()]

    await AuthService(mock_db).reset_password("x" * 64, "new-pass")

    assert mock_db.execute.await_count == 3
    mock_db.commit.assert_awaited_once()
    mock_db.rollback.assert_not_called()
