"""Tests for feed visibility filtering."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.core.exceptions import NotFoundException
from app.core.pagination import Pagination
from app.services.feed_service import FeedService


def compiled_sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


async def test_list_feed_only_reads_visible_providers(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result([])

    response = await FeedService(mock_db).list_feed(Pagination(page=1, limit=20))

    assert response.count == 0
    sql = compiled_sql(mock_db.execute.await_args.args[0])
    assert "provider_profiles.verification_status = " in sql
    assert "provider_profiles.is_suspended IS false" in sql
    assert "provider_profiles.subscription_expires_at > now()" in sql
    params = mock_db.execute.await_args.args[0].compile().params
    assert "APPROVED" in params.values()


async def test_post_by_hidden_provider_is_404(mock_db: AsyncMock, make_result):
    mock_db.execute.return_value = make_result()

    with pytest.raises(NotFoundException) as exc_info:
        await FeedService(mock_db).get_post(uuid4())

    assert exc_info.value.message == "Post not found"
    sql = compiled_sql(mock_db.execute.await_args.args[0])
    assert "provider_profiles.is_suspended IS false" in sql
    assert "provider_profiles.subscription_expires_at > now()" in sql
