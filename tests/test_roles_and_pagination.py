"""Tests for role capabilities and page window arithmetic."""

import pytest

from app.core.pagination import paginate
from app.core.roles import UserRole


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (
            UserRole.GUEST,
            {"can_start_chat"},
        ),
        (
            UserRole.PROVIDER,
            {"can_manage_profile", "can_publish_feed", "can_submit_blacklist"},
        ),
        (
            UserRole.ADMIN,
            {"can_moderate"},
        ),
    ],
)
def test_role_capabilities(role: UserRole, expected: set[str]):
    """Each role grants exactly its own capabilities."""
    capabilities = {
        "can_start_chat",
        "can_manage_profile",
        "can_publish_feed",
        "can_submit_blacklist",
        "can_moderate",
    }

    granted = {name for name in capabilities if getattr(role, name)}

    assert granted == expected


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        UserRole("SUPERUSER")


def test_paginate_defaults():
    pagination = paginate(None, None, default_limit=20, max_limit=50)

    assert pagination.page == 1
    assert pagination.limit == 20
    assert pagination.offset == 0


def test_paginate_offset():
    pagination = paginate(3, 30, default_limit=30, max_limit=100)

    assert pagination.offset == 60


@pytest.mark.parametrize(
    ("page", "limit", "expected_page", "expected_limit"),
    [
        (0, 10, 1, 10),
        (-4, 10, 1, 10),
        (2, 0, 2, 1),
        (2, -5, 2, 1),
        (1, 500, 1, 50),
    ],
)
def test_paginate_clamps_out_of_range_values(page, limit, expected_page, expected_limit):
    """Out-of-range values are pulled into range instead of rejected."""
    pagination = paginate(page, limit, default_limit=20, max_limit=50)

    assert (pagination.page, pagination.limit) == (expected_page, expected_limit)
