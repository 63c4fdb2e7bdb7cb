"""Favorite schemas."""

from datetime import datetime
from uuid import UUID

from app.schemas.base import CamelModel
from app.schemas.providers import VerificationStatus


class FavoriteItem(CamelModel):
    """Bookmarked provider card."""

    provider_id: UUID
    display_name: str
    state: str | None = None
    city: str | None = None
    verification_status: VerificationStatus
    subscription_expires_at: datetime | None = None
    cover_url: str | None = None
    avatar_url: str | None = None
    created_at: datetime


class FavoriteListResponse(CamelModel):
    """The caller's favorites, most recent first."""

    count: int
    items: list[FavoriteItem]
