"""Favorite service for guest bookmarks of providers."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.database import transaction
from app.models.community import favorites
from app.models.providers import provider_profiles
from app.schemas.favorites import FavoriteItem, FavoriteListResponse
from app.services.provider_service import latest_media_url


class FavoriteService:
    """Service for favorite operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def add(self, user_id: UUID, provider_id: UUID) -> None:
        """
        Bookmark a provider; repeating the call is harmless.

        Raises:
            NotFoundException: If the provider does not exist
        """
        result = await self.db.execute(
            select(provider_profiles.c.id).where(provider_profiles.c.id == provider_id).limit(1)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundException("Provider not found")

        async with transaction(self.db):
            await self.db.execute(
                pg_insert(favorites)
                .values(user_id=user_id, provider_id=provider_id)
                .on_conflict_do_nothing(index_elements=["user_id", "provider_id"])
            )

    async def remove(self, user_id: UUID, provider_id: UUID) -> None:
        """Drop a bookmark if present."""
        async with transaction(self.db):
            await self.db.execute(
                delete(favorites).where(
                    favorites.c.user_id == user_id, favorites.c.provider_id == provider_id
                )
            )

    async def list_for_user(self, user_id: UUID) -> FavoriteListResponse:
        """The caller's bookmarks, most recent first."""
        p = provider_profiles
        result = await self.db.execute(
            select(
                p.c.id.label("provider_id"),
                p.c.display_name,
                p.c.state,
                p.c.city,
                p.c.verification_status,
                p.c.subscription_expires_at,
                p.c.created_at,
                latest_media_url(p.c.id, "is_cover").label("cover_url"),
                latest_media_url(p.c.id, "is_avatar").label("avatar_url"),
            )
            .select_from(favorites.join(p, p.c.id == favorites.c.provider_id))
            .where(favorites.c.user_id == user_id)
            .order_by(favorites.c.created_at.desc())
        )
        items = [FavoriteItem.model_validate(dict(row)) for row in result.mappings().all()]
        return FavoriteListResponse(count=len(items), items=items)
