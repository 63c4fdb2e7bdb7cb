"""Provider profile service for business logic."""

import json
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import NotFoundException
from app.core.pagination import Pagination
from app.database import transaction
from app.models.providers import provider_media, provider_profiles
from app.models.users import users
from app.schemas.providers import (
    MediaResponse,
    MyMediaResponse,
    MyProfileResponse,
    ProfileUpdateResponse,
    ProviderAccountResponse,
    ProviderProfileResponse,
    ProviderProfileUpdate,
    PublicProviderItem,
    PublicProviderListResponse,
    Rates,
)

logger = structlog.get_logger(__name__)

MEDIA_COLUMNS = (
    provider_media.c.id,
    provider_media.c.url,
    provider_media.c.type,
    provider_media.c.is_cover,
    provider_media.c.is_avatar,
    provider_media.c.created_at,
)


def latest_media_url(profile_id: ColumnElement[Any], flag: str) -> Any:
    """
    Correlated subquery for the newest media URL carrying a flag.

    Several rows may be flagged as cover or avatar; the most recent one wins.

    Args:
        profile_id: Provider profile id column of the outer query
        flag: ``is_cover`` or ``is_avatar``

    Returns:
        Scalar subquery yielding a URL or NULL
    """
    m = provider_media.alias("m")
    return (
        select(m.c.url)
        .where(m.c.provider_id == profile_id, m.c[flag].is_(True))
        .order_by(m.c.created_at.desc())
        .limit(1)
        .scalar_subquery()
    )


def visible_provider_conditions(p: Any = provider_profiles) -> list[ColumnElement[bool]]:
    """
    Filters a profile must pass to show up in the public listing or feed.

    The provider has to be approved, not suspended and holding a
    subscription that has not expired.
    """
    return [
        p.c.verification_status == "APPROVED",
        p.c.is_suspended.is_(False),
        p.c.subscription_expires_at > func.now(),
    ]


def _as_dict(value: Any) -> dict[str, Any]:
    """JSON columns may come back decoded or as raw text."""
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value) or {}
    return dict(value)


def merge_stats(current: dict[str, Any], data: ProviderProfileUpdate) -> dict[str, Any]:
    """
    Shallow-merge contact and bio edits into the stats map.

    Keys not touched by the update, including ones this service does not
    know about, are carried over unchanged.
    """
    merged = dict(current)
    if data.whatsapp_number is not None:
        merged["phoneNumber"] = data.whatsapp_number
        merged["whatsappNumber"] = data.whatsapp_number
    if data.call_number is not None:
        merged["callNumber"] = data.call_number
    if data.bio is not None:
        merged["bio"] = data.bio
    return merged


def merge_rates(current: dict[str, Any], rates: Rates | None) -> dict[str, Any]:
    """Overwrite only the price tiers present in the update."""
    merged = dict(current)
    if rates is not None:
        merged.update(rates.model_dump(by_alias=True, exclude_none=True))
    return merged


class ProviderService:
    """Service for provider profile operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_profile_row(self, user_id: UUID, *, for_update: bool = False) -> dict | None:
        """Fetch the provider profile owned by a user."""
        stmt = select(provider_profiles).where(provider_profiles.c.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def get_profile_id(self, user_id: UUID) -> UUID | None:
        """Map a user id to its provider profile id."""
        result = await self.db.execute(
            select(provider_profiles.c.id).where(provider_profiles.c.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_media(self, provider_id: UUID) -> list[MediaResponse]:
        """All media of a provider, newest first."""
        result = await self.db.execute(
            select(*MEDIA_COLUMNS)
            .where(provider_media.c.provider_id == provider_id)
            .order_by(provider_media.c.created_at.desc())
        )
        return [MediaResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def get_my_profile(self, user_id: UUID) -> MyProfileResponse:
        """
        Get the caller's account, profile and media.

        Args:
            user_id: Provider's user ID

        Returns:
            Profile with convenience image fields

        Raises:
            NotFoundException: If the user or the profile is missing
        """
        result = await self.db.execute(
            select(
                users.c.id,
                users.c.email,
                users.c.role,
                users.c.display_name,
                users.c.phone,
                users.c.call_number,
                users.c.whatsapp_number,
                users.c.created_at,
            ).where(users.c.id == user_id)
        )
        user = result.mappings().first()
        if not user:
            raise NotFoundException("User not found")

        profile = await self.get_profile_row(user_id)
        if not profile:
            raise NotFoundException("Provider profile not found")

        media = await self.list_media(profile["id"])

        # Media is newest first, so the first flagged item is the current one
        avatar = next((m for m in media if m.is_avatar), None)
        cover = next((m for m in media if m.is_cover), None)
        selfie = _as_dict(profile["stats"]).get("verificationSelfie")
        gallery = [
            m.url for m in media if not m.is_avatar and not m.is_cover and m.url != selfie
        ]

        return MyProfileResponse(
            user=ProviderAccountResponse.model_validate(dict(user)),
            provider_profile=ProviderProfileResponse.model_validate(profile),
            media=media,
            profile_image=avatar.url if avatar else None,
            cover_image=cover.url if cover else None,
            gallery_images=gallery,
        )

    async def get_my_media(self, user_id: UUID) -> MyMediaResponse:
        """Get the caller's media only."""
        provider_id = await self.get_profile_id(user_id)
        if provider_id is None:
            raise NotFoundException("Provider profile not found")
        return MyMediaResponse(media=await self.list_media(provider_id))

    async def update_my_profile(
        self, user_id: UUID, data: ProviderProfileUpdate
    ) -> ProfileUpdateResponse:
        """
        Apply a partial update to the caller's profile.

        Only fields present in the payload are written. The stats and rates
        maps are merged key by key, display name and contact numbers are
        mirrored onto the account row, and gallery images are added or
        removed by URL. Cover and avatar rows are never removed here.

        Args:
            user_id: Provider's user ID
            data: Fields to change

        Returns:
            Updated profile and its media

        Raises:
            NotFoundException: If the caller has no provider profile
        """
        async with transaction(self.db):
            current = await self.get_profile_row(user_id, for_update=True)
            if not current:
                raise NotFoundException("Provider profile not found")

            provider_id = current["id"]

            changes: dict[str, Any] = {
                "stats": merge_stats(_as_dict(current["stats"]), data),
                "rates": merge_rates(_as_dict(current["rates"]), data.rates),
                "updated_at": func.now(),
            }
            if data.display_name is not None:
                changes["display_name"] = data.display_name
            if data.state is not None:
                changes["state"] = data.state
            if data.city is not None:
                changes["city"] = data.city
            if data.bio is not None:
                changes["bio"] = data.bio
            if data.services is not None:
                changes["services"] = data.services

            result = await self.db.execute(
                update(provider_profiles)
                .where(provider_profiles.c.id == provider_id)
                .values(**changes)
                .returning(provider_profiles)
            )
            updated = dict(result.mappings().one())

            account_changes: dict[str, Any] = {}
            if data.display_name is not None:
                account_changes["display_name"] = data.display_name
            if data.whatsapp_number is not None:
                account_changes["whatsapp_number"] = data.whatsapp_number
            if data.call_number is not None:
                account_changes["call_number"] = data.call_number
            if account_changes:
                await self.db.execute(
                    update(users)
                    .where(users.c.id == user_id)
                    .values(**account_changes, updated_at=func.now())
                )

            if data.remove_gallery_urls:
                await self.db.execute(
                    delete(provider_media).where(
                        provider_media.c.provider_id == provider_id,
                        provider_media.c.url.in_(data.remove_gallery_urls),
                        provider_media.c.is_cover.is_(False),
                        provider_media.c.is_avatar.is_(False),
                    )
                )

            if data.new_gallery_images:
                await self.db.execute(
                    insert(provider_media),
                    [
                        {"provider_id": provider_id, "url": url, "type": "IMAGE"}
                        for url in data.new_gallery_images
                    ],
                )

            media = await self.list_media(provider_id)

        logger.info(
            "provider_profile_updated",
            provider_id=str(provider_id),
            fields=sorted(data.model_dump(exclude_none=True)),
        )

        return ProfileUpdateResponse(
            provider=ProviderProfileResponse.model_validate(updated),
            media=media,
        )

    async def list_public_providers(
        self,
        pagination: Pagination,
        state: str | None = None,
        city: str | None = None,
        services: list[str] | None = None,
    ) -> PublicProviderListResponse:
        """
        List providers visible to the public.

        Only providers passing ``visible_provider_conditions`` are listed.

        Args:
            pagination: Page window
            state: Case-insensitive state filter
            city: Case-insensitive city filter
            services: Match providers offering any of these services

        Returns:
            Page of provider cards, newest first
        """
        p = provider_profiles
        conditions = visible_provider_conditions(p)
        if state:
            conditions.append(func.lower(p.c.state) == state.strip().lower())
        if city:
            conditions.append(func.lower(p.c.city) == city.strip().lower())
        if services:
            conditions.append(p.c.services.overlap(services))

        stmt = (
            select(
                p.c.id,
                p.c.user_id,
                p.c.display_name,
                p.c.bio,
                p.c.state,
                p.c.city,
                p.c.services,
                p.c.rates,
                p.c.verification_status,
                p.c.subscription_expires_at,
                p.c.created_at,
                latest_media_url(p.c.id, "is_cover").label("cover_url"),
                latest_media_url(p.c.id, "is_avatar").label("avatar_url"),
            )
            .where(and_(*conditions))
            .order_by(p.c.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        result = await self.db.execute(stmt)
        items = [PublicProviderItem.model_validate(dict(row)) for row in result.mappings().all()]

        return PublicProviderListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(items),
            items=items,
        )
