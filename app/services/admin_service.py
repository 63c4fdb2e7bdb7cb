"""Admin moderation service with an audit trail."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.pagination import Pagination
from app.database import transaction
from app.models.community import admin_actions
from app.models.providers import provider_profiles, subscription_events
from app.models.users import users
from app.schemas.admin import (
    ActivateSubscriptionRequest,
    AdminActionItem,
    AdminProviderDetail,
    AdminProviderDetailResponse,
    AdminProviderItem,
    AdminProviderListResponse,
    ModerationResponse,
    SubscriptionResponse,
    SuspensionResponse,
)
from app.schemas.providers import VerificationStatus
from app.services.provider_service import ProviderService, latest_media_url

logger = structlog.get_logger(__name__)


class AdminAction:
    """Audit trail action names."""

    PROVIDER_APPROVED = "PROVIDER_APPROVED"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    PROVIDER_SUSPENDED = "PROVIDER_SUSPENDED"
    PROVIDER_UNSUSPENDED = "PROVIDER_UNSUSPENDED"
    SUBSCRIPTION_ACTIVATED = "SUBSCRIPTION_ACTIVATED"


class AdminService:
    """Service for provider moderation."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _record(
        self,
        admin_user_id: UUID,
        action: str,
        provider_id: UUID,
        meta: dict[str, Any],
    ) -> None:
        """Append to the audit trail; callers run this inside their transaction."""
        await self.db.execute(
            insert(admin_actions).values(
                admin_user_id=admin_user_id,
                action=action,
                target_provider_id=provider_id,
                meta=meta,
            )
        )

    async def list_providers(
        self, status: VerificationStatus, pagination: Pagination
    ) -> AdminProviderListResponse:
        """Moderation queue filtered by verification status, newest first."""
        p = provider_profiles
        result = await self.db.execute(
            select(
                p.c.id,
                p.c.user_id,
                p.c.display_name,
                p.c.state,
                p.c.city,
                p.c.verification_status,
                p.c.verification_rejection_reason,
                p.c.is_suspended,
                p.c.subscription_expires_at,
                p.c.created_at,
                latest_media_url(p.c.id, "is_cover").label("cover_url"),
                latest_media_url(p.c.id, "is_avatar").label("avatar_url"),
            )
            .where(p.c.verification_status == status.value)
            .order_by(p.c.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        providers = [AdminProviderItem.model_validate(dict(row)) for row in result.mappings().all()]
        return AdminProviderListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(providers),
            providers=providers,
        )

    async def get_provider(self, provider_id: UUID) -> AdminProviderDetailResponse:
        """
        Full verification packet for one provider.

        Includes the hidden stats fields and every media item, the
        verification selfie among them.

        Raises:
            NotFoundException: If the provider does not exist
        """
        result = await self.db.execute(
            select(
                provider_profiles,
                users.c.email.label("user_email"),
                users.c.phone.label("user_phone"),
            )
            .select_from(provider_profiles.join(users, users.c.id == provider_profiles.c.user_id))
            .where(provider_profiles.c.id == provider_id)
            .limit(1)
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Provider not found")

        media = await ProviderService(self.db).list_media(provider_id)
        return AdminProviderDetailResponse(
            provider=AdminProviderDetail.model_validate(dict(row)),
            media=media,
        )

    async def _set_verification(
        self,
        provider_id: UUID,
        admin_user_id: UUID,
        status: VerificationStatus,
        rejection_reason: str | None,
        action: str,
        meta: dict[str, Any],
    ) -> ModerationResponse:
        async with transaction(self.db):
            result = await self.db.execute(
                update(provider_profiles)
                .where(provider_profiles.c.id == provider_id)
                .values(
                    verification_status=status.value,
                    verification_rejection_reason=rejection_reason,
                    updated_at=func.now(),
                )
                .returning(provider_profiles.c.id, provider_profiles.c.verification_status)
            )
            updated = result.mappings().first()
            if not updated:
                raise NotFoundException("Provider not found")

            await self._record(admin_user_id, action, provider_id, meta)

        logger.info(
            "provider_verification_changed",
            provider_id=str(provider_id),
            admin_user_id=str(admin_user_id),
            status=status.value,
        )
        return ModerationResponse(provider_id=provider_id, status=updated["verification_status"])

    async def approve_provider(
        self, provider_id: UUID, admin_user_id: UUID, note: str | None = None
    ) -> ModerationResponse:
        """Approve a provider and clear any earlier rejection reason."""
        return await self._set_verification(
            provider_id,
            admin_user_id,
            VerificationStatus.APPROVED,
            None,
            AdminAction.PROVIDER_APPROVED,
            {"note": note},
        )

    async def reject_provider(
        self, provider_id: UUID, admin_user_id: UUID, reason: str
    ) -> ModerationResponse:
        """Reject a provider with a reason they can see."""
        return await self._set_verification(
            provider_id,
            admin_user_id,
            VerificationStatus.REJECTED,
            reason,
            AdminAction.PROVIDER_REJECTED,
            {"reason": reason},
        )

    async def set_suspension(
        self,
        provider_id: UUID,
        admin_user_id: UUID,
        suspended: bool,
        reason: str | None = None,
    ) -> SuspensionResponse:
        """
        Suspend or reinstate a provider.

        Suspended providers drop out of the public listing regardless of
        verification status or subscription.

        Raises:
            NotFoundException: If the provider does not exist
        """
        async with transaction(self.db):
            result = await self.db.execute(
                update(provider_profiles)
                .where(provider_profiles.c.id == provider_id)
                .values(
                    is_suspended=suspended,
                    suspension_reason=reason if suspended else None,
                    updated_at=func.now(),
                )
                .returning(provider_profiles.c.is_suspended, provider_profiles.c.suspension_reason)
            )
            updated = result.mappings().first()
            if not updated:
                raise NotFoundException("Provider not found")

            action = (
                AdminAction.PROVIDER_SUSPENDED if suspended else AdminAction.PROVIDER_UNSUSPENDED
            )
            await self._record(admin_user_id, action, provider_id, {"reason": reason})

        logger.info(
            "provider_suspension_changed",
            provider_id=str(provider_id),
            admin_user_id=str(admin_user_id),
            suspended=suspended,
        )
        return SuspensionResponse(
            provider_id=provider_id,
            is_suspended=updated["is_suspended"],
            suspension_reason=updated["suspension_reason"],
        )

    async def activate_subscription(
        self,
        provider_id: UUID,
        admin_user_id: UUID,
        data: ActivateSubscriptionRequest,
    ) -> SubscriptionResponse:
        """
        Extend a provider's subscription by a number of days.

        Time still left on an active subscription is kept: the extension
        starts from the current expiry when that lies in the future.

        Raises:
            NotFoundException: If the provider does not exist
        """
        async with transaction(self.db):
            result = await self.db.execute(
                select(provider_profiles.c.subscription_expires_at)
                .where(provider_profiles.c.id == provider_id)
                .with_for_update()
            )
            row = result.mappings().first()
            if not row:
                raise NotFoundException("Provider not found")

            now = datetime.now(UTC)
            current = row["subscription_expires_at"]
            if current is not None and current > now:
                event_type, start = "RENEWED", current
            else:
                event_type, start = "ACTIVATED", now
            expires_at = start + timedelta(days=data.days)

            await self.db.execute(
                update(provider_profiles)
                .where(provider_profiles.c.id == provider_id)
                .values(subscription_expires_at=expires_at, updated_at=func.now())
            )
            await self.db.execute(
                insert(subscription_events).values(
                    provider_id=provider_id,
                    event_type=event_type,
                    amount=data.amount,
                    reference=data.reference,
                )
            )
            await self._record(
                admin_user_id,
                AdminAction.SUBSCRIPTION_ACTIVATED,
                provider_id,
                {
                    "days": data.days,
                    "amount": data.amount,
                    "reference": data.reference,
                    "eventType": event_type,
                    "expiresAt": expires_at.isoformat(),
                },
            )

        logger.info(
            "provider_subscription_extended",
            provider_id=str(provider_id),
            admin_user_id=str(admin_user_id),
            event_type=event_type,
            days=data.days,
        )
        return SubscriptionResponse(
            provider_id=provider_id,
            event_type=event_type,
            subscription_expires_at=expires_at,
        )

    async def list_actions(self, provider_id: UUID) -> list[AdminActionItem]:
        """Audit trail of one provider, newest first."""
        result = await self.db.execute(
            select(admin_actions)
            .where(admin_actions.c.target_provider_id == provider_id)
            .order_by(admin_actions.c.created_at.desc())
        )
        return [AdminActionItem.model_validate(dict(row)) for row in result.mappings().all()]
