"""Admin moderation schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.providers import MediaResponse, ProviderProfileResponse, VerificationStatus


class ApproveProviderRequest(CamelModel):
    """Optional note recorded with an approval."""

    note: str | None = Field(None, max_length=500)


class RejectProviderRequest(CamelModel):
    """Reason shown to the provider."""

    reason: str = Field(..., min_length=3, max_length=500)


class SuspendProviderRequest(CamelModel):
    """Reason recorded with a suspension."""

    reason: str = Field(..., min_length=3, max_length=500)


class ActivateSubscriptionRequest(CamelModel):
    """Extend a provider's paid visibility window."""

    days: int = Field(..., ge=1, le=366)
    amount: int | None = Field(None, ge=0, description="Amount paid, in minor units")
    reference: str | None = Field(None, max_length=200)


class AdminProviderItem(CamelModel):
    """Row of the moderation queue."""

    id: UUID
    user_id: UUID
    display_name: str
    state: str | None = None
    city: str | None = None
    verification_status: VerificationStatus
    verification_rejection_reason: str | None = None
    is_suspended: bool
    subscription_expires_at: datetime | None = None
    created_at: datetime
    cover_url: str | None = None
    avatar_url: str | None = None


class AdminProviderListResponse(CamelModel):
    """Page of the moderation queue."""

    page: int
    limit: int
    count: int
    providers: list[AdminProviderItem]


class AdminProviderDetail(ProviderProfileResponse):
    """Full verification packet, including hidden stats."""

    user_email: str
    user_phone: str | None = None
    created_at: datetime
    updated_at: datetime


class AdminProviderDetailResponse(CamelModel):
    """Provider packet with every media item."""

    provider: AdminProviderDetail
    media: list[MediaResponse]


class ModerationResponse(CamelModel):
    """Result of a verification decision."""

    ok: bool = True
    provider_id: UUID
    status: VerificationStatus


class SuspensionResponse(CamelModel):
    """Result of a suspension change."""

    ok: bool = True
    provider_id: UUID
    is_suspended: bool
    suspension_reason: str | None = None


class SubscriptionResponse(CamelModel):
    """Result of a subscription activation."""

    ok: bool = True
    provider_id: UUID
    event_type: str
    subscription_expires_at: datetime


class BlacklistVerifyResponse(CamelModel):
    """Verification counter after an admin confirmation."""

    ok: bool = True
    entry_id: UUID
    verified_count: int


class AdminActionItem(CamelModel):
    """Audit trail entry."""

    id: UUID
    admin_user_id: UUID
    action: str
    target_provider_id: UUID | None = None
    meta: dict[str, Any] = {}
    created_at: datetime
