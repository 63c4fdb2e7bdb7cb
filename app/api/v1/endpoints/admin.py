"""Admin-only moderation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from app.core.exceptions import BadRequestException
from app.core.pagination import paginate
from app.dependencies import AdminIdentity, DatabaseSession
from app.schemas.admin import (
    ActivateSubscriptionRequest,
    AdminActionItem,
    AdminProviderDetailResponse,
    AdminProviderListResponse,
    ApproveProviderRequest,
    BlacklistVerifyResponse,
    ModerationResponse,
    RejectProviderRequest,
    SubscriptionResponse,
    SuspendProviderRequest,
    SuspensionResponse,
)
from app.schemas.providers import VerificationStatus
from app.services.admin_service import AdminService
from app.services.blacklist_service import BlacklistService

router = APIRouter(prefix="/admin", tags=["Admin"])


def parse_status(value: str | None) -> VerificationStatus:
    """Read a verification status filter, case-insensitively."""
    if not value:
        return VerificationStatus.PENDING
    try:
        return VerificationStatus(value.strip().upper())
    except ValueError:
        raise BadRequestException("Invalid status") from None


@router.get(
    "/providers",
    response_model=AdminProviderListResponse,
    summary="Moderation queue (admin only)",
)
async def list_providers(
    admin: AdminIdentity,
    db: DatabaseSession,
    status: str | None = Query(None, description="Verification status, PENDING by default"),
    page: int | None = Query(None, description="Page number"),
    limit: int | None = Query(None, description="Items per page (max 100)"),
) -> AdminProviderListResponse:
    """
    List providers by verification status.

    Args:
        admin: Authenticated admin
        db: Database session
        status: PENDING, APPROVED, REJECTED or NOT_SUBMITTED
        page: Page number
        limit: Items per page

    Returns:
        Page of providers, newest first
    """
    pagination = paginate(page, limit, default_limit=20, max_limit=100)
    return await AdminService(db).list_providers(parse_status(status), pagination)


@router.get(
    "/providers/{provider_id}",
    response_model=AdminProviderDetailResponse,
    summary="Provider verification packet (admin only)",
)
async def get_provider(
    provider_id: UUID,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> AdminProviderDetailResponse:
    """Everything needed to verify a provider, selfie included."""
    return await AdminService(db).get_provider(provider_id)


@router.post(
    "/providers/{provider_id}/approve",
    response_model=ModerationResponse,
    summary="Approve a provider (admin only)",
)
async def approve_provider(
    provider_id: UUID,
    admin: AdminIdentity,
    db: DatabaseSession,
    request: ApproveProviderRequest | None = None,
) -> ModerationResponse:
    """
    Approve a provider.

    Args:
        provider_id: Provider profile ID
        admin: Authenticated admin
        db: Database session
        request: Optional note for the audit trail

    Returns:
        New verification status
    """
    note = request.note if request else None
    return await AdminService(db).approve_provider(provider_id, admin.id, note)


@router.post(
    "/providers/{provider_id}/reject",
    response_model=ModerationResponse,
    summary="Reject a provider (admin only)",
)
async def reject_provider(
    provider_id: UUID,
    request: RejectProviderRequest,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> ModerationResponse:
    """Reject a provider with a reason."""
    return await AdminService(db).reject_provider(provider_id, admin.id, request.reason)


@router.post(
    "/providers/{provider_id}/suspend",
    response_model=SuspensionResponse,
    summary="Suspend a provider (admin only)",
)
async def suspend_provider(
    provider_id: UUID,
    request: SuspendProviderRequest,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> SuspensionResponse:
    """Hide a provider from the public listing."""
    return await AdminService(db).set_suspension(
        provider_id, admin.id, suspended=True, reason=request.reason
    )


@router.post(
    "/providers/{provider_id}/unsuspend",
    response_model=SuspensionResponse,
    summary="Lift a suspension (admin only)",
)
async def unsuspend_provider(
    provider_id: UUID,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> SuspensionResponse:
    return await AdminService(db).set_suspension(provider_id, admin.id, suspended=False)


@router.post(
    "/providers/{provider_id}/subscription",
    response_model=SubscriptionResponse,
    summary="Activate or renew a subscription (admin only)",
)
async def activate_subscription(
    provider_id: UUID,
    request: ActivateSubscriptionRequest,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> SubscriptionResponse:
    """
    Extend a provider's subscription.

    Remaining time on an active subscription is kept; the new days are
    added on top of it.
    """
    return await AdminService(db).activate_subscription(provider_id, admin.id, request)


@router.get(
    "/providers/{provider_id}/actions",
    response_model=list[AdminActionItem],
    summary="Moderation history of a provider (admin only)",
)
async def list_provider_actions(
    provider_id: UUID,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> list[AdminActionItem]:
    return await AdminService(db).list_actions(provider_id)


@router.post(
    "/blacklist/{entry_id}/verify",
    response_model=BlacklistVerifyResponse,
    summary="Verify a blacklist entry (admin only)",
)
async def verify_blacklist_entry(
    entry_id: UUID,
    admin: AdminIdentity,
    db: DatabaseSession,
) -> BlacklistVerifyResponse:
    """Confirm an entry; each admin is counted once."""
    verified_count = await BlacklistService(db).verify_entry(entry_id, admin.id)
    return BlacklistVerifyResponse(entry_id=entry_id, verified_count=verified_count)
