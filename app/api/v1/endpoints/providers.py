"""Provider profile endpoints."""

from fastapi import APIRouter, Query

from app.core.pagination import paginate
from app.dependencies import DatabaseSession, ProviderIdentity
from app.schemas.providers import (
    MyMediaResponse,
    MyProfileResponse,
    ProfileUpdateResponse,
    ProviderProfileUpdate,
    PublicProviderListResponse,
)
from app.services.provider_service import ProviderService

router = APIRouter()


def _split_services(services: str | None) -> list[str] | None:
    if not services:
        return None
    tags = [tag.strip() for tag in services.split(",") if tag.strip()]
    return tags or None


@router.get("", response_model=PublicProviderListResponse, summary="Browse providers")
async def list_providers(
    db: DatabaseSession,
    page: int | None = Query(None, description="Page number"),
    limit: int | None = Query(None, description="Items per page (max 50)"),
    state: str | None = Query(None, description="Filter by state"),
    city: str | None = Query(None, description="Filter by city"),
    services: str | None = Query(None, description="Comma-separated service tags"),
) -> PublicProviderListResponse:
    """
    Public listing of approved, active and subscribed providers.

    Args:
        db: Database session
        page: Page number
        limit: Items per page
        state: State filter, case-insensitive
        city: City filter, case-insensitive
        services: Providers offering any of these services

    Returns:
        Page of provider cards
    """
    pagination = paginate(page, limit, default_limit=20, max_limit=50)
    return await ProviderService(db).list_public_providers(
        pagination, state=state, city=city, services=_split_services(services)
    )


@router.get("/me", response_model=MyProfileResponse, summary="My provider profile")
async def get_my_profile(identity: ProviderIdentity, db: DatabaseSession) -> MyProfileResponse:
    """
    Get the caller's account, profile and media.

    Args:
        identity: Authenticated provider
        db: Database session

    Returns:
        Profile with avatar, cover and gallery URLs
    """
    return await ProviderService(db).get_my_profile(identity.id)


@router.get("/me/media", response_model=MyMediaResponse, summary="My media")
async def get_my_media(identity: ProviderIdentity, db: DatabaseSession) -> MyMediaResponse:
    """Media owned by the caller, newest first."""
    return await ProviderService(db).get_my_media(identity.id)


@router.patch("/me", response_model=ProfileUpdateResponse, summary="Update my provider profile")
async def update_my_profile(
    request: ProviderProfileUpdate,
    identity: ProviderIdentity,
    db: DatabaseSession,
) -> ProfileUpdateResponse:
    """Partially update the caller's profile; absent fields stay as they are."""
    return await ProviderService(db).update_my_profile(identity.id, request)
