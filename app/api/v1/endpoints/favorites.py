"""Favorite provider endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import CurrentIdentity, DatabaseSession
from app.schemas.base import OkResponse
from app.schemas.favorites import FavoriteListResponse
from app.services.favorite_service import FavoriteService

router = APIRouter()


@router.get("", response_model=FavoriteListResponse, summary="List my favorites")
async def list_favorites(identity: CurrentIdentity, db: DatabaseSession) -> FavoriteListResponse:
    """Providers bookmarked by the caller, most recent first."""
    return await FavoriteService(db).list_for_user(identity.id)


@router.post(
    "/{provider_id}",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a favorite",
)
async def add_favorite(
    provider_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> OkResponse:
    """
    Bookmark a provider.

    Args:
        provider_id: Provider profile ID
        identity: Authenticated caller
        db: Database session

    Returns:
        Acknowledgement, also when the provider was already a favorite
    """
    await FavoriteService(db).add(identity.id, provider_id)
    return OkResponse()


@router.delete("/{provider_id}", response_model=OkResponse, summary="Remove a favorite")
async def remove_favorite(
    provider_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> OkResponse:
    await FavoriteService(db).remove(identity.id, provider_id)
    return OkResponse()
