"""Blacklist endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.pagination import paginate
from app.dependencies import DatabaseSession, ProviderIdentity
from app.schemas.blacklist import (
    BlacklistCreate,
    BlacklistEntryResponse,
    BlacklistListResponse,
    RiskLevel,
)
from app.services.blacklist_service import BlacklistService

router = APIRouter()


@router.get("", response_model=BlacklistListResponse, summary="Search the blacklist")
async def list_blacklist(
    db: DatabaseSession,
    search: str | None = Query(None, description="Match name, phone or entry ID"),
    risk: RiskLevel | None = Query(None, description="Filter by risk level"),
    page: int | None = Query(None, description="Page number"),
    limit: int | None = Query(None, description="Items per page (max 100)"),
) -> BlacklistListResponse:
    """
    Search blacklist entries, newest first.

    Args:
        db: Database session
        search: Substring to look for
        risk: Risk level filter
        page: Page number
        limit: Items per page

    Returns:
        Page of entries with verification counts
    """
    pagination = paginate(page, limit, default_limit=20, max_limit=100)
    return await BlacklistService(db).list_entries(pagination, search=search, risk=risk)


@router.get("/{entry_id}", response_model=BlacklistEntryResponse, summary="Get an entry")
async def get_blacklist_entry(entry_id: UUID, db: DatabaseSession) -> BlacklistEntryResponse:
    return await BlacklistService(db).get_entry(entry_id)


@router.post(
    "",
    response_model=BlacklistEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a client",
)
async def create_blacklist_entry(
    request: BlacklistCreate,
    identity: ProviderIdentity,
    db: DatabaseSession,
) -> BlacklistEntryResponse:
    """File an entry as the calling provider; phone or name is required."""
    return await BlacklistService(db).create_entry(identity.id, request)
