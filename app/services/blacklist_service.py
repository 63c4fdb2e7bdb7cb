"""Blacklist service: provider-submitted risk reports with admin verification."""

from uuid import UUID

import structlog
from sqlalchemy import String, and_, cast, func, insert, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.pagination import Pagination
from app.database import transaction
from app.models.community import blacklist_entries, blacklist_verifications
from app.schemas.blacklist import (
    BlacklistCreate,
    BlacklistEntryResponse,
    BlacklistListResponse,
    RiskLevel,
)
from app.services.provider_service import ProviderService

logger = structlog.get_logger(__name__)


def _verified_count(entry_id):
    """Distinct admins who confirmed an entry."""
    return (
        select(func.count(func.distinct(blacklist_verifications.c.admin_user_id)))
        .where(blacklist_verifications.c.blacklist_entry_id == entry_id)
    )


ENTRY_QUERY = select(
    blacklist_entries.c.id,
    blacklist_entries.c.phone,
    blacklist_entries.c.name,
    blacklist_entries.c.notes.label("reason"),
    blacklist_entries.c.evidence_urls,
    blacklist_entries.c.risk_level,
    blacklist_entries.c.created_at,
    _verified_count(blacklist_entries.c.id).scalar_subquery().label("verified_count"),
)


class BlacklistService:
    """Service for blacklist operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_entries(
        self,
        pagination: Pagination,
        search: str | None = None,
        risk: RiskLevel | None = None,
    ) -> BlacklistListResponse:
        """
        Search the blacklist.

        Args:
            pagination: Page window
            search: Substring matched against name, phone and entry id
            risk: Exact risk level

        Returns:
            Page of entries, newest first
        """
        conditions = []
        if risk is not None:
            conditions.append(blacklist_entries.c.risk_level == risk.value)

        search = search.strip() if search else None
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    blacklist_entries.c.name.ilike(pattern),
                    blacklist_entries.c.phone.ilike(pattern),
                    cast(blacklist_entries.c.id, String).ilike(pattern),
                )
            )

        stmt = ENTRY_QUERY
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = (
            stmt.order_by(blacklist_entries.c.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )

        result = await self.db.execute(stmt)
        items = [
            BlacklistEntryResponse.model_validate(dict(row)) for row in result.mappings().all()
        ]
        return BlacklistListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(items),
            items=items,
        )

    async def get_entry(self, entry_id: UUID) -> BlacklistEntryResponse:
        """Single entry with its verification count."""
        result = await self.db.execute(ENTRY_QUERY.where(blacklist_entries.c.id == entry_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Blacklist entry not found")
        return BlacklistEntryResponse.model_validate(dict(row))

    async def create_entry(self, user_id: UUID, data: BlacklistCreate) -> BlacklistEntryResponse:
        """
        File a new entry as the caller's provider profile.

        Raises:
            ForbiddenException: If the caller has no provider profile
        """
        provider_id = await ProviderService(self.db).get_profile_id(user_id)
        if provider_id is None:
            raise ForbiddenException("Provider profile not found")

        values = {
            "submitted_by_provider_id": provider_id,
            "phone": data.phone,
            "name": data.name,
            "notes": data.notes,
            "evidence_urls": data.evidence_urls or [],
        }
        if data.risk_level is not None:
            values["risk_level"] = data.risk_level.value

        async with transaction(self.db):
            result = await self.db.execute(
                insert(blacklist_entries)
                .values(**values)
                .returning(
                    blacklist_entries.c.id,
                    blacklist_entries.c.phone,
                    blacklist_entries.c.name,
                    blacklist_entries.c.notes.label("reason"),
                    blacklist_entries.c.evidence_urls,
                    blacklist_entries.c.risk_level,
                    blacklist_entries.c.created_at,
                )
            )
            entry = dict(result.mappings().one())

        logger.info(
            "blacklist_entry_created", entry_id=str(entry["id"]), provider_id=str(provider_id)
        )
        return BlacklistEntryResponse.model_validate(entry)

    async def verify_entry(self, entry_id: UUID, admin_user_id: UUID) -> int:
        """
        Record an admin's confirmation of an entry.

        Each admin counts once no matter how often they verify.

        Returns:
            Number of distinct admins who verified the entry

        Raises:
            NotFoundException: If the entry does not exist
        """
        result = await self.db.execute(
            select(blacklist_entries.c.id).where(blacklist_entries.c.id == entry_id).limit(1)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundException("Blacklist entry not found")

        async with transaction(self.db):
            await self.db.execute(
                pg_insert(blacklist_verifications)
                .values(blacklist_entry_id=entry_id, admin_user_id=admin_user_id)
                .on_conflict_do_nothing(index_elements=["blacklist_entry_id", "admin_user_id"])
            )
            count = await self.db.execute(_verified_count(entry_id))
            verified_count = count.scalar_one()

        logger.info(
            "blacklist_entry_verified",
            entry_id=str(entry_id),
            admin_user_id=str(admin_user_id),
            verified_count=verified_count,
        )
        return verified_count
