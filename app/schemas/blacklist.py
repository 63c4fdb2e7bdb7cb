"""Blacklist schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, model_validator

from app.schemas.base import CamelModel


class RiskLevel(str, Enum):
    """Severity assigned to a blacklist entry."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class BlacklistCreate(CamelModel):
    """Provider submission identifying a person by phone and/or name."""

    phone: str | None = Field(None, min_length=6, max_length=30)
    name: str | None = Field(None, min_length=2, max_length=120)
    notes: str | None = Field(None, min_length=3, max_length=2000)
    evidence_urls: list[str] | None = None
    risk_level: RiskLevel | None = None

    @model_validator(mode="after")
    def require_identity(self) -> "BlacklistCreate":
        """At least one of phone or name must be given."""
        if not self.phone and not self.name:
            raise ValueError("Provide at least phone number or name")
        return self


class BlacklistEntryResponse(CamelModel):
    """Blacklist entry with its verification counter."""

    id: UUID
    phone: str | None = None
    name: str | None = None
    # Displayed as "Reason" by clients
    reason: str | None = None
    evidence_urls: list[str] = []
    risk_level: RiskLevel
    verified_count: int = 0
    created_at: datetime


class BlacklistListResponse(CamelModel):
    """Page of blacklist entries, newest first."""

    page: int
    limit: int
    count: int
    items: list[BlacklistEntryResponse]
