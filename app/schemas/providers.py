"""Provider profile schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import ConfigDict, Field, PositiveInt

from app.schemas.base import CamelModel, MediaString, ServiceTag


class VerificationStatus(str, Enum):
    """Provider onboarding state."""

    NOT_SUBMITTED = "NOT_SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MediaType(str, Enum):
    """Provider media kind."""

    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class Rates(CamelModel):
    """Named price tiers; absent tiers are left untouched on update."""

    short_time: PositiveInt | None = None
    overnight: PositiveInt | None = None
    weekend: PositiveInt | None = None


class RegistrationRates(CamelModel):
    """All price tiers, required at onboarding."""

    short_time: PositiveInt
    overnight: PositiveInt
    weekend: PositiveInt


class ProviderStats(CamelModel):
    """Semi-structured provider attributes stored as JSON."""

    model_config = ConfigDict(extra="allow")

    real_name: str | None = None
    dob: str | None = None
    age: int | None = None
    gender: str | None = None
    ethnicity: str | None = None
    height: str | None = None
    weight: str | None = None
    bust_size: str | None = None
    build: str | None = None
    hair_color: str | None = None
    eye_color: str | None = None
    phone_number: str | None = None
    whatsapp_number: str | None = None
    call_number: str | None = None
    bio: str | None = None
    verification_selfie: str | None = None


class ProviderProfileUpdate(CamelModel):
    """Partial update of the caller's own provider profile."""

    display_name: str | None = Field(None, min_length=2, max_length=80)
    whatsapp_number: str | None = Field(None, min_length=7, max_length=30)
    call_number: str | None = Field(None, min_length=7, max_length=30)
    state: str | None = Field(None, min_length=2, max_length=60)
    city: str | None = Field(None, min_length=2, max_length=60)
    bio: str | None = Field(None, max_length=1000)
    rates: Rates | None = None
    services: list[ServiceTag] | None = None
    new_gallery_images: list[MediaString] | None = None
    remove_gallery_urls: list[str] | None = None


class MediaResponse(CamelModel):
    """Provider media item."""

    id: UUID
    url: str
    type: MediaType
    is_cover: bool
    is_avatar: bool
    created_at: datetime


class ProviderProfileResponse(CamelModel):
    """Provider profile as seen by its owner."""

    id: UUID
    user_id: UUID | None = None
    display_name: str
    bio: str | None = None
    state: str | None = None
    city: str | None = None
    services: list[str] = []
    rates: dict[str, Any] = {}
    stats: dict[str, Any] = {}
    verification_status: VerificationStatus
    verification_rejection_reason: str | None = None
    is_suspended: bool = False
    suspension_reason: str | None = None
    subscription_expires_at: datetime | None = None


class ProviderAccountResponse(CamelModel):
    """Account row attached to a provider profile."""

    id: UUID
    email: str
    role: str
    display_name: str | None = None
    phone: str | None = None
    call_number: str | None = None
    whatsapp_number: str | None = None
    created_at: datetime


class MyProfileResponse(CamelModel):
    """Owner view of a provider with convenience image fields."""

    user: ProviderAccountResponse
    provider_profile: ProviderProfileResponse
    media: list[MediaResponse]
    profile_image: str | None = None
    cover_image: str | None = None
    gallery_images: list[str] = []


class MyMediaResponse(CamelModel):
    """All media owned by the caller's provider profile."""

    media: list[MediaResponse]


class ProfileUpdateResponse(CamelModel):
    """Result of a profile update."""

    ok: bool = True
    provider: ProviderProfileResponse
    media: list[MediaResponse]


class PublicProviderItem(CamelModel):
    """Provider card in the public listing."""

    id: UUID
    user_id: UUID
    display_name: str
    bio: str | None = None
    state: str | None = None
    city: str | None = None
    services: list[str] = []
    rates: dict[str, Any] = {}
    verification_status: VerificationStatus
    subscription_expires_at: datetime | None = None
    created_at: datetime
    cover_url: str | None = None
    avatar_url: str | None = None


class PublicProviderListResponse(CamelModel):
    """Paginated public provider listing."""

    page: int
    limit: int
    count: int
    items: list[PublicProviderItem]
