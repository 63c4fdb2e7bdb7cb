"""Provider profile, media and subscription model definitions."""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

from app.models.users import metadata

verification_status = Enum(
    "NOT_SUBMITTED", "PENDING", "APPROVED", "REJECTED", name="verification_status"
)
media_type = Enum("IMAGE", "VIDEO", name="media_type")
subscription_event_type = Enum("ACTIVATED", "RENEWED", "EXPIRED", name="subscription_event_type")

provider_profiles = Table(
    "provider_profiles",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("display_name", Text, nullable=False),
    Column("bio", Text),
    Column("state", Text),
    Column("city", Text),
    Column("services", ARRAY(Text), nullable=False, server_default=text("ARRAY[]::text[]")),
    # e.g. {"shortTime": 20000, "overnight": 80000}
    Column("rates", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    # e.g. {"height": "5'7", "realName": "..."}; realName is never public
    Column("stats", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column(
        "verification_status",
        verification_status,
        nullable=False,
        server_default=text("'NOT_SUBMITTED'"),
        index=True,
    ),
    Column("verification_rejection_reason", Text),
    Column("is_suspended", Boolean, nullable=False, server_default=text("false")),
    Column("suspension_reason", Text),
    # Public visibility requires a future expiry
    Column("subscription_expires_at", DateTime(timezone=True), index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Index("ix_provider_profiles_location", "state", "city"),
)

# Cover and avatar are "latest flagged row wins"; there is no uniqueness constraint
provider_media = Table(
    "provider_media",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("url", Text, nullable=False),
    Column("type", media_type, nullable=False, server_default=text("'IMAGE'")),
    Column("is_cover", Boolean, nullable=False, server_default=text("false")),
    Column("is_avatar", Boolean, nullable=False, server_default=text("false")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

subscription_events = Table(
    "subscription_events",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("event_type", subscription_event_type, nullable=False),
    Column("amount", BigInteger),
    Column("reference", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)
