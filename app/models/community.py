"""Feed, favorite, blacklist and admin audit model definitions."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

from app.models.users import metadata

risk_level = Enum("LOW", "MEDIUM", "HIGH", name="risk_level")

feed_posts = Table(
    "feed_posts",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("content", Text, nullable=False),
    Column("media_urls", ARRAY(Text), nullable=False, server_default=text("ARRAY[]::text[]")),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
        index=True,
    ),
)

feed_likes = Table(
    "feed_likes",
    metadata,
    Column(
        "post_id",
        UUID(as_uuid=True),
        ForeignKey("feed_posts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

feed_comments = Table(
    "feed_comments",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "post_id",
        UUID(as_uuid=True),
        ForeignKey("feed_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("comment", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

favorites = Table(
    "favorites",
    metadata,
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

blacklist_entries = Table(
    "blacklist_entries",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "submitted_by_provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("phone", Text, index=True),
    Column("name", Text, index=True),
    Column("notes", Text),
    Column("evidence_urls", ARRAY(Text), nullable=False, server_default=text("ARRAY[]::text[]")),
    Column("risk_level", risk_level, nullable=False, server_default=text("'MEDIUM'")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint("phone IS NOT NULL OR name IS NOT NULL", name="ck_blacklist_identity"),
)

blacklist_verifications = Table(
    "blacklist_verifications",
    metadata,
    Column(
        "blacklist_entry_id",
        UUID(as_uuid=True),
        ForeignKey("blacklist_entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "admin_user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

# Append-only moderation audit trail
admin_actions = Table(
    "admin_actions",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "admin_user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("action", Text, nullable=False),
    Column(
        "target_provider_id",
        UUID(as_uuid=True),
        ForeignKey("provider_profiles.id", ondelete="SET NULL"),
        index=True,
    ),
    Column("meta", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
        index=True,
    ),
)
