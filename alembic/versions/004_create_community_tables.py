"""Create feed, favorites, blacklist and admin audit tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-18 00:30:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

risk_level = postgresql.ENUM("LOW", "MEDIUM", "HIGH", name="risk_level", create_type=False)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _fk(name: str, target: str, ondelete: str = "CASCADE", **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        **kwargs,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def _text_array(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.ARRAY(sa.Text()),
        nullable=False,
        server_default=sa.text("ARRAY[]::text[]"),
    )


def upgrade() -> None:
    """Create community and moderation tables."""
    risk_level.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "feed_posts",
        _uuid_pk(),
        _fk("provider_id", "provider_profiles.id", nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _text_array("media_urls"),
        _created_at(),
    )
    op.create_index("ix_feed_posts_provider_id", "feed_posts", ["provider_id"])
    op.create_index("ix_feed_posts_created_at", "feed_posts", ["created_at"])

    op.create_table(
        "feed_likes",
        _fk("post_id", "feed_posts.id", primary_key=True),
        _fk("user_id", "users.id", primary_key=True),
        _created_at(),
    )
    op.create_index("ix_feed_likes_user_id", "feed_likes", ["user_id"])

    op.create_table(
        "feed_comments",
        _uuid_pk(),
        _fk("post_id", "feed_posts.id", nullable=False),
        _fk("user_id", "users.id", nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_feed_comments_post_id", "feed_comments", ["post_id"])

    op.create_table(
        "favorites",
        _fk("user_id", "users.id", primary_key=True),
        _fk("provider_id", "provider_profiles.id", primary_key=True),
        _created_at(),
    )
    op.create_index("ix_favorites_provider_id", "favorites", ["provider_id"])

    op.create_table(
        "blacklist_entries",
        _uuid_pk(),
        _fk("submitted_by_provider_id", "provider_profiles.id", nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _text_array("evidence_urls"),
        sa.Column("risk_level", risk_level, nullable=False, server_default=sa.text("'MEDIUM'")),
        _created_at(),
        sa.CheckConstraint("phone IS NOT NULL OR name IS NOT NULL", name="ck_blacklist_identity"),
    )
    op.create_index("ix_blacklist_entries_phone", "blacklist_entries", ["phone"])
    op.create_index("ix_blacklist_entries_name", "blacklist_entries", ["name"])

    op.create_table(
        "blacklist_verifications",
        _fk("blacklist_entry_id", "blacklist_entries.id", primary_key=True),
        _fk("admin_user_id", "users.id", primary_key=True),
        _created_at(),
    )

    op.create_table(
        "admin_actions",
        _uuid_pk(),
        _fk("admin_user_id", "users.id", nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        _fk("target_provider_id", "provider_profiles.id", ondelete="SET NULL", nullable=True),
        sa.Column(
            "meta", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        _created_at(),
    )
    op.create_index("ix_admin_actions_target_provider_id", "admin_actions", ["target_provider_id"])
    op.create_index("ix_admin_actions_created_at", "admin_actions", ["created_at"])


def downgrade() -> None:
    """Drop community and moderation tables."""
    op.drop_table("admin_actions")
    op.drop_table("blacklist_verifications")
    op.drop_table("blacklist_entries")
    op.drop_table("favorites")
    op.drop_table("feed_comments")
    op.drop_table("feed_likes")
    op.drop_table("feed_posts")
    risk_level.drop(op.get_bind(), checkfirst=True)
