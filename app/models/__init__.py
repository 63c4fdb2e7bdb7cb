"""Database models."""

from app.models.chats import conversation_reads, conversations, messages
from app.models.community import (
    admin_actions,
    blacklist_entries,
    blacklist_verifications,
    favorites,
    feed_comments,
    feed_likes,
    feed_posts,
)
from app.models.providers import provider_media, provider_profiles, subscription_events
from app.models.users import metadata, password_reset_tokens, users

__all__ = [
    "admin_actions",
    "blacklist_entries",
    "blacklist_verifications",
    "conversation_reads",
    "conversations",
    "favorites",
    "feed_comments",
    "feed_likes",
    "feed_posts",
    "messages",
    "metadata",
    "password_reset_tokens",
    "provider_media",
    "provider_profiles",
    "subscription_events",
    "users",
]
