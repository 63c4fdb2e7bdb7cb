"""Feed post, like and comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.core.roles import UserRole
from app.schemas.base import CamelModel


class FeedPostCreate(CamelModel):
    """New feed post."""

    content: str = Field(..., min_length=1, max_length=2000)
    media_urls: list[str] | None = Field(None, description="Image URLs attached to the post")


class FeedCommentCreate(CamelModel):
    """New comment on a post."""

    comment: str = Field(..., min_length=1, max_length=500)


class FeedAuthor(CamelModel):
    """Provider who wrote a post."""

    id: UUID
    name: str
    avatar_url: str | None = None


class FeedPostItem(CamelModel):
    """Post with its author and counters."""

    id: UUID
    content: str
    media_urls: list[str] = []
    created_at: datetime
    provider: FeedAuthor
    like_count: int = 0
    comment_count: int = 0


class FeedListResponse(CamelModel):
    """Page of the public feed, newest first."""

    page: int
    limit: int
    count: int
    items: list[FeedPostItem]


class FeedPostResponse(CamelModel):
    """Freshly created post."""

    id: UUID
    provider_id: UUID
    content: str
    media_urls: list[str] = []
    created_at: datetime


class LikeStatusResponse(CamelModel):
    """Whether the caller likes a post."""

    liked: bool
    like_count: int


class CommentAuthor(CamelModel):
    """User who wrote a comment."""

    id: UUID
    name: str | None = None
    role: UserRole


class FeedCommentItem(CamelModel):
    """Comment on a post."""

    id: UUID
    comment: str
    created_at: datetime
    user: CommentAuthor


class FeedCommentListResponse(CamelModel):
    """All comments on a post, oldest first."""

    count: int
    items: list[FeedCommentItem]


class FeedCommentResponse(CamelModel):
    """Freshly created comment."""

    id: UUID
    comment: str
    created_at: datetime
