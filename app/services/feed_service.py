"""Feed service: provider posts, likes and comments."""

from uuid import UUID

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.pagination import Pagination
from app.database import transaction
from app.models.community import feed_comments, feed_likes, feed_posts
from app.models.providers import provider_profiles
from app.models.users import users
from app.schemas.feeds import (
    CommentAuthor,
    FeedAuthor,
    FeedCommentItem,
    FeedCommentListResponse,
    FeedCommentResponse,
    FeedListResponse,
    FeedPostCreate,
    FeedPostItem,
    FeedPostResponse,
    LikeStatusResponse,
)
from app.services.provider_service import (
    ProviderService,
    latest_media_url,
    visible_provider_conditions,
)

logger = structlog.get_logger(__name__)


def _like_count(post_id):
    return (
        select(func.count())
        .select_from(feed_likes)
        .where(feed_likes.c.post_id == post_id)
        .scalar_subquery()
    )


def _comment_count(post_id):
    return (
        select(func.count())
        .select_from(feed_comments)
        .where(feed_comments.c.post_id == post_id)
        .scalar_subquery()
    )


FEED_ITEM_QUERY = (
    select(
        feed_posts.c.id,
        feed_posts.c.provider_id,
        feed_posts.c.content,
        feed_posts.c.media_urls,
        feed_posts.c.created_at,
        provider_profiles.c.display_name.label("provider_name"),
        latest_media_url(provider_profiles.c.id, "is_avatar").label("provider_avatar"),
        _like_count(feed_posts.c.id).label("like_count"),
        _comment_count(feed_posts.c.id).label("comment_count"),
    )
    .select_from(
        feed_posts.join(provider_profiles, provider_profiles.c.id == feed_posts.c.provider_id)
    )
    .where(*visible_provider_conditions(provider_profiles))
)


def _to_item(row) -> FeedPostItem:
    return FeedPostItem(
        id=row["id"],
        content=row["content"],
        media_urls=row["media_urls"] or [],
        created_at=row["created_at"],
        provider=FeedAuthor(
            id=row["provider_id"],
            name=row["provider_name"],
            avatar_url=row["provider_avatar"],
        ),
        like_count=row["like_count"],
        comment_count=row["comment_count"],
    )


class FeedService:
    """Service for the public feed."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _ensure_post(self, post_id: UUID) -> None:
        result = await self.db.execute(
            select(feed_posts.c.id).where(feed_posts.c.id == post_id).limit(1)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundException("Post not found")

    async def list_feed(self, pagination: Pagination) -> FeedListResponse:
        """Posts by publicly visible providers, newest first."""
        result = await self.db.execute(
            FEED_ITEM_QUERY.order_by(feed_posts.c.created_at.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        items = [_to_item(row) for row in result.mappings().all()]
        return FeedListResponse(
            page=pagination.page,
            limit=pagination.limit,
            count=len(items),
            items=items,
        )

    async def get_post(self, post_id: UUID) -> FeedPostItem:
        """Single post for deep links; hidden providers read as not found."""
        result = await self.db.execute(FEED_ITEM_QUERY.where(feed_posts.c.id == post_id).limit(1))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Post not found")
        return _to_item(row)

    async def create_post(self, user_id: UUID, data: FeedPostCreate) -> FeedPostResponse:
        """
        Publish a post as the caller's provider profile.

        Raises:
            ForbiddenException: If the caller has no provider profile
        """
        provider_id = await ProviderService(self.db).get_profile_id(user_id)
        if provider_id is None:
            raise ForbiddenException("Provider profile not found")

        async with transaction(self.db):
            result = await self.db.execute(
                insert(feed_posts)
                .values(
                    provider_id=provider_id,
                    content=data.content,
                    media_urls=data.media_urls or [],
                )
                .returning(
                    feed_posts.c.id,
                    feed_posts.c.provider_id,
                    feed_posts.c.content,
                    feed_posts.c.media_urls,
                    feed_posts.c.created_at,
                )
            )
            post = dict(result.mappings().one())

        logger.info("feed_post_created", post_id=str(post["id"]), provider_id=str(provider_id))
        return FeedPostResponse.model_validate(post)

    async def like_status(self, post_id: UUID, user_id: UUID) -> LikeStatusResponse:
        """Whether the caller likes a post, with the post's like total."""
        await self._ensure_post(post_id)

        result = await self.db.execute(
            select(
                func.count().label("like_count"),
                func.count().filter(feed_likes.c.user_id == user_id).label("mine"),
            )
            .select_from(feed_likes)
            .where(feed_likes.c.post_id == post_id)
        )
        row = result.mappings().one()

        return LikeStatusResponse(liked=row["mine"] > 0, like_count=row["like_count"])

    async def like(self, post_id: UUID, user_id: UUID) -> None:
        """Like a post; liking twice has no further effect."""
        await self._ensure_post(post_id)

        async with transaction(self.db):
            await self.db.execute(
                pg_insert(feed_likes)
                .values(post_id=post_id, user_id=user_id)
                .on_conflict_do_nothing(index_elements=["post_id", "user_id"])
            )

    async def unlike(self, post_id: UUID, user_id: UUID) -> None:
        """Remove the caller's like, if any."""
        async with transaction(self.db):
            await self.db.execute(
                delete(feed_likes).where(
                    feed_likes.c.post_id == post_id, feed_likes.c.user_id == user_id
                )
            )

    async def list_comments(self, post_id: UUID) -> FeedCommentListResponse:
        """All comments on a post, oldest first."""
        result = await self.db.execute(
            select(
                feed_comments.c.id,
                feed_comments.c.comment,
                feed_comments.c.created_at,
                users.c.id.label("user_id"),
                users.c.display_name.label("user_name"),
                users.c.role.label("user_role"),
            )
            .select_from(feed_comments.join(users, users.c.id == feed_comments.c.user_id))
            .where(feed_comments.c.post_id == post_id)
            .order_by(feed_comments.c.created_at.asc())
        )
        items = [
            FeedCommentItem(
                id=row["id"],
                comment=row["comment"],
                created_at=row["created_at"],
                user=CommentAuthor(
                    id=row["user_id"], name=row["user_name"], role=row["user_role"]
                ),
            )
            for row in result.mappings().all()
        ]
        return FeedCommentListResponse(count=len(items), items=items)

    async def add_comment(self, post_id: UUID, user_id: UUID, comment: str) -> FeedCommentResponse:
        """
        Comment on a post.

        Raises:
            NotFoundException: If the post does not exist
        """
        await self._ensure_post(post_id)

        async with transaction(self.db):
            result = await self.db.execute(
                insert(feed_comments)
                .values(post_id=post_id, user_id=user_id, comment=comment)
                .returning(feed_comments.c.id, feed_comments.c.comment, feed_comments.c.created_at)
            )
            created = dict(result.mappings().one())

        return FeedCommentResponse.model_validate(created)
