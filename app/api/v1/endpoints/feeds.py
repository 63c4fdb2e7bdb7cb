"""Public feed endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.pagination import paginate
from app.dependencies import CurrentIdentity, DatabaseSession, ProviderIdentity
from app.schemas.base import OkResponse
from app.schemas.feeds import (
    FeedCommentCreate,
    FeedCommentListResponse,
    FeedCommentResponse,
    FeedListResponse,
    FeedPostCreate,
    FeedPostItem,
    FeedPostResponse,
    LikeStatusResponse,
)
from app.services.feed_service import FeedService

router = APIRouter()


@router.get("", response_model=FeedListResponse, summary="Browse the feed")
async def list_feed(
    db: DatabaseSession,
    page: int | None = Query(None, description="Page number"),
    limit: int | None = Query(None, description="Items per page (max 50)"),
) -> FeedListResponse:
    """
    Public feed, newest first.

    Args:
        db: Database session
        page: Page number
        limit: Items per page

    Returns:
        Posts with author and like/comment counters
    """
    pagination = paginate(page, limit, default_limit=20, max_limit=50)
    return await FeedService(db).list_feed(pagination)


@router.post(
    "",
    response_model=FeedPostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a post",
)
async def create_post(
    request: FeedPostCreate,
    identity: ProviderIdentity,
    db: DatabaseSession,
) -> FeedPostResponse:
    """Publish a post as the calling provider."""
    return await FeedService(db).create_post(identity.id, request)


@router.get("/{post_id}", response_model=FeedPostItem, summary="Get a post")
async def get_post(post_id: UUID, db: DatabaseSession) -> FeedPostItem:
    return await FeedService(db).get_post(post_id)


@router.get("/{post_id}/like", response_model=LikeStatusResponse, summary="My like on a post")
async def get_like_status(
    post_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> LikeStatusResponse:
    return await FeedService(db).like_status(post_id, identity.id)


@router.post("/{post_id}/like", response_model=OkResponse, summary="Like a post")
async def like_post(post_id: UUID, identity: CurrentIdentity, db: DatabaseSession) -> OkResponse:
    """Like a post. Liking an already liked post succeeds without change."""
    await FeedService(db).like(post_id, identity.id)
    return OkResponse()


@router.delete("/{post_id}/like", response_model=OkResponse, summary="Unlike a post")
async def unlike_post(post_id: UUID, identity: CurrentIdentity, db: DatabaseSession) -> OkResponse:
    await FeedService(db).unlike(post_id, identity.id)
    return OkResponse()


@router.get(
    "/{post_id}/comments",
    response_model=FeedCommentListResponse,
    summary="List comments on a post",
)
async def list_comments(post_id: UUID, db: DatabaseSession) -> FeedCommentListResponse:
    """Comments on a post, oldest first."""
    return await FeedService(db).list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_model=FeedCommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
)
async def add_comment(
    post_id: UUID,
    request: FeedCommentCreate,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> FeedCommentResponse:
    """
    Comment on a post.

    Args:
        post_id: Post to comment on
        request: Comment text
        identity: Authenticated caller
        db: Database session

    Returns:
        Created comment
    """
    return await FeedService(db).add_comment(post_id, identity.id, request.comment)
