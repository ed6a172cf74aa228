"""Comment API endpoints.

Provides routes for:
- Comment and reply creation
- Listing a post's comment tree
- Deletion (author only, replies go with their parent)
- Like toggling
"""

from uuid import UUID

from fastapi import APIRouter, status

from rizhilu.auth.dependencies import CurrentAuthor, CurrentUser
from rizhilu.core.exceptions import ForumError, handle_forum_error

from .dependencies import CommentServiceDep
from .schemas import (
    CommentCreatedResponse,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    LikeToggleResponse,
    MessageResponse,
)


router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment or reply",
    responses={
        400: {"description": "Parent comment cannot take this reply"},
        404: {"description": "Post not found"},
    },
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    author: CurrentAuthor,
) -> CommentCreatedResponse:
    """Comment on a post, or reply to a top-level comment."""
    try:
        comment = await comment_service.create_comment(
            content=data.content,
            author=author,
            post_id=data.post_id,
            parent_id=data.parent_comment_id,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e

    return CommentCreatedResponse(
        message="Comment created",
        comment=CommentResponse.from_comment(comment),
    )


@router.get(
    "/post/{post_id}",
    response_model=CommentListResponse,
    summary="List comments of a post",
)
async def list_post_comments(
    post_id: UUID,
    comment_service: CommentServiceDep,
    _user: CurrentUser,
) -> CommentListResponse:
    """Top-level comments newest first, each with its replies oldest first."""
    try:
        comments = await comment_service.get_post_comments(post_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return CommentListResponse(
        comments=[CommentResponse.from_comment(c) for c in comments]
    )


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
    responses={
        403: {"description": "Not the author"},
        404: {"description": "Comment not found"},
    },
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Delete own comment together with its replies."""
    try:
        await comment_service.delete_comment(comment_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return MessageResponse(message="Comment deleted")


@router.post(
    "/{comment_id}/like",
    response_model=LikeToggleResponse,
    summary="Like or unlike comment",
)
async def toggle_comment_like(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> LikeToggleResponse:
    try:
        liked, likes = await comment_service.toggle_like(comment_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return LikeToggleResponse(
        message="Liked" if liked else "Like removed",
        liked=liked,
        likes=likes,
    )
