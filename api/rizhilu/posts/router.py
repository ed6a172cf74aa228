"""Post API endpoints.

Provides routes for:
- Post creation with attachments (multipart)
- Filtered, paginated listing
- Post detail with comments
- Author-only update and delete
- Like toggling
"""

from uuid import UUID

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from rizhilu.auth.dependencies import CurrentAuthor, CurrentUser
from rizhilu.comments.schemas import (
    CommentResponse,
    LikeToggleResponse,
    MessageResponse,
)
from rizhilu.core.exceptions import ForumError, handle_forum_error

from .dependencies import PostServiceDep
from .models import PostCategory, parse_tags
from .schemas import (
    CONTENT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    PostCreatedResponse,
    PostDetail,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    PostUpdatedResponse,
    UpdatePostRequest,
)


router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post(
    "",
    response_model=PostCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
    responses={
        400: {"description": "Too many files"},
        413: {"description": "File too large"},
        415: {"description": "File type not allowed"},
    },
)
async def create_post(
    post_service: PostServiceDep,
    author: CurrentAuthor,
    title: str = Form(..., min_length=1, max_length=TITLE_MAX_LENGTH),
    content: str = Form(..., min_length=1, max_length=CONTENT_MAX_LENGTH),
    category: PostCategory = Form(PostCategory.OTHER),
    tags: str | None = Form(None, description="Comma-separated tags"),
    files: list[UploadFile] | None = File(None, description="Attachments"),
) -> PostCreatedResponse:
    """Create a post, optionally with up to five attachments."""
    try:
        post = await post_service.create_post(
            title=title.strip(),
            content=content.strip(),
            author=author,
            category=category,
            tags=parse_tags(tags),
            uploads=files,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e

    return PostCreatedResponse(
        message="Post created",
        post=PostResponse.from_post(post),
    )


@router.get(
    "",
    response_model=PostListResponse,
    summary="List posts",
)
async def list_posts(
    post_service: PostServiceDep,
    _user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: PostCategory | None = Query(None),
    search: str | None = Query(None, max_length=100),
    tag: str | None = Query(None, max_length=50),
) -> PostListResponse:
    """Newest first. ``search`` matches title or content, case-insensitively."""
    result = await post_service.list_posts(
        page=page,
        limit=limit,
        category=category,
        search=search,
        tag=tag,
    )
    return PostListResponse(
        posts=[PostResponse.from_post(p) for p in result.posts],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total_posts=result.total_posts,
    )


@router.get(
    "/{post_id}",
    response_model=PostDetailResponse,
    summary="Get post",
    responses={404: {"description": "Post not found"}},
)
async def get_post(
    post_id: UUID,
    post_service: PostServiceDep,
    _user: CurrentUser,
) -> PostDetailResponse:
    """Post with its comments and replies. Counts a view."""
    try:
        post, comments = await post_service.get_post_detail(post_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    detail = PostDetail.from_post(post)
    detail.comments = [CommentResponse.from_comment(c) for c in comments]
    return PostDetailResponse(post=detail)


@router.put(
    "/{post_id}",
    response_model=PostUpdatedResponse,
    summary="Update post",
    responses={
        403: {"description": "Not the author"},
        404: {"description": "Post not found"},
    },
)
async def update_post(
    post_id: UUID,
    data: UpdatePostRequest,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostUpdatedResponse:
    try:
        post = await post_service.update_post(
            post_id,
            user.id,
            title=data.title,
            content=data.content,
            category=data.category,
            tags=data.tags,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e

    return PostUpdatedResponse(
        message="Post updated",
        post=PostResponse.from_post(post),
    )


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    summary="Delete post",
    responses={
        403: {"description": "Not the author"},
        404: {"description": "Post not found"},
    },
)
async def delete_post(
    post_id: UUID,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Delete own post with all of its comments and attachments."""
    try:
        await post_service.delete_post(post_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return MessageResponse(message="Post deleted")


@router.post(
    "/{post_id}/like",
    response_model=LikeToggleResponse,
    summary="Like or unlike post",
)
async def toggle_post_like(
    post_id: UUID,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> LikeToggleResponse:
    try:
        liked, likes = await post_service.toggle_like(post_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return LikeToggleResponse(
        message="Liked" if liked else "Like removed",
        liked=liked,
        likes=likes,
    )
