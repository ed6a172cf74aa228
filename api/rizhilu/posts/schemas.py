"""Pydantic schemas for the post API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from rizhilu.comments.schemas import AuthorResponse, CommentResponse

from .models import Post, PostCategory, PostFile, parse_tags


TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10000


# ==============================================================================
# Request Schemas
# ==============================================================================


class UpdatePostRequest(BaseModel):
    """Partial update of a post. Omitted fields keep their value."""

    title: str | None = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str | None = Field(None, min_length=1, max_length=CONTENT_MAX_LENGTH)
    category: PostCategory | None = None
    tags: list[str] | None = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            msg = "Field cannot be blank"
            raise ValueError(msg)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: str | list[str] | None) -> list[str] | None:
        """Accept a list or a comma-separated string."""
        if v is None:
            return v
        return parse_tags(v)


# ==============================================================================
# Response Schemas
# ==============================================================================


class AttachmentResponse(BaseModel):
    """Attachment metadata. The stored path is never exposed."""

    id: UUID
    filename: str
    original_name: str
    mimetype: str
    size: int
    upload_date: datetime

    @classmethod
    def from_file(cls, file: PostFile) -> "AttachmentResponse":
        return cls(
            id=file.file_id,
            filename=file.filename,
            original_name=file.original_name,
            mimetype=file.mimetype,
            size=file.size,
            upload_date=file.upload_date,
        )


class PostResponse(BaseModel):
    id: UUID
    title: str
    content: str
    author: AuthorResponse
    category: PostCategory
    tags: list[str]
    files: list[AttachmentResponse] = Field(default_factory=list)
    likes: list[UUID] = Field(default_factory=list)
    like_count: int = 0
    views: int = 0
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Create response from Post entity."""
        return cls(
            id=post.post_id,
            title=post.title,
            content=post.content,
            author=AuthorResponse(
                id=post.author_id,
                username=post.author_name,
                avatar_url=post.author_avatar,
            ),
            category=post.category,
            tags=post.tags,
            files=[AttachmentResponse.from_file(f) for f in post.files],
            likes=sorted(post.likes, key=str),
            like_count=len(post.likes),
            views=post.views,
            comment_count=len(post.comment_ids),
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostDetail(PostResponse):
    """Post with its comment tree."""

    comments: list[CommentResponse] = Field(default_factory=list)


class PostDetailResponse(BaseModel):
    post: PostDetail


class PostCreatedResponse(BaseModel):
    message: str
    post: PostResponse


class PostUpdatedResponse(BaseModel):
    message: str
    post: PostResponse


class PostListResponse(BaseModel):
    """One page of posts, newest first."""

    posts: list[PostResponse]
    current_page: int
    total_pages: int
    total_posts: int
