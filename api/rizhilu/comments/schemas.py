"""Pydantic schemas for the comment API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .models import Comment


COMMENT_MAX_LENGTH = 1000


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    content: str = Field(..., min_length=1, max_length=COMMENT_MAX_LENGTH)
    post_id: UUID
    parent_comment_id: UUID | None = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class AuthorResponse(BaseModel):
    """Comment or post author (denormalized)."""

    id: UUID
    username: str
    avatar_url: str | None = None


class CommentResponse(BaseModel):
    """Comment with its replies populated (replies have no replies)."""

    id: UUID
    post_id: UUID
    parent_comment_id: UUID | None = None
    author: AuthorResponse
    content: str
    likes: list[UUID] = Field(default_factory=list)
    like_count: int = 0
    replies: list["CommentResponse"] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        """Create response from Comment entity, recursing into replies."""
        return cls(
            id=comment.comment_id,
            post_id=comment.post_id,
            parent_comment_id=comment.parent_id,
            author=AuthorResponse(
                id=comment.author_id,
                username=comment.author_name,
                avatar_url=comment.author_avatar,
            ),
            content=comment.content,
            likes=sorted(comment.likes, key=str),
            like_count=len(comment.likes),
            replies=[cls.from_comment(r) for r in comment.replies],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentCreatedResponse(BaseModel):
    message: str
    comment: CommentResponse


class CommentListResponse(BaseModel):
    """Top-level comments of a post, newest first."""

    comments: list[CommentResponse]


class LikeToggleResponse(BaseModel):
    """Result of toggling a like on a post or comment."""

    message: str
    liked: bool
    likes: int


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
