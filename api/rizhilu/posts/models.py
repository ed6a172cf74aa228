"""Database models for forum posts and their attachments.

Cassandra table definitions for:
- Posts: one row per post with denormalized author info
- Post files: attachment metadata, partitioned by post

The ordered list of a post's top-level comments is not stored here; it is
derived from ``post_comments`` (see ``rizhilu.comments.models``).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from rizhilu.auth.models import Author, ensure_utc_aware


class PostCategory(str, Enum):
    """Post categories. Values are the labels shown in the client."""

    STUDY_MATERIALS = "学习资料"
    EXPERIENCE = "经验分享"
    DISCUSSION = "问题讨论"
    RESOURCES = "资源推荐"
    OTHER = "其他"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts (
    post_id UUID PRIMARY KEY,
    title TEXT,
    content TEXT,
    author_id UUID,
    author_name TEXT,
    author_avatar TEXT,
    category TEXT,
    tags LIST<TEXT>,
    likes SET<UUID>,
    views INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Attachments per post, oldest first
POST_FILES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_files (
    post_id UUID,
    file_id UUID,
    filename TEXT,
    original_name TEXT,
    mimetype TEXT,
    size BIGINT,
    path TEXT,
    upload_date TIMESTAMP,
    PRIMARY KEY ((post_id), file_id)
)
"""

POSTS_TABLES_CQL = [
    POST_TABLE_CQL,
    POST_FILES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class PostFile:
    """Attachment stored on local disk."""

    file_id: UUID
    post_id: UUID
    filename: str
    original_name: str
    mimetype: str
    size: int
    path: str
    upload_date: datetime

    @classmethod
    def from_row(cls, row: Any) -> "PostFile":
        """Create PostFile from Cassandra row."""
        return cls(
            file_id=row.file_id,
            post_id=row.post_id,
            filename=row.filename,
            original_name=row.original_name or row.filename,
            mimetype=row.mimetype or "application/octet-stream",
            size=row.size or 0,
            path=row.path,
            upload_date=ensure_utc_aware(row.upload_date),
        )


@dataclass
class Post:
    """Forum post."""

    post_id: UUID
    title: str
    content: str
    author_id: UUID
    author_name: str
    author_avatar: str | None
    category: PostCategory
    tags: list[str]
    likes: set[UUID]
    views: int
    created_at: datetime
    updated_at: datetime
    files: list[PostFile] = field(default_factory=list)
    # Top-level comment IDs in linkage order; filled by the service
    comment_ids: list[UUID] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        """Create Post from Cassandra row."""
        try:
            category = PostCategory(row.category)
        except ValueError:
            category = PostCategory.OTHER
        created_at = ensure_utc_aware(row.created_at)
        return cls(
            post_id=row.post_id,
            title=row.title,
            content=row.content,
            author_id=row.author_id,
            author_name=row.author_name or "",
            author_avatar=row.author_avatar,
            category=category,
            tags=list(row.tags or []),
            likes=set(row.likes or ()),
            views=row.views or 0,
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
        )

    @property
    def author(self) -> Author:
        return Author(self.author_id, self.author_name, self.author_avatar)

    def find_file(self, file_id: UUID) -> PostFile | None:
        return next((f for f in self.files if f.file_id == file_id), None)


def create_post(
    title: str,
    content: str,
    author: Author,
    category: PostCategory = PostCategory.OTHER,
    tags: list[str] | None = None,
) -> Post:
    """Create a new post with default values."""
    now = datetime.now(UTC)
    return Post(
        post_id=uuid4(),
        title=title,
        content=content,
        author_id=author.id,
        author_name=author.username,
        author_avatar=author.avatar_url,
        category=category,
        tags=list(tags or []),
        likes=set(),
        views=0,
        created_at=now,
        updated_at=now,
    )


def parse_tags(raw: str | list[str] | None) -> list[str]:
    """Normalize tag input.

    Accepts a comma-separated string (as sent by multipart forms) or a list;
    trims entries, drops empties and duplicates while keeping order.
    """
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    tags: list[str] = []
    for item in items:
        tag = item.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags
