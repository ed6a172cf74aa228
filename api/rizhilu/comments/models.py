"""Database models for the two-level comment tree.

Architecture: arena of comment rows indexed by ``comment_id``.
- ``comments`` holds every comment; ``post_id`` and ``parent_id`` are plain
  foreign keys (``parent_id`` NULL for top-level comments).
- ``post_comments`` is the ordered list of a post's top-level comments.
- ``comment_replies`` is the ordered list of a comment's replies.
- ``comments_by_post`` lists every comment of a post regardless of depth and
  drives the post-delete cascade.

A comment reachable from ``post_comments`` or ``comment_replies`` is
"linked"; each comment is linked in at most one of the two.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from rizhilu.auth.models import Author, ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    post_id UUID,
    parent_id UUID,
    author_id UUID,
    author_name TEXT,
    author_avatar TEXT,
    content TEXT,
    likes SET<UUID>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Every comment of a post, top-level and replies alike
COMMENTS_BY_POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_post (
    post_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    parent_id UUID,
    PRIMARY KEY ((post_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

# Post -> top-level comment linkage
POST_COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_comments (
    post_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    PRIMARY KEY ((post_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

# Comment -> reply linkage
COMMENT_REPLIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_replies (
    parent_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    PRIMARY KEY ((parent_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_POST_TABLE_CQL,
    POST_COMMENTS_TABLE_CQL,
    COMMENT_REPLIES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment entity. A non-null ``parent_id`` makes it a reply."""

    comment_id: UUID
    post_id: UUID
    parent_id: UUID | None
    author_id: UUID
    author_name: str
    author_avatar: str | None
    content: str
    likes: set[UUID]
    created_at: datetime
    updated_at: datetime
    replies: list["Comment"] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = ensure_utc_aware(row.created_at)
        return cls(
            comment_id=row.comment_id,
            post_id=row.post_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            author_name=row.author_name or "",
            author_avatar=row.author_avatar,
            content=row.content,
            likes=set(row.likes or ()),
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
        )

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @property
    def author(self) -> Author:
        return Author(self.author_id, self.author_name, self.author_avatar)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "comment_id": str(self.comment_id),
            "post_id": str(self.post_id),
            "parent_id": str(self.parent_id) if self.parent_id else None,
            "author_id": str(self.author_id),
            "author_name": self.author_name,
            "author_avatar": self.author_avatar,
            "content": self.content,
            "likes": sorted(str(u) for u in self.likes),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "replies": [r.to_dict() for r in self.replies],
        }


def create_comment(
    post_id: UUID,
    author: Author,
    content: str,
    parent_id: UUID | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        comment_id=uuid4(),
        post_id=post_id,
        parent_id=parent_id,
        author_id=author.id,
        author_name=author.username,
        author_avatar=author.avatar_url,
        content=content.strip(),
        likes=set(),
        created_at=now,
        updated_at=now,
    )
