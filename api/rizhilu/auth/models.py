"""Database models for authentication.

Cassandra table definitions for forum members. Usernames and emails must be
unique; both are looked up through secondary indexes.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    username TEXT,
    email TEXT,
    password_hash TEXT,
    avatar_url TEXT,
    bio TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

USER_USERNAME_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_username_idx ON {keyspace}.users (username)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
    USER_USERNAME_INDEX_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class User:
    """Forum member.

    Attributes:
        id: Unique identifier (UUID)
        username: Unique display name (3-20 chars)
        email: Unique email address, stored lower-cased
        password_hash: Argon2id hashed password
        avatar_url: Profile picture URL
        bio: Free-text profile description
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        username: str = "",
        email: str = "",
        password_hash: str = "",
        avatar_url: str | None = None,
        bio: str = "",
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.username = username.strip()
        self.email = email.lower().strip()
        self.password_hash = password_hash
        self.avatar_url = avatar_url
        self.bio = bio
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            username=row.username or "",
            email=row.email or "",
            password_hash=row.password_hash or "",
            avatar_url=row.avatar_url,
            bio=row.bio or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self, include_password: bool = False) -> dict[str, Any]:
        """Convert to dictionary (excludes password_hash by default)."""
        data = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if include_password:
            data["password_hash"] = self.password_hash
        return data

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.email})>"


@dataclass(frozen=True)
class Author:
    """Author identity denormalized onto posts and comments for display."""

    id: UUID
    username: str
    avatar_url: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Author":
        return cls(id=user.id, username=user.username, avatar_url=user.avatar_url)
