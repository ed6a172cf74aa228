"""Authentication service layer.

Business logic for:
- User registration and login
- Token creation
- Profile updates
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from rizhilu.auth.models import User
from rizhilu.auth.schemas import RegisterRequest, UserResponse
from rizhilu.auth.security import (
    access_token_lifetime_seconds,
    create_access_token,
    hash_password,
    verify_password,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(Exception):
    """Base authentication error."""

    def __init__(self, message: str, code: str = "auth_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class UserExistsError(AuthError):
    """Username or email already registered."""

    def __init__(self, message: str = "User already exists", field: str | None = None):
        super().__init__(message, "user_exists")
        self.field = field


class UserNotFoundError(AuthError):
    """User not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Authentication service for user management and token operations."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_email = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE email = ?"
        )
        self._get_user_by_username = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE username = ?"
        )
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, username, email, password_hash, avatar_url, bio, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_user = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET username = ?, bio = ?, avatar_url = ?, updated_at = ?
            WHERE id = ?
        """)
        self._update_user_password = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET password_hash = ?, updated_at = ?
            WHERE id = ?
        """)

    # ==========================================================================
    # User Operations
    # ==========================================================================

    async def _fetch_one(self, statement, params: list) -> User | None:
        result = await self.session.aexecute(statement, params)
        row = result[0] if result else None
        return User.from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Find user by email address."""
        return await self._fetch_one(self._get_user_by_email, [email.lower()])

    async def get_user_by_username(self, username: str) -> User | None:
        """Find user by username (exact match)."""
        return await self._fetch_one(self._get_user_by_username, [username])

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        return await self._fetch_one(self._get_user_by_id, [user_id])

    async def register_user(self, data: RegisterRequest) -> User:
        """Register a new user.

        Raises:
            UserExistsError: If email or username is already taken
        """
        if await self.get_user_by_email(data.email):
            raise UserExistsError("Email already registered", field="email")

        if await self.get_user_by_username(data.username):
            raise UserExistsError("Username already taken", field="username")

        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
        )

        await self.session.aexecute(
            self._insert_user,
            [
                user.id,
                user.username,
                user.email,
                user.password_hash,
                user.avatar_url,
                user.bio,
                user.created_at,
                user.updated_at,
            ],
        )
        logger.info("user_registered", user_id=str(user.id), username=user.username)
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If email or password is wrong
        """
        user = await self.get_user_by_email(email)
        if not user:
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.password_hash)
        if not is_valid:
            raise InvalidCredentialsError

        # Update hash if algorithm params changed
        if new_hash:
            await self.session.aexecute(
                self._update_user_password,
                [new_hash, datetime.now(UTC), user.id],
            )
            user.password_hash = new_hash

        logger.info("user_logged_in", user_id=str(user.id))
        return user

    async def update_user_profile(
        self,
        user_id: UUID,
        username: str | None = None,
        bio: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        """Update profile fields that were provided.

        Raises:
            UserNotFoundError: If user doesn't exist
            UserExistsError: If the new username belongs to someone else
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError

        if username is not None and username != user.username:
            existing = await self.get_user_by_username(username)
            if existing and existing.id != user.id:
                raise UserExistsError("Username already taken", field="username")
            user.username = username
        if bio is not None:
            user.bio = bio
        if avatar_url is not None:
            user.avatar_url = avatar_url

        user.updated_at = datetime.now(UTC)

        await self.session.aexecute(
            self._update_user,
            [user.username, user.bio, user.avatar_url, user.updated_at, user.id],
        )
        return user

    # ==========================================================================
    # Tokens
    # ==========================================================================

    def create_access_token(self, user: User) -> tuple[str, int]:
        """Create an access token for user.

        Returns:
            Tuple of (access_token, expires_in_seconds)
        """
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
        }
        return create_access_token(payload), access_token_lifetime_seconds()

    def to_response(self, user: User) -> UserResponse:
        """Convert User model to UserResponse schema."""
        return UserResponse.from_user(user)
