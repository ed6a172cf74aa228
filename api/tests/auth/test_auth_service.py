"""Tests for AuthService against a mocked Cassandra session."""

from datetime import datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from rizhilu.auth.schemas import RegisterRequest
from rizhilu.auth.security import decode_access_token, hash_password
from rizhilu.auth.service import (
    AuthService,
    InvalidCredentialsError,
    UserExistsError,
    UserNotFoundError,
)


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    # cassandra-asyncio-driver exposes aexecute(); results behave like lists
    session.aexecute = AsyncMock(return_value=[])
    return session


@pytest.fixture
def auth_service(mock_session) -> AuthService:
    return AuthService(session=mock_session, keyspace="test_keyspace")


def _user_row(username="alice", email="alice@example.com", password="secret1"):
    row = Mock()
    row.id = uuid4()
    row.username = username
    row.email = email
    row.password_hash = hash_password(password)
    row.avatar_url = None
    row.bio = None
    row.created_at = datetime(2024, 1, 1)
    row.updated_at = None
    return row


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_inserts_user(self, auth_service, mock_session):
        data = RegisterRequest(
            username="alice", email="alice@example.com", password="secret1"
        )

        user = await auth_service.register_user(data)

        assert user.username == "alice"
        assert user.password_hash.startswith("$argon2")
        # email lookup, username lookup, insert
        assert mock_session.aexecute.await_count == 3
        insert_params = mock_session.aexecute.await_args_list[2].args[1]
        assert insert_params[0] == user.id
        assert insert_params[2] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service, mock_session):
        mock_session.aexecute.return_value = [_user_row()]
        data = RegisterRequest(
            username="other", email="alice@example.com", password="secret1"
        )

        with pytest.raises(UserExistsError) as exc_info:
            await auth_service.register_user(data)
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, auth_service, mock_session):
        mock_session.aexecute = AsyncMock(side_effect=[[], [_user_row()]])
        data = RegisterRequest(
            username="alice", email="new@example.com", password="secret1"
        )

        with pytest.raises(UserExistsError) as exc_info:
            await auth_service.register_user(data)
        assert exc_info.value.field == "username"


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, auth_service, mock_session):
        row = _user_row()
        mock_session.aexecute.return_value = [row]

        user = await auth_service.authenticate_user("ALICE@example.com", "secret1")

        assert user.id == row.id
        assert user.created_at.tzinfo is not None
        lookup = mock_session.aexecute.await_args_list[0].args[1]
        assert lookup == ["alice@example.com"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service, mock_session):
        mock_session.aexecute.return_value = [_user_row()]
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("alice@example.com", "nope-nope")

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth_service):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("ghost@example.com", "secret1")


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_updates_given_fields(self, auth_service, mock_session):
        row = _user_row()
        mock_session.aexecute = AsyncMock(side_effect=[[row], None])

        user = await auth_service.update_user_profile(row.id, bio="hello")

        assert user.bio == "hello"
        assert user.username == "alice"
        update_params = mock_session.aexecute.await_args_list[1].args[1]
        assert update_params[:3] == ["alice", "hello", None]

    @pytest.mark.asyncio
    async def test_username_taken(self, auth_service, mock_session):
        row = _user_row()
        other = _user_row(username="bob", email="bob@example.com")
        mock_session.aexecute = AsyncMock(side_effect=[[row], [other]])

        with pytest.raises(UserExistsError):
            await auth_service.update_user_profile(row.id, username="bob")

    @pytest.mark.asyncio
    async def test_missing_user(self, auth_service):
        with pytest.raises(UserNotFoundError):
            await auth_service.update_user_profile(uuid4(), bio="x")


class TestTokens:
    def test_create_access_token(self, auth_service):
        row = _user_row()
        mock_user = Mock(id=row.id, email=row.email, username=row.username)

        token, expires_in = auth_service.create_access_token(mock_user)

        payload = decode_access_token(token)
        assert payload["sub"] == str(row.id)
        assert payload["username"] == "alice"
        assert expires_in == 7 * 24 * 60 * 60
