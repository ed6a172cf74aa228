"""Tests for auth schemas."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from rizhilu.auth.models import User
from rizhilu.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserResponse,
)


class TestRegisterRequest:
    """Tests for RegisterRequest schema."""

    def test_valid_registration(self) -> None:
        """Username is trimmed and email lower-cased."""
        data = RegisterRequest(
            username="  alice ", email="Alice@Example.com", password="secret1"
        )
        assert data.username == "alice"
        assert data.email == "alice@example.com"

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(username="alice", email="not-an-email", password="secret1")
        assert "email" in str(exc_info.value).lower()

    def test_short_password(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(username="alice", email="a@example.com", password="123")
        assert "at least 6" in str(exc_info.value)

    def test_invalid_username(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="a b", email="a@example.com", password="secret1")


class TestLoginRequest:
    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="a@example.com", password="")


class TestUpdateProfileRequest:
    def test_all_fields_optional(self) -> None:
        data = UpdateProfileRequest()
        assert data.username is None
        assert data.bio is None
        assert data.avatar_url is None

    def test_bio_too_long(self) -> None:
        with pytest.raises(ValidationError):
            UpdateProfileRequest(bio="x" * 501)

    def test_username_validated(self) -> None:
        with pytest.raises(ValidationError):
            UpdateProfileRequest(username="x")


class TestResponses:
    def test_user_response_from_user(self) -> None:
        user = User(
            id=uuid4(), username="alice", email="a@example.com", password_hash="h"
        )
        response = UserResponse.from_user(user)

        assert response.id == user.id
        assert response.bio == ""
        assert "password_hash" not in response.model_dump()

    def test_token_response_defaults_to_bearer(self) -> None:
        user = User(username="alice", email="a@example.com")
        response = TokenResponse(
            message="Login successful",
            access_token="token",
            expires_in=604800,
            user=UserResponse.from_user(user),
        )
        assert response.token_type == "Bearer"
