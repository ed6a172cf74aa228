"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Auth service from app state
- Current user extraction from the JWT bearer token
- Token lookup that also accepts ``?token=`` (file downloads opened by link)
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Query, Request, status
from jose import JWTError
from pydantic import BaseModel

from rizhilu.auth.models import Author
from rizhilu.auth.security import decode_access_token
from rizhilu.auth.service import AuthService
from rizhilu.core.context import set_user_id


class TokenUser(BaseModel):
    """Identity carried by a verified access token."""

    id: UUID
    email: str
    username: str = ""


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    auth_service = getattr(request.app.state, "auth_service", None)
    if auth_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth service not available",
        )
    return auth_service


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_token_from_header_or_query(
    header_token: Annotated[str | None, Depends(get_token_from_header)],
    token: Annotated[str | None, Query(description="Access token")] = None,
) -> str | None:
    """Bearer header first, then the ``token`` query parameter."""
    return header_token or token


def _user_from_token(token: str | None) -> TokenUser:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = TokenUser(
            id=payload["sub"],
            email=payload.get("email", ""),
            username=payload.get("username", ""),
        )
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Set user_id in context for logging
    set_user_id(user.id)
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> TokenUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    return _user_from_token(token)


async def get_current_user_from_header_or_query(
    token: Annotated[str | None, Depends(get_token_from_header_or_query)],
) -> TokenUser:
    """Like ``get_current_user`` but also accepts ``?token=``."""
    return _user_from_token(token)


async def get_current_author(
    user: Annotated[TokenUser, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> Author:
    """Resolve the acting user's display identity from the user store.

    Falls back to the token claims when the account row is gone.
    """
    db_user = await auth_service.get_user_by_id(user.id)
    if db_user is None:
        return Author(id=user.id, username=user.username or user.email)
    return Author.from_user(db_user)


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]

CurrentUser = Annotated[TokenUser, Depends(get_current_user)]

LinkUser = Annotated[TokenUser, Depends(get_current_user_from_header_or_query)]

CurrentAuthor = Annotated[Author, Depends(get_current_author)]
