"""Authentication API endpoints.

Provides routes for:
- User registration and login
- Current user profile
- Profile update
"""

from fastapi import APIRouter, HTTPException, status

from rizhilu.auth.dependencies import AuthServiceDep, CurrentUser
from rizhilu.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserResponse,
)
from rizhilu.auth.service import (
    AuthError,
    InvalidCredentialsError,
    UserExistsError,
    UserNotFoundError,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])


# ==============================================================================
# Error Handling
# ==============================================================================


def handle_auth_error(error: AuthError) -> HTTPException:
    """Convert AuthError to HTTPException.

    For UserExistsError, returns structured detail with field info.
    """
    status_map = {
        "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
        "user_not_found": status.HTTP_404_NOT_FOUND,
        "user_exists": status.HTTP_409_CONFLICT,
        "auth_error": status.HTTP_400_BAD_REQUEST,
    }

    field = getattr(error, "field", None)
    detail: str | dict[str, str] = (
        {"message": error.message, "field": field} if field else error.message
    )

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )


# ==============================================================================
# Public Endpoints (No Auth Required)
# ==============================================================================


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        409: {"description": "Email or username already exists"},
        422: {"description": "Validation error"},
    },
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Register a new account and log it in."""
    try:
        user = await auth_service.register_user(data)
    except UserExistsError as e:
        raise handle_auth_error(e) from e

    access_token, expires_in = auth_service.create_access_token(user)
    return TokenResponse(
        message="Registration successful",
        access_token=access_token,
        expires_in=expires_in,
        user=auth_service.to_response(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User login",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Authenticate user and return an access token."""
    try:
        user = await auth_service.authenticate_user(data.email, data.password)
    except InvalidCredentialsError as e:
        raise handle_auth_error(e) from e

    access_token, expires_in = auth_service.create_access_token(user)
    return TokenResponse(
        message="Login successful",
        access_token=access_token,
        expires_in=expires_in,
        user=auth_service.to_response(user),
    )


# ==============================================================================
# Protected Endpoints (Auth Required)
# ==============================================================================


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Get current authenticated user profile.

    Returns full user data from database (not just token claims).
    """
    db_user = await auth_service.get_user_by_id(user.id)
    if not db_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return auth_service.to_response(db_user)


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update current user profile",
)
async def update_profile(
    data: UpdateProfileRequest,
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Update current user's username, bio or avatar."""
    try:
        updated_user = await auth_service.update_user_profile(
            user_id=user.id,
            username=data.username,
            bio=data.bio,
            avatar_url=data.avatar_url,
        )
    except (UserNotFoundError, UserExistsError) as e:
        raise handle_auth_error(e) from e

    return auth_service.to_response(updated_user)
