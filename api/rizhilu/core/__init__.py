# Core infrastructure
from rizhilu.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from rizhilu.core.exceptions import (
    CommentNotFoundError,
    ForumError,
    NotFoundError,
    PermissionDeniedError,
    PostNotFoundError,
    handle_forum_error,
)
from rizhilu.core.logging import configure_structlog, get_logger
from rizhilu.core.middleware import RequestContextMiddleware


__all__ = [
    "CommentNotFoundError",
    "ForumError",
    "NotFoundError",
    "PermissionDeniedError",
    "PostNotFoundError",
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "handle_forum_error",
    "set_request_id",
    "set_user_id",
]
