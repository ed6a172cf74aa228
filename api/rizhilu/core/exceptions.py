"""Domain error taxonomy shared by the forum services.

Services raise these; routers convert them with ``handle_forum_error``.
Store failures are not wrapped and surface through the global 500 handler.
"""

from fastapi import HTTPException, status


class ForumError(Exception):
    """Base forum error."""

    def __init__(self, message: str, code: str = "forum_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(ForumError):
    """Requested resource does not exist."""

    def __init__(self, message: str = "Resource not found", code: str = "not_found"):
        super().__init__(message, code)


class PostNotFoundError(NotFoundError):
    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class CommentNotFoundError(NotFoundError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class FileNotFoundInPostError(NotFoundError):
    def __init__(self, message: str = "File not found"):
        super().__init__(message, "file_not_found")


class PermissionDeniedError(ForumError):
    """Acting user is not the author of the resource."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


class ForumValidationError(ForumError):
    """Input rejected by a service-level rule."""

    def __init__(self, message: str):
        super().__init__(message, "validation_error")


def handle_forum_error(error: ForumError) -> HTTPException:
    """Convert a forum error to an HTTPException.

    Args:
        error: Forum error

    Returns:
        HTTPException with the status code mapped from ``error.code``
    """
    status_map = {
        "not_found": status.HTTP_404_NOT_FOUND,
        "post_not_found": status.HTTP_404_NOT_FOUND,
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "file_not_found": status.HTTP_404_NOT_FOUND,
        "permission_denied": status.HTTP_403_FORBIDDEN,
        "validation_error": status.HTTP_400_BAD_REQUEST,
        "too_many_files": status.HTTP_400_BAD_REQUEST,
        "file_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        "invalid_content_type": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
