"""Attachment download and removal endpoints."""

from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import FileResponse

from rizhilu.auth.dependencies import CurrentUser, LinkUser
from rizhilu.comments.schemas import MessageResponse
from rizhilu.core.exceptions import ForumError, handle_forum_error

from .dependencies import PostServiceDep


router = APIRouter(prefix="/api/files", tags=["files"])


@router.get(
    "/download/{post_id}/{file_id}",
    response_class=FileResponse,
    summary="Download attachment",
    responses={404: {"description": "Post or file not found"}},
)
async def download_file(
    post_id: UUID,
    file_id: UUID,
    post_service: PostServiceDep,
    _user: LinkUser,
) -> FileResponse:
    """Send the file under its original name.

    The token may come from the Authorization header or ``?token=`` so that
    plain links work.
    """
    try:
        file, path = await post_service.get_file(post_id, file_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return FileResponse(path, media_type=file.mimetype, filename=file.original_name)


@router.delete(
    "/{post_id}/{file_id}",
    response_model=MessageResponse,
    summary="Delete attachment",
    responses={
        403: {"description": "Not the post author"},
        404: {"description": "Post or file not found"},
    },
)
async def delete_file(
    post_id: UUID,
    file_id: UUID,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        await post_service.delete_file(post_id, file_id, user.id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    return MessageResponse(message="File deleted")
