"""Linkage and cascading removal for the post / comment / reply tree.

The tree has exactly two levels under a post: top-level comments and their
replies. A comment is stored once in the arena (``comments``); whether it is
reachable from its post or from its parent is recorded by a single linkage
row. The operations here keep that linkage consistent:

* create: store the record, then link it to the post *or* to the parent;
* delete comment: unlink it, delete its replies, delete it;
* delete post: delete every comment bound to the post.

None of this is atomic. Each step is idempotent, so re-running a delete that
failed half-way finishes the job instead of failing on what is already gone.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from rizhilu.auth.models import Author
from rizhilu.core.exceptions import (
    CommentNotFoundError,
    ForumValidationError,
    PermissionDeniedError,
    PostNotFoundError,
)

from .models import Comment, create_comment


if TYPE_CHECKING:
    from rizhilu.posts.repository import PostRepository

    from .repository import CommentRepository


logger = structlog.get_logger(__name__)


class CommentTreeManager:
    """Keeps the post / top-level comment / reply relationship consistent."""

    def __init__(self, comments: "CommentRepository", posts: "PostRepository"):
        self.comments = comments
        self.posts = posts

    async def create_comment(
        self,
        content: str,
        author: Author,
        post_id: UUID,
        parent_id: UUID | None = None,
    ) -> Comment:
        """Create a comment and link it to its post or parent.

        When ``parent_id`` names a comment that does not exist, the record is
        still stored (carrying the dangling ``parent_id``) but linked nowhere.
        A parent that belongs to another post is rejected.

        Raises:
            PostNotFoundError: If the post does not exist
            ForumValidationError: If the parent belongs to another post, or is
                itself a reply
        """
        post = await self.posts.find_by_id(post_id, with_files=False)
        if post is None:
            raise PostNotFoundError

        parent: Comment | None = None
        if parent_id is not None:
            parent = await self.comments.find_by_id(parent_id)
            if parent is not None and parent.post_id != post_id:
                raise ForumValidationError("Parent comment belongs to another post")
            if parent is not None and parent.is_reply:
                raise ForumValidationError("Replies cannot be replied to")

        comment = create_comment(
            post_id=post_id,
            author=author,
            content=content,
            parent_id=parent_id,
        )
        await self.comments.insert(comment)

        if parent_id is None:
            await self.comments.link_to_post(comment)
        elif parent is not None:
            await self.comments.link_to_parent(comment, parent_id)
        else:
            logger.warning(
                "comment_parent_missing",
                comment_id=str(comment.comment_id),
                parent_id=str(parent_id),
                post_id=str(post_id),
            )

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            post_id=str(post_id),
            parent_id=str(parent_id) if parent_id else None,
        )
        return comment

    async def delete_comment(self, comment_id: UUID, acting_user_id: UUID) -> None:
        """Delete a comment authored by ``acting_user_id`` and its replies.

        Raises:
            CommentNotFoundError: If the comment does not exist
            PermissionDeniedError: If the acting user is not the author
        """
        comment = await self.comments.find_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundError

        if comment.author_id != acting_user_id:
            raise PermissionDeniedError("You can only delete your own comments")

        if comment.parent_id is None:
            await self.comments.unlink_from_post(comment)
        else:
            await self.comments.unlink_from_parent(comment, comment.parent_id)

        removed = await self.comments.delete_many_by_parent(
            comment.comment_id, comment.post_id
        )
        await self.comments.delete(comment)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            post_id=str(comment.post_id),
            replies_removed=removed,
        )

    async def delete_post_cascade(self, post_id: UUID) -> int:
        """Remove every comment bound to ``post_id``.

        Replies are not unlinked one by one; their parents go too.
        Returns the number of comment records removed.
        """
        return await self.comments.delete_many_by_post(post_id)

    async def post_comment_ids(self, post_id: UUID) -> list[UUID]:
        """Ordered top-level comment IDs of a post."""
        return await self.comments.list_post_comment_ids(post_id)

    async def reply_ids(self, comment_id: UUID) -> list[UUID]:
        """Ordered reply IDs of a comment."""
        return await self.comments.list_reply_ids(comment_id)
