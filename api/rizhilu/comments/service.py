"""Comment service layer.

Business logic for:
- Creating and deleting comments (delegated to the tree manager)
- Listing a post's comment tree
- Like toggling
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from rizhilu.auth.models import Author
from rizhilu.core.exceptions import CommentNotFoundError, PostNotFoundError

from .models import Comment
from .tree import CommentTreeManager


if TYPE_CHECKING:
    from rizhilu.posts.repository import PostRepository

    from .repository import CommentRepository


logger = structlog.get_logger(__name__)


class CommentService:
    """Service for comment management."""

    def __init__(self, comments: "CommentRepository", posts: "PostRepository"):
        self.comments = comments
        self.posts = posts
        self.tree = CommentTreeManager(comments, posts)

    # ==========================================================================
    # Comment CRUD
    # ==========================================================================

    async def create_comment(
        self,
        content: str,
        author: Author,
        post_id: UUID,
        parent_id: UUID | None = None,
    ) -> Comment:
        """Create a top-level comment or a reply."""
        return await self.tree.create_comment(
            content=content, author=author, post_id=post_id, parent_id=parent_id
        )

    async def delete_comment(self, comment_id: UUID, user_id: UUID) -> None:
        """Delete a comment and its replies. Author only."""
        await self.tree.delete_comment(comment_id, user_id)

    async def get_post_comments(self, post_id: UUID) -> list[Comment]:
        """Top-level comments of a post, newest first, replies populated.

        Replies are listed oldest first. Linkage entries whose record is gone
        (a partially completed delete) are skipped.

        Raises:
            PostNotFoundError: If the post does not exist
        """
        if await self.posts.find_by_id(post_id, with_files=False) is None:
            raise PostNotFoundError

        top_level = await self.comments.find_many(
            await self.tree.post_comment_ids(post_id)
        )
        for comment in top_level:
            comment.replies = await self.comments.find_many(
                await self.tree.reply_ids(comment.comment_id)
            )

        top_level.sort(key=lambda c: c.created_at, reverse=True)
        return top_level

    # ==========================================================================
    # Likes
    # ==========================================================================

    async def toggle_like(self, comment_id: UUID, user_id: UUID) -> tuple[bool, int]:
        """Like the comment, or remove the like if already present.

        Returns:
            Tuple of (liked, like_count)
        """
        comment = await self.comments.find_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundError

        if user_id in comment.likes:
            await self.comments.remove_like(comment_id, user_id)
            comment.likes.discard(user_id)
            liked = False
        else:
            await self.comments.add_like(comment_id, user_id)
            comment.likes.add(user_id)
            liked = True

        logger.info(
            "comment_like_toggled",
            comment_id=str(comment_id),
            liked=liked,
            likes=len(comment.likes),
        )
        return liked, len(comment.likes)
