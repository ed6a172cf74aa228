"""Post service layer.

Business logic for:
- Post creation with attachments
- Listing with category / tag / search filters and pagination
- Post detail with the comment tree (counts a view)
- Author-only update and cascading delete
- Like toggling
- Attachment lookup and removal
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog

from rizhilu.auth.models import Author
from rizhilu.core.exceptions import (
    FileNotFoundInPostError,
    PermissionDeniedError,
    PostNotFoundError,
)

from .models import Post, PostCategory, PostFile, create_post


if TYPE_CHECKING:
    from fastapi import UploadFile

    from rizhilu.comments.models import Comment
    from rizhilu.comments.service import CommentService
    from rizhilu.storage.service import LocalStorageService

    from .repository import PostRepository


logger = structlog.get_logger(__name__)


@dataclass
class PostPage:
    posts: list[Post]
    current_page: int
    total_pages: int
    total_posts: int


class PostService:
    """Service for post management."""

    def __init__(
        self,
        posts: "PostRepository",
        comment_service: "CommentService",
        storage: "LocalStorageService",
    ):
        self.posts = posts
        self.comment_service = comment_service
        self.storage = storage

    async def _get_post(self, post_id: UUID, with_files: bool = True) -> Post:
        post = await self.posts.find_by_id(post_id, with_files=with_files)
        if post is None:
            raise PostNotFoundError
        return post

    @staticmethod
    def _ensure_author(post: Post, user_id: UUID, action: str) -> None:
        if post.author_id != user_id:
            raise PermissionDeniedError(f"You can only {action} your own posts")

    # ==========================================================================
    # Post CRUD
    # ==========================================================================

    async def create_post(
        self,
        title: str,
        content: str,
        author: Author,
        category: PostCategory = PostCategory.OTHER,
        tags: list[str] | None = None,
        uploads: list["UploadFile"] | None = None,
    ) -> Post:
        """Create a post and store its attachments.

        Files already written are removed again if a later one is rejected.

        Raises:
            TooManyFilesError: Above the per-post file limit
            FileTooLargeError: If a file exceeds the size limit
            InvalidContentTypeError: If a file type is not allowed
        """
        uploads = [u for u in uploads or [] if u.filename]
        self.storage.check_count(len(uploads))

        post = create_post(title, content, author, category=category, tags=tags)

        stored = []
        try:
            for upload in uploads:
                stored.append(await self.storage.save(upload))
        except Exception:
            for item in stored:
                await self.storage.delete(item.path)
            raise

        await self.posts.insert(post)
        for item in stored:
            file = PostFile(
                file_id=uuid4(),
                post_id=post.post_id,
                filename=item.filename,
                original_name=item.original_name,
                mimetype=item.mimetype,
                size=item.size,
                path=item.path,
                upload_date=datetime.now(UTC),
            )
            await self.posts.insert_file(file)
            post.files.append(file)

        logger.info(
            "post_created",
            post_id=str(post.post_id),
            author_id=str(author.id),
            files=len(post.files),
        )
        return post

    async def list_posts(
        self,
        page: int = 1,
        limit: int = 10,
        category: PostCategory | None = None,
        search: str | None = None,
        tag: str | None = None,
    ) -> PostPage:
        """One page of posts matching the filters, newest first.

        ``search`` is a case-insensitive substring match on title or content.
        """
        posts = await self.posts.list_all()

        if category is not None:
            posts = [p for p in posts if p.category == category]
        if tag:
            posts = [p for p in posts if tag in p.tags]
        if search:
            needle = search.lower()
            posts = [
                p
                for p in posts
                if needle in p.title.lower() or needle in p.content.lower()
            ]

        posts.sort(key=lambda p: p.created_at, reverse=True)

        total = len(posts)
        start = (page - 1) * limit
        page_posts = posts[start : start + limit]
        for post in page_posts:
            post.files = await self.posts.list_files(post.post_id)
            post.comment_ids = await self.comment_service.tree.post_comment_ids(
                post.post_id
            )

        return PostPage(
            posts=page_posts,
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_posts=total,
        )

    async def get_post_detail(self, post_id: UUID) -> tuple[Post, list["Comment"]]:
        """Fetch a post with its comment tree and count the view.

        Raises:
            PostNotFoundError: If the post does not exist
        """
        post = await self._get_post(post_id)

        # Read-modify-write; concurrent views may be lost
        post.views += 1
        await self.posts.set_views(post_id, post.views)

        comments = await self.comment_service.get_post_comments(post_id)
        post.comment_ids = await self.comment_service.tree.post_comment_ids(post_id)
        return post, comments

    async def update_post(
        self,
        post_id: UUID,
        user_id: UUID,
        title: str | None = None,
        content: str | None = None,
        category: PostCategory | None = None,
        tags: list[str] | None = None,
    ) -> Post:
        """Update the given fields of a post. Author only.

        Raises:
            PostNotFoundError: If the post does not exist
            PermissionDeniedError: If the user is not the author
        """
        post = await self._get_post(post_id)
        self._ensure_author(post, user_id, "edit")

        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        if category is not None:
            post.category = category
        if tags is not None:
            post.tags = tags
        post.updated_at = datetime.now(UTC)

        await self.posts.update(post)
        logger.info("post_updated", post_id=str(post_id))
        return post

    async def delete_post(self, post_id: UUID, user_id: UUID) -> None:
        """Delete a post with its comments and attachments. Author only.

        Raises:
            PostNotFoundError: If the post does not exist
            PermissionDeniedError: If the user is not the author
        """
        post = await self._get_post(post_id)
        self._ensure_author(post, user_id, "delete")

        removed = await self.comment_service.tree.delete_post_cascade(post_id)

        for file in post.files:
            await self.storage.delete(file.path)
        await self.posts.delete_files(post_id)
        await self.posts.delete(post_id)

        logger.info(
            "post_deleted",
            post_id=str(post_id),
            comments_removed=removed,
            files_removed=len(post.files),
        )

    # ==========================================================================
    # Likes
    # ==========================================================================

    async def toggle_like(self, post_id: UUID, user_id: UUID) -> tuple[bool, int]:
        """Like the post, or remove the like if already present.

        Returns:
            Tuple of (liked, like_count)
        """
        post = await self._get_post(post_id, with_files=False)

        if user_id in post.likes:
            await self.posts.remove_like(post_id, user_id)
            post.likes.discard(user_id)
            liked = False
        else:
            await self.posts.add_like(post_id, user_id)
            post.likes.add(user_id)
            liked = True

        logger.info(
            "post_like_toggled",
            post_id=str(post_id),
            liked=liked,
            likes=len(post.likes),
        )
        return liked, len(post.likes)

    # ==========================================================================
    # Attachments
    # ==========================================================================

    async def get_file(self, post_id: UUID, file_id: UUID) -> tuple[PostFile, Path]:
        """Attachment record and its path on disk.

        Raises:
            PostNotFoundError: If the post does not exist
            FileNotFoundInPostError: If the record or the physical file is gone
        """
        post = await self._get_post(post_id)
        file = post.find_file(file_id)
        if file is None:
            raise FileNotFoundInPostError

        path = self.storage.resolve(file.path)
        if path is None:
            logger.warning(
                "attachment_missing_on_disk",
                post_id=str(post_id),
                file_id=str(file_id),
            )
            raise FileNotFoundInPostError
        return file, path

    async def delete_file(self, post_id: UUID, file_id: UUID, user_id: UUID) -> None:
        """Remove an attachment from disk and from the post. Author only.

        Raises:
            PostNotFoundError: If the post does not exist
            PermissionDeniedError: If the user is not the post author
            FileNotFoundInPostError: If the post has no such attachment
        """
        post = await self._get_post(post_id)
        self._ensure_author(post, user_id, "delete files of")

        file = post.find_file(file_id)
        if file is None:
            raise FileNotFoundInPostError

        await self.storage.delete(file.path)
        await self.posts.delete_file(post_id, file_id)
        logger.info("attachment_deleted", post_id=str(post_id), file_id=str(file_id))
