"""Cassandra access for posts and their attachments."""

from typing import TYPE_CHECKING
from uuid import UUID

from .models import Post, PostFile


if TYPE_CHECKING:
    from cassandra.cluster import Session


class PostRepository:
    """Key-addressed store for post and attachment records."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        self._get_post = self.session.prepare(
            f"SELECT * FROM {ks}.posts WHERE post_id = ?"
        )
        self._list_posts = self.session.prepare(f"SELECT * FROM {ks}.posts")
        self._insert_post = self.session.prepare(f"""
            INSERT INTO {ks}.posts
            (post_id, title, content, author_id, author_name, author_avatar,
             category, tags, likes, views, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_post = self.session.prepare(f"""
            UPDATE {ks}.posts
            SET title = ?, content = ?, category = ?, tags = ?, updated_at = ?
            WHERE post_id = ?
        """)
        self._update_views = self.session.prepare(
            f"UPDATE {ks}.posts SET views = ? WHERE post_id = ?"
        )
        self._add_like = self.session.prepare(
            f"UPDATE {ks}.posts SET likes = likes + ? WHERE post_id = ?"
        )
        self._remove_like = self.session.prepare(
            f"UPDATE {ks}.posts SET likes = likes - ? WHERE post_id = ?"
        )
        self._delete_post = self.session.prepare(
            f"DELETE FROM {ks}.posts WHERE post_id = ?"
        )

        # Attachments
        self._insert_file = self.session.prepare(f"""
            INSERT INTO {ks}.post_files
            (post_id, file_id, filename, original_name, mimetype, size, path, upload_date)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_files = self.session.prepare(
            f"SELECT * FROM {ks}.post_files WHERE post_id = ?"
        )
        self._delete_file = self.session.prepare(
            f"DELETE FROM {ks}.post_files WHERE post_id = ? AND file_id = ?"
        )
        self._delete_files = self.session.prepare(
            f"DELETE FROM {ks}.post_files WHERE post_id = ?"
        )

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def find_by_id(self, post_id: UUID, with_files: bool = True) -> Post | None:
        """Find a post by ID, attachments included unless ``with_files`` is False."""
        result = await self.session.aexecute(self._get_post, [post_id])
        row = result[0] if result else None
        if not row:
            return None
        post = Post.from_row(row)
        if with_files:
            post.files = await self.list_files(post_id)
        return post

    async def list_all(self) -> list[Post]:
        """Every post, without attachments. Filtering happens in the service."""
        rows = await self.session.aexecute(self._list_posts)
        return [Post.from_row(row) for row in rows]

    async def insert(self, post: Post) -> None:
        await self.session.aexecute(
            self._insert_post,
            [
                post.post_id,
                post.title,
                post.content,
                post.author_id,
                post.author_name,
                post.author_avatar,
                post.category.value,
                post.tags,
                post.likes,
                post.views,
                post.created_at,
                post.updated_at,
            ],
        )

    async def update(self, post: Post) -> None:
        """Persist the editable fields of ``post``."""
        await self.session.aexecute(
            self._update_post,
            [
                post.title,
                post.content,
                post.category.value,
                post.tags,
                post.updated_at,
                post.post_id,
            ],
        )

    async def set_views(self, post_id: UUID, views: int) -> None:
        await self.session.aexecute(self._update_views, [views, post_id])

    async def add_like(self, post_id: UUID, user_id: UUID) -> None:
        await self.session.aexecute(self._add_like, [{user_id}, post_id])

    async def remove_like(self, post_id: UUID, user_id: UUID) -> None:
        await self.session.aexecute(self._remove_like, [{user_id}, post_id])

    async def delete(self, post_id: UUID) -> None:
        await self.session.aexecute(self._delete_post, [post_id])

    # ==========================================================================
    # Attachments
    # ==========================================================================

    async def insert_file(self, file: PostFile) -> None:
        await self.session.aexecute(
            self._insert_file,
            [
                file.post_id,
                file.file_id,
                file.filename,
                file.original_name,
                file.mimetype,
                file.size,
                file.path,
                file.upload_date,
            ],
        )

    async def list_files(self, post_id: UUID) -> list[PostFile]:
        """Attachments of a post, in upload order."""
        rows = await self.session.aexecute(self._list_files, [post_id])
        files = [PostFile.from_row(row) for row in rows]
        return sorted(files, key=lambda f: f.upload_date)

    async def delete_file(self, post_id: UUID, file_id: UUID) -> None:
        await self.session.aexecute(self._delete_file, [post_id, file_id])

    async def delete_files(self, post_id: UUID) -> None:
        await self.session.aexecute(self._delete_files, [post_id])
