"""Cassandra access for comments and their linkage tables.

Every method is a short sequence of independent statements; there are no
batches or lightweight transactions. Deleting rows that are already gone is a
no-op in Cassandra, so every delete here can be re-run safely.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import Comment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CommentRepository:
    """Key-addressed store for comment records."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        # Arena
        self._get_comment = self.session.prepare(
            f"SELECT * FROM {ks}.comments WHERE comment_id = ?"
        )
        self._get_comments = self.session.prepare(
            f"SELECT * FROM {ks}.comments WHERE comment_id IN ?"
        )
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments
            (comment_id, post_id, parent_id, author_id, author_name, author_avatar,
             content, likes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_comment = self.session.prepare(
            f"DELETE FROM {ks}.comments WHERE comment_id = ?"
        )
        self._add_like = self.session.prepare(
            f"UPDATE {ks}.comments SET likes = likes + ? WHERE comment_id = ?"
        )
        self._remove_like = self.session.prepare(
            f"UPDATE {ks}.comments SET likes = likes - ? WHERE comment_id = ?"
        )

        # Post-wide index
        self._insert_by_post = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_post (post_id, created_at, comment_id, parent_id)
            VALUES (?, ?, ?, ?)
        """)
        self._list_by_post = self.session.prepare(f"""
            SELECT comment_id, parent_id, created_at FROM {ks}.comments_by_post
            WHERE post_id = ?
        """)
        self._delete_by_post_row = self.session.prepare(f"""
            DELETE FROM {ks}.comments_by_post
            WHERE post_id = ? AND created_at = ? AND comment_id = ?
        """)
        self._delete_by_post_partition = self.session.prepare(
            f"DELETE FROM {ks}.comments_by_post WHERE post_id = ?"
        )

        # Top-level linkage
        self._link_post = self.session.prepare(f"""
            INSERT INTO {ks}.post_comments (post_id, created_at, comment_id)
            VALUES (?, ?, ?)
        """)
        self._unlink_post = self.session.prepare(f"""
            DELETE FROM {ks}.post_comments
            WHERE post_id = ? AND created_at = ? AND comment_id = ?
        """)
        self._list_post_comment_ids = self.session.prepare(
            f"SELECT comment_id FROM {ks}.post_comments WHERE post_id = ?"
        )
        self._delete_post_links = self.session.prepare(
            f"DELETE FROM {ks}.post_comments WHERE post_id = ?"
        )

        # Reply linkage
        self._link_parent = self.session.prepare(f"""
            INSERT INTO {ks}.comment_replies (parent_id, created_at, comment_id)
            VALUES (?, ?, ?)
        """)
        self._unlink_parent = self.session.prepare(f"""
            DELETE FROM {ks}.comment_replies
            WHERE parent_id = ? AND created_at = ? AND comment_id = ?
        """)
        self._list_reply_ids = self.session.prepare(
            f"SELECT comment_id FROM {ks}.comment_replies WHERE parent_id = ?"
        )
        self._delete_reply_links = self.session.prepare(
            f"DELETE FROM {ks}.comment_replies WHERE parent_id = ?"
        )

    # ==========================================================================
    # Records
    # ==========================================================================

    async def find_by_id(self, comment_id: UUID) -> Comment | None:
        """Find a comment by ID."""
        result = await self.session.aexecute(self._get_comment, [comment_id])
        row = result[0] if result else None
        return Comment.from_row(row) if row else None

    async def find_many(self, comment_ids: list[UUID]) -> list[Comment]:
        """Fetch comments by ID, preserving the order of ``comment_ids``.

        IDs with no record are skipped.
        """
        if not comment_ids:
            return []
        rows = await self.session.aexecute(self._get_comments, [list(comment_ids)])
        by_id = {row.comment_id: Comment.from_row(row) for row in rows}
        return [by_id[cid] for cid in comment_ids if cid in by_id]

    async def insert(self, comment: Comment) -> None:
        """Store the comment record and its post-wide index entry."""
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.comment_id,
                comment.post_id,
                comment.parent_id,
                comment.author_id,
                comment.author_name,
                comment.author_avatar,
                comment.content,
                comment.likes,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_by_post,
            [comment.post_id, comment.created_at, comment.comment_id, comment.parent_id],
        )

    async def delete(self, comment: Comment) -> None:
        """Remove the comment record and its post-wide index entry."""
        await self.session.aexecute(self._delete_comment, [comment.comment_id])
        await self.session.aexecute(
            self._delete_by_post_row,
            [comment.post_id, comment.created_at, comment.comment_id],
        )

    async def add_like(self, comment_id: UUID, user_id: UUID) -> None:
        await self.session.aexecute(self._add_like, [{user_id}, comment_id])

    async def remove_like(self, comment_id: UUID, user_id: UUID) -> None:
        await self.session.aexecute(self._remove_like, [{user_id}, comment_id])

    # ==========================================================================
    # Linkage
    # ==========================================================================

    async def link_to_post(self, comment: Comment) -> None:
        await self.session.aexecute(
            self._link_post, [comment.post_id, comment.created_at, comment.comment_id]
        )

    async def unlink_from_post(self, comment: Comment) -> None:
        await self.session.aexecute(
            self._unlink_post,
            [comment.post_id, comment.created_at, comment.comment_id],
        )

    async def link_to_parent(self, comment: Comment, parent_id: UUID) -> None:
        await self.session.aexecute(
            self._link_parent, [parent_id, comment.created_at, comment.comment_id]
        )

    async def unlink_from_parent(self, comment: Comment, parent_id: UUID) -> None:
        await self.session.aexecute(
            self._unlink_parent, [parent_id, comment.created_at, comment.comment_id]
        )

    async def list_post_comment_ids(self, post_id: UUID) -> list[UUID]:
        """Top-level comment IDs of a post, oldest first."""
        rows = await self.session.aexecute(self._list_post_comment_ids, [post_id])
        return [row.comment_id for row in rows]

    async def list_reply_ids(self, parent_id: UUID) -> list[UUID]:
        """Reply IDs of a comment, oldest first."""
        rows = await self.session.aexecute(self._list_reply_ids, [parent_id])
        return [row.comment_id for row in rows]

    async def list_ids_by_post(self, post_id: UUID) -> list[UUID]:
        """Every comment ID bound to a post, top-level and replies."""
        rows = await self.session.aexecute(self._list_by_post, [post_id])
        return [row.comment_id for row in rows]

    # ==========================================================================
    # Bulk deletes
    # ==========================================================================

    async def delete_many_by_parent(self, parent_id: UUID, post_id: UUID) -> int:
        """Delete every comment whose parent is ``parent_id``.

        Replies are found through the post-wide index (by foreign key) and the
        reply linkage, so a reply whose linkage write never landed is still
        removed. Returns the number of records removed.
        """
        rows = await self.session.aexecute(self._list_by_post, [post_id])
        targets = {
            row.comment_id: row.created_at for row in rows if row.parent_id == parent_id
        }
        for reply_id in await self.list_reply_ids(parent_id):
            targets.setdefault(reply_id, None)

        removed = 0
        for reply_id, created_at in targets.items():
            if created_at is None:
                reply = await self.find_by_id(reply_id)
                if reply is None:
                    continue
                created_at = reply.created_at
            await self.session.aexecute(self._delete_comment, [reply_id])
            await self.session.aexecute(
                self._delete_by_post_row, [post_id, created_at, reply_id]
            )
            removed += 1

        await self.session.aexecute(self._delete_reply_links, [parent_id])
        return removed

    async def delete_many_by_post(self, post_id: UUID) -> int:
        """Delete every comment whose post is ``post_id``, with all linkage.

        Top-level comments are taken from both the ``comments_by_post`` index
        and the ``post_comments`` linkage, so reply partitions are dropped even
        when an index row was lost. Returns the number of indexed records
        removed.
        """
        rows = list(await self.session.aexecute(self._list_by_post, [post_id]))
        deleted: set[UUID] = set()
        for row in rows:
            await self.session.aexecute(self._delete_comment, [row.comment_id])
            deleted.add(row.comment_id)

        top_level = [row.comment_id for row in rows if row.parent_id is None]
        for comment_id in await self.list_post_comment_ids(post_id):
            if comment_id not in top_level:
                top_level.append(comment_id)

        for comment_id in top_level:
            for reply_id in await self.list_reply_ids(comment_id):
                if reply_id not in deleted:
                    await self.session.aexecute(self._delete_comment, [reply_id])
                    deleted.add(reply_id)
            if comment_id not in deleted:
                await self.session.aexecute(self._delete_comment, [comment_id])
                deleted.add(comment_id)
            await self.session.aexecute(self._delete_reply_links, [comment_id])

        removed = len(rows)
        await self.session.aexecute(self._delete_post_links, [post_id])
        await self.session.aexecute(self._delete_by_post_partition, [post_id])
        logger.info("comments_deleted_for_post", post_id=str(post_id), count=removed)
        return removed
