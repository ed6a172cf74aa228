"""Tests for PostRepository statement usage against a mocked session."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from rizhilu.auth.models import Author
from rizhilu.posts.models import PostCategory, PostFile, create_post
from rizhilu.posts.repository import PostRepository


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    # Each prepare() returns a distinct statement so calls can be told apart
    session.prepare = Mock(side_effect=lambda cql: Mock(name=cql.strip()[:40]))
    session.aexecute = AsyncMock(return_value=[])
    return session


@pytest.fixture
def repository(mock_session) -> PostRepository:
    return PostRepository(session=mock_session, keyspace="test_keyspace")


def _row(**fields):
    row = Mock()
    for key, value in fields.items():
        setattr(row, key, value)
    return row


def _post_row(post_id, category="经验分享", likes=None):
    return _row(
        post_id=post_id,
        title="Exam tips",
        content="Start early",
        author_id=uuid4(),
        author_name="alice",
        author_avatar=None,
        category=category,
        tags=["exam"],
        likes=likes,
        views=None,
        created_at=datetime(2024, 3, 1, 9, 0),
        updated_at=None,
    )


def _file_row(post_id, name, upload_date):
    return _row(
        file_id=uuid4(),
        post_id=post_id,
        filename=f"1700000000000-1{name[-4:]}",
        original_name=name,
        mimetype="application/pdf",
        size=1024,
        path=f"uploads/{name}",
        upload_date=upload_date,
    )


class TestPrepare:
    def test_statements_use_keyspace(self, repository, mock_session):
        """Every prepared statement targets the configured keyspace."""
        for call in mock_session.prepare.call_args_list:
            assert "test_keyspace." in call.args[0]


class TestFindById:
    @pytest.mark.asyncio
    async def test_missing_post_returns_none(self, repository, mock_session):
        assert await repository.find_by_id(uuid4()) is None
        assert mock_session.aexecute.await_count == 1

    @pytest.mark.asyncio
    async def test_without_files_skips_attachment_query(
        self, repository, mock_session
    ):
        post_id = uuid4()
        mock_session.aexecute.return_value = [_post_row(post_id)]

        post = await repository.find_by_id(post_id, with_files=False)

        assert post.post_id == post_id
        assert post.category == PostCategory.EXPERIENCE
        assert post.likes == set()
        assert post.views == 0
        assert post.created_at.tzinfo is UTC
        assert post.updated_at == post.created_at
        assert post.files == []
        mock_session.aexecute.assert_awaited_once_with(repository._get_post, [post_id])

    @pytest.mark.asyncio
    async def test_with_files_loads_attachments(self, repository, mock_session):
        post_id = uuid4()
        files = [_file_row(post_id, "notes.pdf", datetime(2024, 3, 1, 9, 1))]
        mock_session.aexecute = AsyncMock(side_effect=[[_post_row(post_id)], files])

        post = await repository.find_by_id(post_id)

        assert [f.original_name for f in post.files] == ["notes.pdf"]
        second = mock_session.aexecute.await_args_list[1]
        assert second.args == (repository._list_files, [post_id])

    @pytest.mark.asyncio
    async def test_unknown_category_falls_back_to_other(
        self, repository, mock_session
    ):
        post_id = uuid4()
        mock_session.aexecute.return_value = [_post_row(post_id, category="legacy")]

        post = await repository.find_by_id(post_id, with_files=False)

        assert post.category == PostCategory.OTHER


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_binds_category_value(self, repository, mock_session):
        post = create_post(
            "Exam tips",
            "Start early",
            Author(uuid4(), "alice"),
            category=PostCategory.DISCUSSION,
            tags=["exam"],
        )

        await repository.insert(post)

        statement, params = mock_session.aexecute.await_args.args
        assert statement is repository._insert_post
        assert params[0] == post.post_id
        assert params[6] == "问题讨论"
        assert params[7] == ["exam"]

    @pytest.mark.asyncio
    async def test_set_views(self, repository, mock_session):
        post_id = uuid4()

        await repository.set_views(post_id, 7)

        mock_session.aexecute.assert_awaited_once_with(
            repository._update_views, [7, post_id]
        )

    @pytest.mark.asyncio
    async def test_like_uses_set_operations(self, repository, mock_session):
        post_id, user_id = uuid4(), uuid4()

        await repository.add_like(post_id, user_id)
        await repository.remove_like(post_id, user_id)

        add_call, remove_call = mock_session.aexecute.await_args_list
        assert add_call.args == (repository._add_like, [{user_id}, post_id])
        assert remove_call.args == (repository._remove_like, [{user_id}, post_id])


class TestAttachments:
    @pytest.mark.asyncio
    async def test_list_files_in_upload_order(self, repository, mock_session):
        post_id = uuid4()
        mock_session.aexecute.return_value = [
            _file_row(post_id, "later.pdf", datetime(2024, 3, 1, 10, 0)),
            _file_row(post_id, "first.pdf", datetime(2024, 3, 1, 9, 0)),
        ]

        files = await repository.list_files(post_id)

        assert [f.original_name for f in files] == ["first.pdf", "later.pdf"]
        assert all(f.upload_date.tzinfo is UTC for f in files)

    @pytest.mark.asyncio
    async def test_insert_file(self, repository, mock_session):
        file = PostFile(
            file_id=uuid4(),
            post_id=uuid4(),
            filename="1700000000000-42.pdf",
            original_name="notes.pdf",
            mimetype="application/pdf",
            size=10,
            path="uploads/1700000000000-42.pdf",
            upload_date=datetime.now(UTC),
        )

        await repository.insert_file(file)

        statement, params = mock_session.aexecute.await_args.args
        assert statement is repository._insert_file
        assert params[:2] == [file.post_id, file.file_id]

    @pytest.mark.asyncio
    async def test_delete_file_and_partition(self, repository, mock_session):
        post_id, file_id = uuid4(), uuid4()

        await repository.delete_file(post_id, file_id)
        await repository.delete_files(post_id)

        single, partition = mock_session.aexecute.await_args_list
        assert single.args == (repository._delete_file, [post_id, file_id])
        assert partition.args == (repository._delete_files, [post_id])
