"""Shared fixtures: in-memory stores, services and a wired test app."""

import copy
import os
import tempfile
from datetime import datetime
from uuid import UUID

import pytest


_tmp_root = tempfile.mkdtemp(prefix="rizhilu-tests-")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", os.path.join(_tmp_root, "logs"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_tmp_root, "uploads"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rizhilu.auth.models import Author, User  # noqa: E402
from rizhilu.auth.security import create_access_token  # noqa: E402
from rizhilu.comments.models import Comment  # noqa: E402
from rizhilu.comments.service import CommentService  # noqa: E402
from rizhilu.config.settings import Settings  # noqa: E402
from rizhilu.posts.models import Post, PostFile, create_post  # noqa: E402
from rizhilu.posts.service import PostService  # noqa: E402
from rizhilu.storage.service import LocalStorageService  # noqa: E402


# ==============================================================================
# In-memory stores
# ==============================================================================


class InMemoryPostRepository:
    """Dict-backed stand-in for PostRepository."""

    def __init__(self) -> None:
        self.posts: dict[UUID, Post] = {}
        self.files: dict[UUID, dict[UUID, PostFile]] = {}

    async def find_by_id(self, post_id: UUID, with_files: bool = True) -> Post | None:
        post = self.posts.get(post_id)
        if post is None:
            return None
        post = copy.deepcopy(post)
        if with_files:
            post.files = await self.list_files(post_id)
        return post

    async def list_all(self) -> list[Post]:
        return [copy.deepcopy(p) for p in self.posts.values()]

    async def insert(self, post: Post) -> None:
        stored = copy.deepcopy(post)
        stored.files = []
        self.posts[post.post_id] = stored

    async def update(self, post: Post) -> None:
        stored = self.posts[post.post_id]
        stored.title = post.title
        stored.content = post.content
        stored.category = post.category
        stored.tags = list(post.tags)
        stored.updated_at = post.updated_at

    async def set_views(self, post_id: UUID, views: int) -> None:
        self.posts[post_id].views = views

    async def add_like(self, post_id: UUID, user_id: UUID) -> None:
        self.posts[post_id].likes.add(user_id)

    async def remove_like(self, post_id: UUID, user_id: UUID) -> None:
        self.posts[post_id].likes.discard(user_id)

    async def delete(self, post_id: UUID) -> None:
        self.posts.pop(post_id, None)

    async def insert_file(self, file: PostFile) -> None:
        self.files.setdefault(file.post_id, {})[file.file_id] = copy.deepcopy(file)

    async def list_files(self, post_id: UUID) -> list[PostFile]:
        files = [copy.deepcopy(f) for f in self.files.get(post_id, {}).values()]
        return sorted(files, key=lambda f: f.upload_date)

    async def delete_file(self, post_id: UUID, file_id: UUID) -> None:
        self.files.get(post_id, {}).pop(file_id, None)

    async def delete_files(self, post_id: UUID) -> None:
        self.files.pop(post_id, None)


class InMemoryCommentRepository:
    """Dict-backed stand-in for CommentRepository, same linkage layout."""

    def __init__(self) -> None:
        self.records: dict[UUID, Comment] = {}
        # post_id -> {comment_id: (created_at, parent_id)}
        self.by_post: dict[UUID, dict[UUID, tuple[datetime, UUID | None]]] = {}
        self.post_links: dict[UUID, list[UUID]] = {}
        self.reply_links: dict[UUID, list[UUID]] = {}

    async def find_by_id(self, comment_id: UUID) -> Comment | None:
        comment = self.records.get(comment_id)
        return copy.deepcopy(comment) if comment else None

    async def find_many(self, comment_ids: list[UUID]) -> list[Comment]:
        return [
            copy.deepcopy(self.records[cid]) for cid in comment_ids if cid in self.records
        ]

    async def insert(self, comment: Comment) -> None:
        self.records[comment.comment_id] = copy.deepcopy(comment)
        self.by_post.setdefault(comment.post_id, {})[comment.comment_id] = (
            comment.created_at,
            comment.parent_id,
        )

    async def delete(self, comment: Comment) -> None:
        self.records.pop(comment.comment_id, None)
        self.by_post.get(comment.post_id, {}).pop(comment.comment_id, None)

    async def add_like(self, comment_id: UUID, user_id: UUID) -> None:
        self.records[comment_id].likes.add(user_id)

    async def remove_like(self, comment_id: UUID, user_id: UUID) -> None:
        self.records[comment_id].likes.discard(user_id)

    async def link_to_post(self, comment: Comment) -> None:
        links = self.post_links.setdefault(comment.post_id, [])
        if comment.comment_id not in links:
            links.append(comment.comment_id)

    async def unlink_from_post(self, comment: Comment) -> None:
        links = self.post_links.get(comment.post_id, [])
        if comment.comment_id in links:
            links.remove(comment.comment_id)

    async def link_to_parent(self, comment: Comment, parent_id: UUID) -> None:
        links = self.reply_links.setdefault(parent_id, [])
        if comment.comment_id not in links:
            links.append(comment.comment_id)

    async def unlink_from_parent(self, comment: Comment, parent_id: UUID) -> None:
        links = self.reply_links.get(parent_id, [])
        if comment.comment_id in links:
            links.remove(comment.comment_id)

    async def list_post_comment_ids(self, post_id: UUID) -> list[UUID]:
        return list(self.post_links.get(post_id, []))

    async def list_reply_ids(self, parent_id: UUID) -> list[UUID]:
        return list(self.reply_links.get(parent_id, []))

    async def list_ids_by_post(self, post_id: UUID) -> list[UUID]:
        return list(self.by_post.get(post_id, {}))

    async def delete_many_by_parent(self, parent_id: UUID, post_id: UUID) -> int:
        index = self.by_post.get(post_id, {})
        targets = {cid for cid, (_, pid) in index.items() if pid == parent_id}
        targets.update(self.reply_links.get(parent_id, []))

        removed = 0
        for cid in targets:
            if self.records.pop(cid, None) is not None:
                removed += 1
            index.pop(cid, None)
        self.reply_links.pop(parent_id, None)
        return removed

    async def delete_many_by_post(self, post_id: UUID) -> int:
        index = self.by_post.pop(post_id, {})
        top_level = [cid for cid, (_, parent_id) in index.items() if parent_id is None]
        top_level += [
            cid for cid in self.post_links.pop(post_id, []) if cid not in top_level
        ]
        for cid in index:
            self.records.pop(cid, None)
        for cid in top_level:
            for reply_id in self.reply_links.pop(cid, []):
                self.records.pop(reply_id, None)
            self.records.pop(cid, None)
        return len(index)


class InMemoryAuthService:
    """Only what the post and comment routes need from AuthService."""

    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def post_repo() -> InMemoryPostRepository:
    return InMemoryPostRepository()


@pytest.fixture
def comment_repo() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def comment_service(comment_repo, post_repo) -> CommentService:
    return CommentService(comment_repo, post_repo)


@pytest.fixture
def tree(comment_service):
    return comment_service.tree


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with uploads under a per-test directory."""
    return Settings(environment="testing", upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def storage(settings) -> LocalStorageService:
    service = LocalStorageService(settings)
    service.ensure_root()
    return service


@pytest.fixture
def post_service(post_repo, comment_service, storage) -> PostService:
    return PostService(posts=post_repo, comment_service=comment_service, storage=storage)


@pytest.fixture
def alice() -> User:
    return User(username="alice", email="alice@example.com", avatar_url="/a.png")


@pytest.fixture
def bob() -> User:
    return User(username="bob", email="bob@example.com")


@pytest.fixture
def auth_service(alice, bob) -> InMemoryAuthService:
    service = InMemoryAuthService()
    service.add(alice)
    service.add(bob)
    return service


@pytest.fixture
def make_post(post_repo):
    """Insert a post authored by ``user`` and return it."""

    async def _make_post(user: User, title: str = "Notes", **kwargs) -> Post:
        content = kwargs.pop("content", "Body")
        post = create_post(title, content, Author.from_user(user), **kwargs)
        await post_repo.insert(post)
        return post

    return _make_post


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(user.id), "email": user.email, "username": user.username}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def app(auth_service, comment_service, post_service, storage) -> FastAPI:
    from rizhilu.main import create_app  # noqa: PLC0415

    application = create_app(use_lifespan=False)
    application.state.auth_service = auth_service
    application.state.storage_service = storage
    application.state.comment_service = comment_service
    application.state.post_service = post_service
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
