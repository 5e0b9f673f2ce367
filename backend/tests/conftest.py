"""Shared test fixtures for backend tests."""

import itertools
from collections.abc import Generator, Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.config import BackendSettings
from backend.services.auth_service import AuthService, hash_password
from backend.services.media_service import MediaService
from backend.services.playlist_service import PlaylistService
from backend.services.song_service import SongService
from backend.services.user_service import UserService
from tuneforge.core.exceptions import AlreadyExistsError, ConcurrentModificationError, NotFoundError
from tuneforge.core.models import Playlist, Song, Subscription, User

# -----------------------------------------------------------------------------
# In-memory Firestore
# -----------------------------------------------------------------------------

_MISSING = object()


def _get_field(doc: dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(doc: dict[str, Any], field: str, op: str, expected: Any) -> bool:
    value = _get_field(doc, field)
    if value is _MISSING:
        return False
    if op == "==":
        return value == expected
    if op == "!=":
        return value != expected
    if op == "in":
        return value in expected
    if op == "array_contains":
        return isinstance(value, list) and expected in value
    if op == "array_contains_any":
        return isinstance(value, list) and any(item in value for item in expected)
    if op == ">":
        return value > expected
    if op == ">=":
        return value >= expected
    if op == "<":
        return value < expected
    if op == "<=":
        return value <= expected
    raise ValueError(f"Unsupported operator {op}")


class InMemoryFirestore:
    """Stand-in for FirestoreService backed by dictionaries.

    Mirrors the FirestoreService method signatures and the semantics the
    services rely on (partial updates, versioned updates, filter operators,
    ordering, offset and limit).
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.versioned_writes = 0

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **doc}

    async def get_documents(self, collection: str, doc_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        docs = self._collection(collection)
        return {doc_id: {"id": doc_id, **docs[doc_id]} for doc_id in dict.fromkeys(doc_ids) if doc_id in docs}

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        docs = self._collection(collection)
        if merge and doc_id in docs:
            docs[doc_id].update(data)
        else:
            docs[doc_id] = dict(data)

    async def create_documents(self, documents: list[tuple[str, str, dict[str, Any]]]) -> None:
        for collection, doc_id, _ in documents:
            if doc_id in self._collection(collection):
                raise AlreadyExistsError(f"Document already exists in {collection}")
        for collection, doc_id, data in documents:
            self._collection(collection)[doc_id] = dict(data)

    async def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise NotFoundError(f"{collection}/{doc_id} not found")
        docs[doc_id].update(data)

    async def update_document_versioned(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        expected_version: int,
    ) -> int:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise NotFoundError(f"{collection}/{doc_id} not found")
        if docs[doc_id].get("version", 0) != expected_version:
            raise ConcurrentModificationError(collection, doc_id)
        new_version = expected_version + 1
        docs[doc_id].update({**data, "version": new_version})
        self.versioned_writes += 1
        return new_version

    async def delete_document(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def _filter(self, collection: str, filters: list[tuple[str, str, Any]] | None) -> list[dict[str, Any]]:
        return [
            {"id": doc_id, **doc}
            for doc_id, doc in self._collection(collection).items()
            if all(_matches(doc, field, op, value) for field, op, value in filters or [])
        ]

    async def query_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order_by: str | None = None,
        order_direction: str = "ASCENDING",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        docs = self._filter(collection, filters)
        if order_by:
            docs = [doc for doc in docs if _get_field(doc, order_by) is not _MISSING]
            docs.sort(key=lambda doc: _get_field(doc, order_by), reverse=order_direction == "DESCENDING")
        if offset:
            docs = docs[offset:]
        if limit:
            docs = docs[:limit]
        return docs

    async def count_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
    ) -> int:
        return len(self._filter(collection, filters))


# -----------------------------------------------------------------------------
# Settings and services
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_backend_settings(tmp_path: Path) -> BackendSettings:
    """Create backend settings for testing."""
    return BackendSettings(
        environment="development",
        google_cloud_project="test-project",
        jwt_secret="test-jwt-secret-key-for-testing-only",
        jwt_algorithm="HS256",
        jwt_expiration_hours=24,
        media_root=str(tmp_path / "media"),
    )


@pytest.fixture
def mock_firestore_service() -> MagicMock:
    """Create a mock Firestore service for testing."""
    mock = MagicMock()
    mock.get_document = AsyncMock(return_value=None)
    mock.get_documents = AsyncMock(return_value={})
    mock.set_document = AsyncMock(return_value=None)
    mock.create_documents = AsyncMock(return_value=None)
    mock.update_document = AsyncMock(return_value=None)
    mock.update_document_versioned = AsyncMock(return_value=1)
    mock.delete_document = AsyncMock(return_value=None)
    mock.query_documents = AsyncMock(return_value=[])
    mock.count_documents = AsyncMock(return_value=0)
    return mock


@pytest.fixture
def fake_firestore() -> InMemoryFirestore:
    return InMemoryFirestore()


@pytest.fixture
def auth_service(mock_backend_settings: BackendSettings, fake_firestore: InMemoryFirestore) -> AuthService:
    return AuthService(mock_backend_settings, fake_firestore)  # type: ignore[arg-type]


@pytest.fixture
def user_service(mock_backend_settings: BackendSettings, fake_firestore: InMemoryFirestore) -> UserService:
    return UserService(mock_backend_settings, fake_firestore)  # type: ignore[arg-type]


@pytest.fixture
def song_service(mock_backend_settings: BackendSettings, fake_firestore: InMemoryFirestore) -> SongService:
    return SongService(mock_backend_settings, fake_firestore)  # type: ignore[arg-type]


@pytest.fixture
def playlist_service(mock_backend_settings: BackendSettings, fake_firestore: InMemoryFirestore) -> PlaylistService:
    return PlaylistService(mock_backend_settings, fake_firestore)  # type: ignore[arg-type]


@pytest.fixture
def media_service(mock_backend_settings: BackendSettings) -> MediaService:
    return MediaService(mock_backend_settings)


# -----------------------------------------------------------------------------
# Seed data
# -----------------------------------------------------------------------------

TEST_PASSWORD = "correct-horse"


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash once per session; bcrypt is deliberately slow."""
    return hash_password(TEST_PASSWORD)


_clock = itertools.count()


def _tick() -> datetime:
    """Strictly increasing timestamps so ordering by created_at is deterministic."""
    return datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=next(_clock))


@pytest.fixture
def make_user(fake_firestore: InMemoryFirestore, password_hash: str):
    """Store a user and return the model."""

    def _make(
        user_id: str,
        username: str | None = None,
        role: str = "user",
        subscription: str = "free",
        subscription_active: bool = True,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=user_id,
            username=username or user_id,
            email=f"{username or user_id}@example.com",
            password_hash=password_hash,
            first_name="Test",
            last_name=user_id.title(),
            role=role,  # type: ignore[arg-type]
            subscription=Subscription(type=subscription, is_active=subscription_active),  # type: ignore[arg-type]
            is_active=is_active,
            created_at=_tick(),
        )
        fake_firestore._collection("users")[user.id] = user.to_document()
        return user

    return _make


@pytest.fixture
def make_song(fake_firestore: InMemoryFirestore):
    """Store a song and return the model."""

    def _make(song_id: str, **fields: Any) -> Song:
        data: dict[str, Any] = {
            "title": f"Song {song_id}",
            "artist": "Test Artist",
            "genre": "pop",
            "duration": 180,
            "file_path": f"songs/{song_id}.mp3",
            "uploaded_by": "admin",
            "created_at": _tick(),
        }
        data.update(fields)
        song = Song(id=song_id, **data)
        song.refresh_search_terms()
        fake_firestore._collection("songs")[song.id] = song.to_document()
        return song

    return _make


@pytest.fixture
def make_playlist(fake_firestore: InMemoryFirestore):
    """Store a playlist and return the model."""

    def _make(playlist_id: str, owner_id: str, **fields: Any) -> Playlist:
        data: dict[str, Any] = {"name": f"Playlist {playlist_id}"}
        data.update(fields)
        playlist = Playlist(id=playlist_id, owner_id=owner_id, **data)
        playlist.collaborator_ids = [c.user_id for c in playlist.collaborators]
        playlist.created_at = playlist.updated_at = _tick()
        playlist.refresh_search_terms()
        fake_firestore._collection("playlists")[playlist.id] = playlist.to_document()
        return playlist

    return _make


# -----------------------------------------------------------------------------
# API clients
# -----------------------------------------------------------------------------


@pytest.fixture
def client(
    mock_backend_settings: BackendSettings,
    fake_firestore: InMemoryFirestore,
) -> Generator[TestClient, None, None]:
    """Test client wired to the in-memory Firestore."""
    from backend.api.deps import get_firestore, get_settings
    from backend.main import app

    async def override_get_settings() -> BackendSettings:
        return mock_backend_settings

    async def override_get_firestore() -> InMemoryFirestore:
        return fake_firestore

    app.dependency_overrides[get_settings] = override_get_settings
    app.dependency_overrides[get_firestore] = override_get_firestore

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(auth_service: AuthService):
    """Build a Bearer header for a stored user."""

    def _headers(user: User) -> dict[str, str]:
        token, _ = auth_service.generate_jwt(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def mock_firestore_client() -> Generator[MagicMock, None, None]:
    """Mock Firestore async client."""
    with patch("backend.services.firestore_service.firestore.AsyncClient") as mock:
        yield mock
