"""Shared test fixtures for TuneForge."""

import pytest

from tuneforge.core.models import Collaborator, Playlist, PlaylistEntry, Song, Subscription, User


@pytest.fixture
def sample_user() -> User:
    """A free-tier listener."""
    return User(id="user1", username="listener", email="listener@example.com")


@pytest.fixture
def premium_user() -> User:
    """A listener with an active premium subscription."""
    return User(
        id="user2",
        username="subscriber",
        email="subscriber@example.com",
        subscription=Subscription(type="premium", is_active=True),
    )


@pytest.fixture
def sample_song() -> Song:
    return Song(
        id="song1",
        title="Bohemian Rhapsody",
        artist="Queen",
        album="A Night at the Opera",
        genre="rock",
        duration=355,
        file_path="songs/song-1.mp3",
        uploaded_by="admin",
    )


@pytest.fixture
def sample_playlist() -> Playlist:
    """A playlist with three songs in order S1, S2, S3."""
    return Playlist(
        id="playlist1",
        name="Road Trip",
        owner_id="owner",
        songs=[PlaylistEntry(song_id=f"S{i}", order=i) for i in (1, 2, 3)],
    )


@pytest.fixture
def shared_playlist() -> Playlist:
    """A private, collaborative playlist with one editor and one viewer."""
    return Playlist(
        id="playlist2",
        name="Band Practice",
        owner_id="owner",
        is_public=False,
        is_collaborative=True,
        collaborators=[
            Collaborator(user_id="editor", role="editor"),
            Collaborator(user_id="viewer", role="viewer"),
        ],
        collaborator_ids=["editor", "viewer"],
    )
