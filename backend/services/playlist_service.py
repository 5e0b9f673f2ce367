"""Service for playlist management.

Handles persistence of user-created playlists stored in Firestore, their
membership, ordering and collaborators. Access checks are made by the
routes through ``tuneforge.core.policy`` before these methods are called.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from tuneforge.core.exceptions import NotFoundError, ValidationError
from tuneforge.core.models import Collaborator, CollaboratorRole, Playlist, PlaylistEntry
from tuneforge.utils.text import query_tokens

logger = logging.getLogger(__name__)

# Fields an owner or editor may change through update_playlist
EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "cover_image",
        "is_public",
        "is_collaborative",
        "category",
        "mood",
        "tags",
        "settings",
    }
)


class PlaylistService:
    """Service for the Playlist aggregate.

    Handles:
    - Creating, reading, updating, deleting playlists
    - Adding, removing and reordering songs, keeping the duration in sync
    - Collaborators, likes, follows and plays
    - Listing the user's, public and featured playlists
    """

    PLAYLISTS_COLLECTION = "playlists"
    SONGS_COLLECTION = "songs"
    USERS_COLLECTION = "users"

    def __init__(
        self,
        settings: BackendSettings,
        firestore: FirestoreService,
    ):
        """Initialize the playlist service.

        Args:
            settings: Backend settings.
            firestore: Firestore service for persistence.
        """
        self.settings = settings
        self.firestore = firestore

    async def get_playlist(self, playlist_id: str) -> Playlist:
        """Get a playlist by ID.

        Raises:
            NotFoundError: If the playlist doesn't exist.
        """
        doc = await self.firestore.get_document(self.PLAYLISTS_COLLECTION, playlist_id)
        if doc is None:
            raise NotFoundError(f"Playlist {playlist_id} not found")
        return Playlist.from_document(doc)

    async def _save(self, playlist: Playlist, fields: list[str]) -> None:
        playlist.updated_at = datetime.now(UTC)
        document = playlist.to_document()
        data = {field: document[field] for field in [*fields, "updated_at"]}
        playlist.version = await self.firestore.update_document_versioned(
            self.PLAYLISTS_COLLECTION,
            playlist.id,
            data,
            expected_version=playlist.version,
        )

    async def _recompute_duration(self, playlist: Playlist) -> int:
        """Sum the current durations of member songs; deleted songs count as zero."""
        docs = await self.firestore.get_documents(self.SONGS_COLLECTION, playlist.song_ids)
        durations = {doc_id: doc.get("duration", 0) for doc_id, doc in docs.items()}
        return playlist.recompute_duration(durations)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create_playlist(
        self,
        owner_id: str,
        name: str,
        description: str | None = None,
        **details: Any,
    ) -> Playlist:
        """Create a new playlist.

        Args:
            owner_id: Owner's user ID.
            name: Playlist name.
            description: Optional description.
            **details: Any other editable field (is_public, category, tags, ...).

        Returns:
            Created playlist.
        """
        unknown = set(details) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown playlist fields: {', '.join(sorted(unknown))}")

        try:
            playlist = Playlist(
                id=str(uuid.uuid4()),
                name=name,
                description=description,
                owner_id=owner_id,
                **details,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        playlist.refresh_search_terms()

        await self.firestore.set_document(
            self.PLAYLISTS_COLLECTION,
            playlist.id,
            playlist.to_document(),
        )
        logger.info(f"Playlist {playlist.id} created by {owner_id}")
        return playlist

    async def update_playlist(self, playlist_id: str, **changes: Any) -> Playlist:
        """Update a playlist's metadata.

        Raises:
            NotFoundError: If the playlist doesn't exist.
            ValidationError: If a field is not editable or a value is invalid.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        playlist = await self.get_playlist(playlist_id)
        try:
            playlist = Playlist.model_validate({**playlist.model_dump(), **changes})
        except ValueError as e:
            raise ValidationError(str(e)) from e
        playlist.refresh_search_terms()

        await self._save(playlist, [*changes, "search_terms"])
        return playlist

    async def delete_playlist(self, playlist_id: str) -> None:
        """Delete a playlist.

        Raises:
            NotFoundError: If the playlist doesn't exist.
        """
        await self.get_playlist(playlist_id)
        await self.firestore.delete_document(self.PLAYLISTS_COLLECTION, playlist_id)
        logger.info(f"Playlist {playlist_id} deleted")

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Playlist], int]:
        """List playlists the user owns or collaborates on, most recently updated first.

        Returns:
            Tuple of (playlists for the requested page, total).
        """
        owned = await self.firestore.query_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[("owner_id", "==", user_id)],
        )
        shared = await self.firestore.query_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[("collaborator_ids", "array_contains", user_id)],
        )

        merged = {doc["id"]: doc for doc in [*owned, *shared]}
        playlists = sorted(
            (Playlist.from_document(doc) for doc in merged.values()),
            key=lambda playlist: playlist.updated_at,
            reverse=True,
        )
        return playlists[offset : offset + limit], len(playlists)

    async def list_public(self, limit: int = 20, offset: int = 0) -> list[Playlist]:
        """Public playlists, most played first."""
        docs = await self.firestore.query_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[("is_public", "==", True)],
            order_by="play_count",
            order_direction="DESCENDING",
            limit=limit,
            offset=offset,
        )
        return [Playlist.from_document(doc) for doc in docs]

    async def count_public(self) -> int:
        return await self.firestore.count_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[("is_public", "==", True)],
        )

    async def list_featured(self, limit: int = 10) -> list[Playlist]:
        """Featured public playlists, newest first."""
        docs = await self.firestore.query_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[("is_public", "==", True), ("is_featured", "==", True)],
            order_by="created_at",
            order_direction="DESCENDING",
            limit=limit,
        )
        return [Playlist.from_document(doc) for doc in docs]

    async def search_public(self, query: str, limit: int = 20, offset: int = 0) -> list[Playlist]:
        """Search public playlists by name, description and tags."""
        tokens = query_tokens(query)
        if not tokens:
            return []
        docs = await self.firestore.query_documents(
            self.PLAYLISTS_COLLECTION,
            filters=[
                ("is_public", "==", True),
                ("search_terms", "array_contains_any", tokens),
            ],
            order_by="play_count",
            order_direction="DESCENDING",
            limit=limit,
            offset=offset,
        )
        return [Playlist.from_document(doc) for doc in docs]

    async def get_stats(self) -> dict[str, int]:
        """Playlist counters for the admin dashboard."""
        total = await self.firestore.count_documents(self.PLAYLISTS_COLLECTION)
        public = await self.count_public()
        return {"total": total, "public": public}

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def add_song(self, playlist_id: str, song_id: str, user_id: str) -> PlaylistEntry:
        """Append a song and refresh the playlist duration.

        Raises:
            NotFoundError: If the playlist or song doesn't exist.
            AlreadyExistsError: If the song is already in the playlist.
        """
        playlist = await self.get_playlist(playlist_id)
        song = await self.firestore.get_document(self.SONGS_COLLECTION, song_id)
        if song is None:
            raise NotFoundError(f"Song {song_id} not found")

        entry = playlist.add_song(song_id, user_id)
        await self._recompute_duration(playlist)
        await self._save(playlist, ["songs", "duration"])
        return entry

    async def remove_song(self, playlist_id: str, song_id: str) -> Playlist:
        """Remove a song and refresh the playlist duration.

        Raises:
            NotFoundError: If the playlist doesn't exist or doesn't contain the song.
        """
        playlist = await self.get_playlist(playlist_id)
        playlist.remove_song(song_id)
        await self._recompute_duration(playlist)
        await self._save(playlist, ["songs", "duration"])
        return playlist

    async def reorder_songs(self, playlist_id: str, assignments: list[tuple[str, int]]) -> Playlist:
        """Assign new order keys to songs.

        Raises:
            NotFoundError: If the playlist doesn't exist.
            ValidationError: If two songs are given the same order.
        """
        playlist = await self.get_playlist(playlist_id)
        playlist.reorder_songs(assignments)
        await self._save(playlist, ["songs"])
        return playlist

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    async def add_collaborator(
        self,
        playlist_id: str,
        user_id: str,
        role: CollaboratorRole = "editor",
    ) -> Collaborator:
        """Add a collaborator or change an existing collaborator's role.

        Raises:
            NotFoundError: If the playlist or user doesn't exist.
            ValidationError: If the user is the owner.
        """
        playlist = await self.get_playlist(playlist_id)
        user = await self.firestore.get_document(self.USERS_COLLECTION, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        collaborator = playlist.add_collaborator(user_id, role)
        await self._save(playlist, ["collaborators", "collaborator_ids"])
        logger.info(f"User {user_id} is now {role} on playlist {playlist_id}")
        return collaborator

    async def remove_collaborator(self, playlist_id: str, user_id: str) -> Playlist:
        playlist = await self.get_playlist(playlist_id)
        playlist.remove_collaborator(user_id)
        await self._save(playlist, ["collaborators", "collaborator_ids"])
        logger.info(f"User {user_id} removed from playlist {playlist_id}")
        return playlist

    # -------------------------------------------------------------------------
    # Interactions
    # -------------------------------------------------------------------------

    async def toggle_like(self, playlist_id: str, user_id: str) -> tuple[Playlist, bool]:
        """Returns the playlist and whether the user now likes it."""
        playlist = await self.get_playlist(playlist_id)
        liked = playlist.toggle_like(user_id)
        await self._save(playlist, ["likes"])
        return playlist, liked

    async def toggle_follow(self, playlist_id: str, user_id: str) -> tuple[Playlist, bool]:
        """Returns the playlist and whether the user now follows it."""
        playlist = await self.get_playlist(playlist_id)
        following = playlist.toggle_follow(user_id)
        await self._save(playlist, ["followers"])
        return playlist, following

    async def record_play(self, playlist_id: str) -> Playlist:
        playlist = await self.get_playlist(playlist_id)
        playlist.increment_play_count()
        await self._save(playlist, ["play_count", "last_played"])
        return playlist


# Lazy initialization
_playlist_service: PlaylistService | None = None


def get_playlist_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> PlaylistService:
    """Get the playlist service instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        PlaylistService instance.
    """
    global _playlist_service

    if _playlist_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _playlist_service = PlaylistService(settings, firestore)

    return _playlist_service
