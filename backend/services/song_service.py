"""Service for song management.

Handles the song catalog stored in Firestore: admin uploads and edits,
listing and search for listeners, and the social operations on a song
(plays, likes, dislikes, comments).
"""

import logging
import uuid
from collections import Counter
from datetime import UTC, datetime
from typing import Any, Literal

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from tuneforge.core.exceptions import NotFoundError, ValidationError
from tuneforge.core.models import GENRES, Comment, Song
from tuneforge.utils.text import query_tokens

logger = logging.getLogger(__name__)

SongSort = Literal["newest", "oldest", "popular", "title", "artist"]

_SORTS: dict[str, tuple[str, str]] = {
    "newest": ("created_at", "DESCENDING"),
    "oldest": ("created_at", "ASCENDING"),
    "popular": ("play_count", "DESCENDING"),
    "title": ("title", "ASCENDING"),
    "artist": ("artist", "ASCENDING"),
}

# Fields an admin may change after upload
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "artist",
        "album",
        "genre",
        "duration",
        "lyrics",
        "release_year",
        "language",
        "explicit",
        "mood",
        "bpm",
        "key",
        "tags",
        "is_active",
        "is_featured",
        "is_premium",
        "cover_art",
        "metadata",
    }
)

# Upper bound on documents scanned for filters Firestore can't express
CLIENT_FILTER_SCAN_LIMIT = 500


class SongService:
    """Service for the Song aggregate and song listings."""

    SONGS_COLLECTION = "songs"

    def __init__(self, settings: BackendSettings, firestore: FirestoreService):
        self.settings = settings
        self.firestore = firestore

    # -------------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------------

    async def get_song(self, song_id: str) -> Song:
        """Get a song by ID.

        Raises:
            NotFoundError: If the song doesn't exist.
        """
        doc = await self.firestore.get_document(self.SONGS_COLLECTION, song_id)
        if doc is None:
            raise NotFoundError(f"Song {song_id} not found")
        return Song.from_document(doc)

    async def get_songs(self, song_ids: list[str]) -> dict[str, Song]:
        """Batch-load songs; missing IDs are omitted."""
        docs = await self.firestore.get_documents(self.SONGS_COLLECTION, song_ids)
        return {doc_id: Song.from_document(doc) for doc_id, doc in docs.items()}

    async def _save(self, song: Song, fields: list[str]) -> None:
        song.updated_at = datetime.now(UTC)
        document = song.to_document()
        data = {field: document[field] for field in [*fields, "updated_at"]}
        song.version = await self.firestore.update_document_versioned(
            self.SONGS_COLLECTION,
            song.id,
            data,
            expected_version=song.version,
        )

    # -------------------------------------------------------------------------
    # Admin catalog management
    # -------------------------------------------------------------------------

    async def create_song(
        self,
        uploaded_by: str,
        file_path: str,
        title: str,
        artist: str,
        genre: str,
        duration: int,
        **details: Any,
    ) -> Song:
        """Create a song record for an uploaded file.

        Args:
            uploaded_by: Admin user ID.
            file_path: Stored media path of the audio file.
            title: Song title.
            artist: Artist name.
            genre: One of the supported genres.
            duration: Length in seconds.
            **details: Any other Song field (album, mood, is_premium, ...).

        Returns:
            The created song.

        Raises:
            ValidationError: If a value is invalid.
        """
        try:
            song = Song(
                id=str(uuid.uuid4()),
                title=title,
                artist=artist,
                genre=genre,  # type: ignore[arg-type]
                duration=duration,
                file_path=file_path,
                uploaded_by=uploaded_by,
                **details,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        song.refresh_search_terms()

        await self.firestore.set_document(self.SONGS_COLLECTION, song.id, song.to_document())
        logger.info(f"Song {song.id} '{title}' by {artist} uploaded by {uploaded_by}")
        return song

    async def update_song(self, song_id: str, **changes: Any) -> Song:
        """Edit song metadata.

        Raises:
            NotFoundError: If the song doesn't exist.
            ValidationError: If a field is not editable or a value is invalid.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        song = await self.get_song(song_id)
        try:
            song = Song.model_validate({**song.model_dump(), **changes})
        except ValueError as e:
            raise ValidationError(str(e)) from e
        song.refresh_search_terms()

        await self._save(song, [*changes, "search_terms"])
        return song

    async def deactivate_song(self, song_id: str) -> Song:
        """Hide a song from listeners without deleting it."""
        return await self.update_song(song_id, is_active=False)

    async def delete_song(self, song_id: str) -> Song:
        """Permanently delete a song record.

        Returns:
            The deleted song, so the caller can clean up its media files.
        """
        song = await self.get_song(song_id)
        await self.firestore.delete_document(self.SONGS_COLLECTION, song_id)
        logger.info(f"Song {song_id} deleted")
        return song

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_songs(
        self,
        genre: str | None = None,
        artist: str | None = None,
        year: int | None = None,
        mood: str | None = None,
        search: str | None = None,
        sort: SongSort = "newest",
        include_premium: bool = False,
        include_inactive: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Song], int]:
        """List songs with filters, sorting and pagination.

        Args:
            genre: Exact genre.
            artist: Case-insensitive substring of the artist name (filtered client-side).
            year: Exact release year.
            mood: Exact mood.
            search: Free-text query matched against search tokens.
            sort: newest, oldest, popular, title or artist.
            include_premium: Whether premium-gated songs are visible to the caller.
            include_inactive: Whether deactivated songs are included (admin views).
            limit: Maximum songs to return.
            offset: Number of songs to skip.

        Returns:
            Tuple of (songs, total matching songs).
        """
        filters: list[tuple[str, str, Any]] = []
        if not include_inactive:
            filters.append(("is_active", "==", True))
        if not include_premium:
            filters.append(("is_premium", "==", False))
        if genre:
            filters.append(("genre", "==", genre))
        if year is not None:
            filters.append(("release_year", "==", year))
        if mood:
            filters.append(("mood", "==", mood))
        if search:
            tokens = query_tokens(search)
            if not tokens:
                return [], 0
            filters.append(("search_terms", "array_contains_any", tokens))

        order_by, direction = _SORTS.get(sort, _SORTS["newest"])

        if artist:
            docs = await self.firestore.query_documents(
                self.SONGS_COLLECTION,
                filters=filters or None,
                order_by=order_by,
                order_direction=direction,
                limit=CLIENT_FILTER_SCAN_LIMIT,
            )
            needle = artist.lower()
            matches = [Song.from_document(doc) for doc in docs if needle in doc.get("artist", "").lower()]
            return matches[offset : offset + limit], len(matches)

        docs = await self.firestore.query_documents(
            self.SONGS_COLLECTION,
            filters=filters or None,
            order_by=order_by,
            order_direction=direction,
            limit=limit,
            offset=offset,
        )
        total = await self.firestore.count_documents(self.SONGS_COLLECTION, filters=filters or None)
        return [Song.from_document(doc) for doc in docs], total

    async def get_trending(self, limit: int = 10) -> list[Song]:
        """Top active songs by play count."""
        docs = await self.firestore.query_documents(
            self.SONGS_COLLECTION,
            filters=[("is_active", "==", True)],
            order_by="play_count",
            order_direction="DESCENDING",
            limit=limit,
        )
        return [Song.from_document(doc) for doc in docs]

    async def get_featured(self, limit: int = 10) -> list[Song]:
        """Newest active featured songs."""
        docs = await self.firestore.query_documents(
            self.SONGS_COLLECTION,
            filters=[("is_active", "==", True), ("is_featured", "==", True)],
            order_by="created_at",
            order_direction="DESCENDING",
            limit=limit,
        )
        return [Song.from_document(doc) for doc in docs]

    async def get_related(self, song: Song, limit: int = 5) -> list[Song]:
        """Active songs by the same artist or in the same genre, artist matches first."""
        related: dict[str, Song] = {}
        for field, value in (("artist", song.artist), ("genre", song.genre)):
            docs = await self.firestore.query_documents(
                self.SONGS_COLLECTION,
                filters=[(field, "==", value), ("is_active", "==", True)],
                limit=limit + 1,
            )
            for doc in docs:
                if doc["id"] != song.id and doc["id"] not in related:
                    related[doc["id"]] = Song.from_document(doc)
        return list(related.values())[:limit]

    async def get_genres(self) -> list[str]:
        """Genres that have at least one active song."""
        genres = []
        for genre in GENRES:
            count = await self.firestore.count_documents(
                self.SONGS_COLLECTION,
                filters=[("is_active", "==", True), ("genre", "==", genre)],
            )
            if count:
                genres.append(genre)
        return genres

    async def get_genre_counts(self) -> dict[str, int]:
        """Active song count per genre, largest first, empty genres omitted."""
        counts: dict[str, int] = {}
        for genre in GENRES:
            count = await self.firestore.count_documents(
                self.SONGS_COLLECTION,
                filters=[("is_active", "==", True), ("genre", "==", genre)],
            )
            if count:
                counts[genre] = count
        return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))

    async def get_artists(self, limit: int = 50) -> list[tuple[str, int]]:
        """Artists with their active song counts, most prolific first."""
        docs = await self.firestore.query_documents(
            self.SONGS_COLLECTION,
            filters=[("is_active", "==", True)],
            limit=CLIENT_FILTER_SCAN_LIMIT,
        )
        return Counter(doc["artist"] for doc in docs).most_common(limit)

    async def get_stats(self) -> dict[str, int]:
        """Song counters for the admin dashboard."""
        total = await self.firestore.count_documents(self.SONGS_COLLECTION)
        active = await self.firestore.count_documents(self.SONGS_COLLECTION, filters=[("is_active", "==", True)])
        premium = await self.firestore.count_documents(self.SONGS_COLLECTION, filters=[("is_premium", "==", True)])
        return {"total": total, "active": active, "premium": premium}

    async def get_recent(self, limit: int = 5) -> list[Song]:
        """Most recently uploaded active songs."""
        docs = await self.firestore.query_documents(
            self.SONGS_COLLECTION,
            filters=[("is_active", "==", True)],
            order_by="created_at",
            order_direction="DESCENDING",
            limit=limit,
        )
        return [Song.from_document(doc) for doc in docs]

    # -------------------------------------------------------------------------
    # Song aggregate operations
    # -------------------------------------------------------------------------

    async def record_play(self, song_id: str) -> Song:
        """Increment a song's play count."""
        song = await self.get_song(song_id)
        song.increment_play_count()
        await self._save(song, ["play_count"])
        return song

    async def toggle_like(self, song_id: str, user_id: str) -> Song:
        song = await self.get_song(song_id)
        song.toggle_like(user_id)
        await self._save(song, ["likes", "dislikes"])
        return song

    async def toggle_dislike(self, song_id: str, user_id: str) -> Song:
        song = await self.get_song(song_id)
        song.toggle_dislike(user_id)
        await self._save(song, ["likes", "dislikes"])
        return song

    async def add_comment(self, song_id: str, user_id: str, text: str) -> Comment:
        """Append a comment.

        Raises:
            NotFoundError: If the song doesn't exist.
            ValidationError: If the text is empty or too long.
        """
        song = await self.get_song(song_id)
        comment = song.add_comment(user_id, text, max_length=self.settings.comment_max_length)
        await self._save(song, ["comments"])
        return comment

    async def get_comments(self, song_id: str, limit: int = 20, offset: int = 0) -> tuple[list[Comment], int]:
        """Page through a song's comments, oldest first."""
        song = await self.get_song(song_id)
        return song.comments[offset : offset + limit], len(song.comments)


# Lazy initialization
_song_service: SongService | None = None


def get_song_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> SongService:
    """Get the song service instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        SongService instance.
    """
    global _song_service

    if _song_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _song_service = SongService(settings, firestore)

    return _song_service
