"""Core data models for TuneForge.

Each persisted entity (User, Song, Playlist) is a pydantic model that owns its
embedded records and exposes the operations allowed to mutate them. The
operations work purely in memory; persistence and authorization are handled
by the backend services and ``tuneforge.core.policy``.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Literal, Self, get_args

from pydantic import BaseModel, Field

from tuneforge.core import policy
from tuneforge.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from tuneforge.utils.text import search_tokens

Genre = Literal[
    "pop",
    "rock",
    "hip-hop",
    "jazz",
    "classical",
    "electronic",
    "country",
    "blues",
    "reggae",
    "folk",
    "other",
]
Mood = Literal["happy", "sad", "energetic", "calm", "romantic", "angry", "nostalgic", "motivational"]
Quality = Literal["low", "medium", "high"]
Role = Literal["user", "moderator", "admin"]
SubscriptionType = Literal["free", "premium", "pro"]
CollaboratorRole = Literal["editor", "viewer"]
PlaylistCategory = Literal["personal", "mood", "genre", "activity", "decade", "other"]
RepeatMode = Literal["none", "all", "one"]

GENRES: tuple[str, ...] = get_args(Genre)
MOODS: tuple[str, ...] = get_args(Mood)
ROLES: tuple[str, ...] = get_args(Role)

HISTORY_LIMIT = 100
COMMENT_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(UTC)


class Document(BaseModel):
    """Base for models stored as Firestore documents."""

    id: str
    version: int = 0

    def to_document(self) -> dict[str, Any]:
        """Serialize for Firestore (the ID is the document key, not a field)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Self:
        return cls.model_validate(dict(doc))


# -----------------------------------------------------------------------------
# User
# -----------------------------------------------------------------------------


class Subscription(BaseModel):
    """Subscription status used for premium gating."""

    type: SubscriptionType = "free"
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None


class Badge(BaseModel):
    """Achievement awarded to a user, unique by name."""

    name: str
    description: str | None = None
    icon: str | None = None
    earned_at: datetime = Field(default_factory=utcnow)


class HistoryEntry(BaseModel):
    """One playback event in a user's listening history."""

    song_id: str
    played_at: datetime = Field(default_factory=utcnow)
    duration: int | None = None  # seconds played


class Preferences(BaseModel):
    """Per-user UI and playback preferences."""

    theme: Literal["light", "dark"] = "light"
    autoplay: bool = True
    quality: Quality = "medium"


class User(Document):
    """User account."""

    username: str
    email: str
    password_hash: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar: str = "/images/default-avatar.png"

    subscription: Subscription = Field(default_factory=Subscription)
    role: Role = "user"
    badges: list[Badge] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)

    # Newest first, capped at HISTORY_LIMIT
    listening_history: list[HistoryEntry] = Field(default_factory=list)
    favorite_songs: list[str] = Field(default_factory=list)

    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def has_premium_access(self) -> bool:
        return policy.is_premium_eligible(self)

    def add_badge(self, name: str, description: str | None = None, icon: str | None = None) -> bool:
        """Award a badge unless one with the same name exists.

        Returns:
            True if the badge was added, False if it was already held.
        """
        if any(badge.name == name for badge in self.badges):
            return False
        self.badges.append(Badge(name=name, description=description, icon=icon))
        return True

    def add_to_history(self, song_id: str, duration: int | None, limit: int = HISTORY_LIMIT) -> HistoryEntry:
        """Record a play at the front of the history, dropping the oldest entries past ``limit``."""
        entry = HistoryEntry(song_id=song_id, duration=duration)
        self.listening_history.insert(0, entry)
        del self.listening_history[limit:]
        return entry

    def toggle_favorite(self, song_id: str) -> bool:
        """Add or remove a favorite song. Returns True if it is now a favorite."""
        if song_id in self.favorite_songs:
            self.favorite_songs.remove(song_id)
            return False
        self.favorite_songs.append(song_id)
        return True


# -----------------------------------------------------------------------------
# Song
# -----------------------------------------------------------------------------


class Comment(BaseModel):
    """User comment on a song."""

    user_id: str
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class SongMetadata(BaseModel):
    """Publishing metadata."""

    composer: str | None = None
    producer: str | None = None
    label: str | None = None
    copyright: str | None = None
    isrc: str | None = None  # International Standard Recording Code


class Song(Document):
    """Song uploaded by an admin."""

    title: str
    artist: str
    album: str | None = None
    genre: Genre
    duration: int  # seconds
    file_path: str
    cover_art: str = "/images/default-album-cover.png"
    lyrics: str = ""
    release_year: int | None = None
    language: str = "English"
    explicit: bool = False
    mood: Mood | None = None
    bpm: int | None = None
    key: str | None = None
    quality: Quality = "medium"
    file_size: int | None = None  # bytes
    bitrate: int | None = None  # kbps
    tags: list[str] = Field(default_factory=list)
    metadata: SongMetadata = Field(default_factory=SongMetadata)

    uploaded_by: str
    is_active: bool = True
    is_featured: bool = False
    is_premium: bool = False

    play_count: int = 0
    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    # Denormalized for array_contains_any search
    search_terms: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def dislike_count(self) -> int:
        return len(self.dislikes)

    def refresh_search_terms(self) -> None:
        self.search_terms = search_tokens(self.title, self.artist, self.album, self.genre, *self.tags)

    def increment_play_count(self) -> None:
        self.play_count += 1

    def toggle_like(self, user_id: str) -> bool:
        """Toggle a like, clearing any dislike by the same user.

        Returns:
            True if the user now likes the song.
        """
        if user_id in self.dislikes:
            self.dislikes.remove(user_id)
        if user_id in self.likes:
            self.likes.remove(user_id)
            return False
        self.likes.append(user_id)
        return True

    def toggle_dislike(self, user_id: str) -> bool:
        """Toggle a dislike, clearing any like by the same user.

        Returns:
            True if the user now dislikes the song.
        """
        if user_id in self.likes:
            self.likes.remove(user_id)
        if user_id in self.dislikes:
            self.dislikes.remove(user_id)
            return False
        self.dislikes.append(user_id)
        return True

    def add_comment(self, user_id: str, text: str, max_length: int = COMMENT_MAX_LENGTH) -> Comment:
        """Append a comment.

        Raises:
            ValidationError: If the stripped text is empty or longer than ``max_length``.
        """
        text = text.strip()
        if not 1 <= len(text) <= max_length:
            raise ValidationError(f"Comment must be between 1 and {max_length} characters")
        comment = Comment(user_id=user_id, text=text)
        self.comments.append(comment)
        return comment


# -----------------------------------------------------------------------------
# Playlist
# -----------------------------------------------------------------------------


class PlaylistEntry(BaseModel):
    """A song's membership in a playlist."""

    song_id: str
    order: int
    added_by: str | None = None
    added_at: datetime = Field(default_factory=utcnow)


class Collaborator(BaseModel):
    """Non-owner user with rights on a playlist."""

    user_id: str
    role: CollaboratorRole = "editor"
    added_at: datetime = Field(default_factory=utcnow)


class PlaybackSettings(BaseModel):
    """Default playback behaviour for a playlist."""

    shuffle: bool = False
    repeat: RepeatMode = "none"
    autoplay: bool = True


class Playlist(Document):
    """User-created playlist."""

    name: str
    description: str | None = None
    cover_image: str = "/images/default-playlist-cover.png"
    is_public: bool = True
    is_collaborative: bool = False
    owner_id: str

    collaborators: list[Collaborator] = Field(default_factory=list)
    # Mirrors collaborators[].user_id so Firestore can filter with array_contains
    collaborator_ids: list[str] = Field(default_factory=list)
    songs: list[PlaylistEntry] = Field(default_factory=list)

    tags: list[str] = Field(default_factory=list)
    category: PlaylistCategory = "personal"
    mood: Mood | None = None

    play_count: int = 0
    likes: list[str] = Field(default_factory=list)
    followers: list[str] = Field(default_factory=list)
    is_featured: bool = False
    is_official: bool = False

    duration: int = 0  # total seconds of member songs
    last_played: datetime | None = None
    settings: PlaybackSettings = Field(default_factory=PlaybackSettings)

    search_terms: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def song_ids(self) -> list[str]:
        return [entry.song_id for entry in self.songs]

    @property
    def song_count(self) -> int:
        return len(self.songs)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def follower_count(self) -> int:
        return len(self.followers)

    def refresh_search_terms(self) -> None:
        self.search_terms = search_tokens(self.name, self.description, *self.tags)

    def _find_entry(self, song_id: str) -> PlaylistEntry | None:
        return next((entry for entry in self.songs if entry.song_id == song_id), None)

    def add_song(self, song_id: str, user_id: str | None) -> PlaylistEntry:
        """Append a song after the current highest order key.

        Raises:
            AlreadyExistsError: If the song is already in the playlist.
        """
        if self._find_entry(song_id) is not None:
            raise AlreadyExistsError("Song already exists in playlist")

        max_order = max((entry.order for entry in self.songs), default=0)
        entry = PlaylistEntry(song_id=song_id, order=max_order + 1, added_by=user_id)
        self.songs.append(entry)
        return entry

    def remove_song(self, song_id: str) -> None:
        """Remove a song.

        Raises:
            NotFoundError: If the song is not in the playlist.
        """
        entry = self._find_entry(song_id)
        if entry is None:
            raise NotFoundError("Song is not in this playlist")
        self.songs.remove(entry)

    def reorder_songs(self, assignments: Iterable[tuple[str, int]]) -> None:
        """Apply ``(song_id, new_order)`` pairs and re-sort by order key.

        Entries that are not mentioned keep their order key. Unknown song IDs
        are ignored. When an assigned key collides with an untouched entry,
        the entry with the lower previous key comes first.

        Raises:
            ValidationError: If two assignments share the same ``new_order``.
        """
        assignments = list(assignments)
        targets = [new_order for _, new_order in assignments]
        if len(targets) != len(set(targets)):
            raise ValidationError("Each song must be given a distinct order value")

        previous = {entry.song_id: entry.order for entry in self.songs}
        for song_id, new_order in assignments:
            entry = self._find_entry(song_id)
            if entry is not None:
                entry.order = new_order

        self.songs.sort(key=lambda entry: (entry.order, previous[entry.song_id]))

    def recompute_duration(self, durations: Mapping[str, int]) -> int:
        """Set the total duration from the current durations of member songs.

        Songs missing from ``durations`` (e.g. deleted) count as zero.
        """
        self.duration = sum(durations.get(entry.song_id, 0) for entry in self.songs)
        return self.duration

    def add_collaborator(self, user_id: str, role: CollaboratorRole = "editor") -> Collaborator:
        """Add a collaborator, or update the role of an existing one.

        Raises:
            ValidationError: If ``user_id`` is the owner.
        """
        if user_id == self.owner_id:
            raise ValidationError("The playlist owner cannot be added as a collaborator")

        for collaborator in self.collaborators:
            if collaborator.user_id == user_id:
                collaborator.role = role
                return collaborator

        collaborator = Collaborator(user_id=user_id, role=role)
        self.collaborators.append(collaborator)
        self.collaborator_ids.append(user_id)
        return collaborator

    def remove_collaborator(self, user_id: str) -> None:
        """Remove a collaborator.

        Raises:
            NotFoundError: If the user is not a collaborator.
        """
        remaining = [c for c in self.collaborators if c.user_id != user_id]
        if len(remaining) == len(self.collaborators):
            raise NotFoundError("User is not a collaborator on this playlist")
        self.collaborators = remaining
        self.collaborator_ids = [c.user_id for c in remaining]

    def toggle_like(self, user_id: str) -> bool:
        """Toggle a like. Returns True if the user now likes the playlist."""
        if user_id in self.likes:
            self.likes.remove(user_id)
            return False
        self.likes.append(user_id)
        return True

    def toggle_follow(self, user_id: str) -> bool:
        """Toggle a follow. Returns True if the user now follows the playlist."""
        if user_id in self.followers:
            self.followers.remove(user_id)
            return False
        self.followers.append(user_id)
        return True

    def increment_play_count(self) -> None:
        self.play_count += 1
        self.last_played = utcnow()
