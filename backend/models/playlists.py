"""Playlist API response models."""

from datetime import datetime

from pydantic import BaseModel

from backend.models.songs import SongResponse
from tuneforge.core.models import Collaborator, PlaybackSettings, Playlist, PlaylistEntry


class PlaylistResponse(BaseModel):
    """Playlist as returned to a viewer."""

    id: str
    name: str
    description: str | None
    cover_image: str
    is_public: bool
    is_collaborative: bool
    owner_id: str
    collaborators: list[Collaborator]
    songs: list[PlaylistEntry]
    song_count: int
    tags: list[str]
    category: str
    mood: str | None
    play_count: int
    like_count: int
    follower_count: int
    is_featured: bool
    is_official: bool
    duration: int
    last_played: datetime | None
    settings: PlaybackSettings
    created_at: datetime
    updated_at: datetime
    user_liked: bool = False
    user_following: bool = False

    @classmethod
    def from_playlist(cls, playlist: Playlist, user_id: str | None = None) -> "PlaylistResponse":
        return cls(
            id=playlist.id,
            name=playlist.name,
            description=playlist.description,
            cover_image=playlist.cover_image,
            is_public=playlist.is_public,
            is_collaborative=playlist.is_collaborative,
            owner_id=playlist.owner_id,
            collaborators=playlist.collaborators,
            songs=playlist.songs,
            song_count=playlist.song_count,
            tags=playlist.tags,
            category=playlist.category,
            mood=playlist.mood,
            play_count=playlist.play_count,
            like_count=playlist.like_count,
            follower_count=playlist.follower_count,
            is_featured=playlist.is_featured,
            is_official=playlist.is_official,
            duration=playlist.duration,
            last_played=playlist.last_played,
            settings=playlist.settings,
            created_at=playlist.created_at,
            updated_at=playlist.updated_at,
            user_liked=user_id is not None and user_id in playlist.likes,
            user_following=user_id is not None and user_id in playlist.followers,
        )


class PlaylistsListResponse(BaseModel):
    """Response containing a list of playlists."""

    playlists: list[PlaylistResponse]
    total: int


class PlaylistTrack(BaseModel):
    """A playlist entry joined with its song.

    ``song`` is None when the song has since been deleted.
    """

    entry: PlaylistEntry
    song: SongResponse | None
    premium_locked: bool = False


class PlaylistDetailResponse(BaseModel):
    """A playlist with its songs and the caller's permissions."""

    playlist: PlaylistResponse
    tracks: list[PlaylistTrack]
    can_edit: bool
    can_delete: bool
