"""Song API response models."""

from datetime import datetime

from pydantic import BaseModel

from tuneforge.core.models import Comment, Song, SongMetadata


class SongResponse(BaseModel):
    """Song as returned to listeners.

    Like and dislike user lists are reduced to counts plus the caller's own
    interaction flags.
    """

    id: str
    title: str
    artist: str
    album: str | None
    genre: str
    duration: int
    file_path: str
    cover_art: str
    release_year: int | None
    language: str
    explicit: bool
    mood: str | None
    bpm: int | None
    key: str | None
    quality: str
    tags: list[str]
    metadata: SongMetadata
    is_active: bool
    is_featured: bool
    is_premium: bool
    play_count: int
    like_count: int
    dislike_count: int
    comment_count: int
    created_at: datetime
    user_liked: bool = False
    user_disliked: bool = False

    @classmethod
    def from_song(cls, song: Song, user_id: str | None = None) -> "SongResponse":
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            album=song.album,
            genre=song.genre,
            duration=song.duration,
            file_path=song.file_path,
            cover_art=song.cover_art,
            release_year=song.release_year,
            language=song.language,
            explicit=song.explicit,
            mood=song.mood,
            bpm=song.bpm,
            key=song.key,
            quality=song.quality,
            tags=song.tags,
            metadata=song.metadata,
            is_active=song.is_active,
            is_featured=song.is_featured,
            is_premium=song.is_premium,
            play_count=song.play_count,
            like_count=song.like_count,
            dislike_count=song.dislike_count,
            comment_count=len(song.comments),
            created_at=song.created_at,
            user_liked=user_id is not None and user_id in song.likes,
            user_disliked=user_id is not None and user_id in song.dislikes,
        )


class SongsListResponse(BaseModel):
    """Paginated song list."""

    songs: list[SongResponse]
    total: int
    limit: int
    offset: int


class SongDetailResponse(BaseModel):
    """A song with related songs and the caller's favorite flag."""

    song: SongResponse
    related: list[SongResponse]
    user_favorited: bool = False


class CommentsResponse(BaseModel):
    """Page of song comments."""

    comments: list[Comment]
    total: int
