"""Song routes for browsing, searching and interacting with the catalog.

Premium-gated songs are hidden from listings for callers without premium
access, and opening or playing one without premium access returns 403.
"""

from typing import Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from backend.api.deps import (
    Context,
    CurrentUser,
    Settings,
    SongServiceDep,
    UserServiceDep,
)
from backend.models.songs import CommentsResponse, SongDetailResponse, SongResponse, SongsListResponse
from tuneforge.core import policy
from tuneforge.core.exceptions import AuthorizationError, NotFoundError
from tuneforge.core.models import Comment, Genre, HistoryEntry, Mood, Song
from tuneforge.core.policy import RequestContext

router = APIRouter()


# -----------------------------------------------------------------------------
# Request/Response Models
# -----------------------------------------------------------------------------


class GenresResponse(BaseModel):
    """Genres with at least one active song."""

    genres: list[str]


class ArtistCount(BaseModel):
    """Artist with their active song count."""

    artist: str
    song_count: int


class ArtistsResponse(BaseModel):
    """Artists, most prolific first."""

    artists: list[ArtistCount]


class LyricsResponse(BaseModel):
    """Song lyrics."""

    song_id: str
    lyrics: str


class PlayRequest(BaseModel):
    """Optional body for recording a play."""

    duration: int | None = Field(None, ge=0, description="Seconds played; defaults to the song length")


class PlayResponse(BaseModel):
    """Result of recording a play."""

    song_id: str
    play_count: int
    history_entry: HistoryEntry | None = None


class ReactionResponse(BaseModel):
    """Like/dislike state after a toggle."""

    liked: bool
    disliked: bool
    like_count: int
    dislike_count: int


class CommentRequest(BaseModel):
    """Request to comment on a song."""

    text: str = Field(..., description="Comment text; length is checked after trimming")


class FavoriteResponse(BaseModel):
    """Favorite state after a toggle."""

    song_id: str
    favorited: bool


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


async def _get_visible_song(song_id: str, song_service: SongServiceDep, context: RequestContext) -> Song:
    """Load a song the caller may see at all; inactive songs are only visible to admins."""
    song = await song_service.get_song(song_id)
    if not song.is_active and not policy.is_admin(context):
        raise NotFoundError(f"Song {song_id} not found")
    return song


async def _get_accessible_song(song_id: str, song_service: SongServiceDep, context: RequestContext) -> Song:
    """Load a song and enforce the premium gate."""
    song = await _get_visible_song(song_id, song_service, context)
    if not policy.can_access_song(song, context):
        raise AuthorizationError("Premium subscription required")
    return song


def _page(songs: list[Song], total: int, limit: int, offset: int, context: RequestContext) -> SongsListResponse:
    return SongsListResponse(
        songs=[SongResponse.from_song(song, context.user_id) for song in songs],
        total=total,
        limit=limit,
        offset=offset,
    )


# -----------------------------------------------------------------------------
# Listings
# -----------------------------------------------------------------------------


@router.get("", response_model=SongsListResponse)
async def list_songs(
    context: Context,
    song_service: SongServiceDep,
    genre: Genre | None = Query(None, description="Filter by genre"),
    artist: str | None = Query(None, description="Artist name contains"),
    year: int | None = Query(None, description="Release year"),
    mood: Mood | None = Query(None, description="Filter by mood"),
    sort: Literal["newest", "oldest", "popular", "title", "artist"] = Query("newest"),
    limit: int = Query(20, ge=1, le=100, description="Maximum songs to return"),
    offset: int = Query(0, ge=0, description="Number of songs to skip"),
) -> SongsListResponse:
    """List active songs with filters, sorting and pagination."""
    songs, total = await song_service.list_songs(
        genre=genre,
        artist=artist,
        year=year,
        mood=mood,
        sort=sort,
        include_premium=policy.is_premium_eligible(context),
        limit=limit,
        offset=offset,
    )
    return _page(songs, total, limit, offset, context)


@router.get("/search", response_model=SongsListResponse)
async def search_songs(
    context: Context,
    song_service: SongServiceDep,
    q: str = Query(..., min_length=1, description="Search query"),
    genre: Genre | None = Query(None, description="Filter by genre"),
    sort: Literal["newest", "oldest", "popular", "title", "artist"] = Query("popular"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> SongsListResponse:
    """Search songs by title, artist, album, genre and tags."""
    songs, total = await song_service.list_songs(
        search=q,
        genre=genre,
        sort=sort,
        include_premium=policy.is_premium_eligible(context),
        limit=limit,
        offset=offset,
    )
    return _page(songs, total, limit, offset, context)


@router.get("/trending", response_model=list[SongResponse])
async def trending_songs(
    context: Context,
    song_service: SongServiceDep,
    settings: Settings,
) -> list[SongResponse]:
    """Most played active songs."""
    songs = await song_service.get_trending(limit=settings.trending_limit)
    return [SongResponse.from_song(song, context.user_id) for song in songs]


@router.get("/featured", response_model=list[SongResponse])
async def featured_songs(
    context: Context,
    song_service: SongServiceDep,
    settings: Settings,
) -> list[SongResponse]:
    """Featured active songs, newest first."""
    songs = await song_service.get_featured(limit=settings.featured_limit)
    return [SongResponse.from_song(song, context.user_id) for song in songs]


@router.get("/genres", response_model=GenresResponse)
async def list_genres(song_service: SongServiceDep) -> GenresResponse:
    return GenresResponse(genres=await song_service.get_genres())


@router.get("/artists", response_model=ArtistsResponse)
async def list_artists(
    song_service: SongServiceDep,
    limit: int = Query(50, ge=1, le=200),
) -> ArtistsResponse:
    artists = await song_service.get_artists(limit=limit)
    return ArtistsResponse(artists=[ArtistCount(artist=name, song_count=count) for name, count in artists])


# -----------------------------------------------------------------------------
# Single song
# -----------------------------------------------------------------------------


@router.get("/{song_id}", response_model=SongDetailResponse)
async def get_song(
    song_id: str,
    context: Context,
    song_service: SongServiceDep,
    user_service: UserServiceDep,
) -> SongDetailResponse:
    """Get a song with related songs and the caller's interaction state.

    Returns 403 for premium songs when the caller lacks premium access.
    """
    song = await _get_accessible_song(song_id, song_service, context)
    related = await song_service.get_related(song)

    favorited = False
    if context.user_id is not None:
        user = await user_service.get_user(context.user_id)
        favorited = song.id in user.favorite_songs

    return SongDetailResponse(
        song=SongResponse.from_song(song, context.user_id),
        related=[SongResponse.from_song(other, context.user_id) for other in related],
        user_favorited=favorited,
    )


@router.get("/{song_id}/lyrics", response_model=LyricsResponse)
async def get_lyrics(
    song_id: str,
    context: Context,
    song_service: SongServiceDep,
) -> LyricsResponse:
    song = await _get_visible_song(song_id, song_service, context)
    return LyricsResponse(song_id=song.id, lyrics=song.lyrics)


@router.get("/{song_id}/comments", response_model=CommentsResponse)
async def list_comments(
    song_id: str,
    context: Context,
    song_service: SongServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> CommentsResponse:
    await _get_visible_song(song_id, song_service, context)
    comments, total = await song_service.get_comments(song_id, limit=limit, offset=offset)
    return CommentsResponse(comments=comments, total=total)


@router.post("/{song_id}/play", response_model=PlayResponse)
async def play_song(
    song_id: str,
    context: Context,
    song_service: SongServiceDep,
    user_service: UserServiceDep,
    request: PlayRequest | None = None,
) -> PlayResponse:
    """Record a play.

    Increments the play count and, for signed-in callers, prepends the song
    to their listening history.
    """
    song = await _get_accessible_song(song_id, song_service, context)
    song = await song_service.record_play(song.id)

    entry = None
    if context.user_id is not None:
        duration = request.duration if request and request.duration is not None else song.duration
        entry = await user_service.add_to_history(context.user_id, song.id, duration)

    return PlayResponse(song_id=song.id, play_count=song.play_count, history_entry=entry)


@router.post("/{song_id}/like", response_model=ReactionResponse)
async def like_song(
    song_id: str,
    user: CurrentUser,
    song_service: SongServiceDep,
) -> ReactionResponse:
    """Toggle a like; liking clears an existing dislike."""
    song = await song_service.toggle_like(song_id, user.id)
    return ReactionResponse(
        liked=user.id in song.likes,
        disliked=user.id in song.dislikes,
        like_count=song.like_count,
        dislike_count=song.dislike_count,
    )


@router.post("/{song_id}/dislike", response_model=ReactionResponse)
async def dislike_song(
    song_id: str,
    user: CurrentUser,
    song_service: SongServiceDep,
) -> ReactionResponse:
    """Toggle a dislike; disliking clears an existing like."""
    song = await song_service.toggle_dislike(song_id, user.id)
    return ReactionResponse(
        liked=user.id in song.likes,
        disliked=user.id in song.dislikes,
        like_count=song.like_count,
        dislike_count=song.dislike_count,
    )


@router.post("/{song_id}/comments", response_model=Comment, status_code=201)
async def add_comment(
    song_id: str,
    request: CommentRequest,
    user: CurrentUser,
    song_service: SongServiceDep,
) -> Comment:
    return await song_service.add_comment(song_id, user.id, request.text)


@router.post("/{song_id}/favorite", response_model=FavoriteResponse)
async def favorite_song(
    song_id: str,
    context: Context,
    user: CurrentUser,
    song_service: SongServiceDep,
    user_service: UserServiceDep,
) -> FavoriteResponse:
    """Toggle the song in the caller's favorites."""
    await _get_visible_song(song_id, song_service, context)
    favorited = await user_service.toggle_favorite(user.id, song_id)
    return FavoriteResponse(song_id=song_id, favorited=favorited)
