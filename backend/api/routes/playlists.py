"""Playlist routes for user-created playlists.

Provides CRUD operations for playlists, song membership and ordering,
collaborator management, and likes/follows/plays. Every route decides
access with ``tuneforge.core.policy`` before touching the playlist.
"""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from backend.api.deps import Context, CurrentUser, PlaylistServiceDep, Settings, SongServiceDep
from backend.models.playlists import (
    PlaylistDetailResponse,
    PlaylistResponse,
    PlaylistsListResponse,
    PlaylistTrack,
)
from backend.models.songs import SongResponse
from backend.services.playlist_service import PlaylistService
from tuneforge.core import policy
from tuneforge.core.exceptions import AuthorizationError
from tuneforge.core.models import (
    Collaborator,
    CollaboratorRole,
    Mood,
    PlaybackSettings,
    Playlist,
    PlaylistCategory,
    PlaylistEntry,
)
from tuneforge.core.policy import RequestContext

router = APIRouter()


# -----------------------------------------------------------------------------
# Request/Response Models
# -----------------------------------------------------------------------------


class CreatePlaylistRequest(BaseModel):
    """Request to create a playlist."""

    name: str = Field(..., min_length=1, max_length=100, description="Playlist name")
    description: str | None = Field(None, max_length=500, description="Optional description")
    is_public: bool = True
    is_collaborative: bool = False
    category: PlaylistCategory = "personal"
    mood: Mood | None = None
    tags: list[str] = Field(default_factory=list)
    settings: PlaybackSettings | None = None


class UpdatePlaylistRequest(BaseModel):
    """Request to update a playlist. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100, description="New playlist name")
    description: str | None = Field(None, max_length=500, description="New description")
    cover_image: str | None = None
    is_public: bool | None = None
    is_collaborative: bool | None = None
    category: PlaylistCategory | None = None
    mood: Mood | None = None
    tags: list[str] | None = None
    settings: PlaybackSettings | None = None


class AddSongRequest(BaseModel):
    """Request to add a song to a playlist."""

    song_id: str = Field(..., min_length=1, description="Song ID to add")


class SongOrder(BaseModel):
    """New order key for one song."""

    song_id: str
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    """Request to reorder songs in a playlist."""

    song_orders: list[SongOrder] = Field(..., min_length=1)


class CollaboratorRequest(BaseModel):
    """Request to add or update a collaborator."""

    role: CollaboratorRole = "editor"


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class FollowResponse(BaseModel):
    following: bool
    follower_count: int


class PlayResponse(BaseModel):
    playlist_id: str
    play_count: int


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


async def _get_viewable(playlist_id: str, playlist_service: PlaylistService, user_id: str | None) -> Playlist:
    playlist = await playlist_service.get_playlist(playlist_id)
    if not policy.can_view(playlist, user_id):
        raise AuthorizationError("You do not have permission to view this playlist")
    return playlist


async def _check_editable(playlist_id: str, playlist_service: PlaylistService, user_id: str) -> Playlist:
    playlist = await playlist_service.get_playlist(playlist_id)
    if not policy.can_edit(playlist, user_id):
        raise AuthorizationError("You do not have permission to edit this playlist")
    return playlist


async def _check_owner(playlist_id: str, playlist_service: PlaylistService, user_id: str) -> Playlist:
    playlist = await playlist_service.get_playlist(playlist_id)
    if not policy.can_delete(playlist, user_id):
        raise AuthorizationError("Only the playlist owner can do this")
    return playlist


def _list_response(playlists: list[Playlist], total: int, context: RequestContext) -> PlaylistsListResponse:
    return PlaylistsListResponse(
        playlists=[PlaylistResponse.from_playlist(p, context.user_id) for p in playlists],
        total=total,
    )


# -----------------------------------------------------------------------------
# List / Create
# -----------------------------------------------------------------------------


@router.get("", response_model=PlaylistsListResponse)
async def list_playlists(
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
    limit: int = Query(20, ge=1, le=100, description="Maximum playlists to return"),
    offset: int = Query(0, ge=0, description="Number of playlists to skip"),
) -> PlaylistsListResponse:
    """List playlists the user owns or collaborates on.

    Sorted by most recently updated.
    """
    playlists, total = await playlist_service.list_for_user(user.id, limit=limit, offset=offset)
    return PlaylistsListResponse(
        playlists=[PlaylistResponse.from_playlist(p, user.id) for p in playlists],
        total=total,
    )


@router.post("", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    request: CreatePlaylistRequest,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistResponse:
    """Create a new playlist owned by the caller."""
    details = request.model_dump(exclude={"name", "description", "settings"})
    if request.settings is not None:
        details["settings"] = request.settings
    playlist = await playlist_service.create_playlist(
        owner_id=user.id,
        name=request.name,
        description=request.description,
        **details,
    )
    return PlaylistResponse.from_playlist(playlist, user.id)


@router.get("/public", response_model=PlaylistsListResponse)
async def list_public_playlists(
    context: Context,
    playlist_service: PlaylistServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> PlaylistsListResponse:
    """Public playlists, most played first."""
    playlists = await playlist_service.list_public(limit=limit, offset=offset)
    total = await playlist_service.count_public()
    return _list_response(playlists, total, context)


@router.get("/featured", response_model=PlaylistsListResponse)
async def list_featured_playlists(
    context: Context,
    playlist_service: PlaylistServiceDep,
    settings: Settings,
) -> PlaylistsListResponse:
    playlists = await playlist_service.list_featured(limit=settings.featured_limit)
    return _list_response(playlists, len(playlists), context)


@router.get("/search", response_model=PlaylistsListResponse)
async def search_playlists(
    context: Context,
    playlist_service: PlaylistServiceDep,
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> PlaylistsListResponse:
    """Search public playlists by name, description and tags."""
    playlists = await playlist_service.search_public(q, limit=limit, offset=offset)
    return _list_response(playlists, len(playlists), context)


# -----------------------------------------------------------------------------
# Single playlist
# -----------------------------------------------------------------------------


@router.get("/{playlist_id}", response_model=PlaylistDetailResponse)
async def get_playlist(
    playlist_id: str,
    context: Context,
    playlist_service: PlaylistServiceDep,
    song_service: SongServiceDep,
) -> PlaylistDetailResponse:
    """Get a playlist with its songs.

    Private playlists are visible only to the owner and collaborators.
    Premium songs are marked as locked for callers without premium access.
    """
    playlist = await _get_viewable(playlist_id, playlist_service, context.user_id)
    songs = await song_service.get_songs(playlist.song_ids)

    tracks = []
    for entry in playlist.songs:
        song = songs.get(entry.song_id)
        tracks.append(
            PlaylistTrack(
                entry=entry,
                song=SongResponse.from_song(song, context.user_id) if song else None,
                premium_locked=song is not None and not policy.can_access_song(song, context),
            )
        )

    return PlaylistDetailResponse(
        playlist=PlaylistResponse.from_playlist(playlist, context.user_id),
        tracks=tracks,
        can_edit=policy.can_edit(playlist, context.user_id),
        can_delete=policy.can_delete(playlist, context.user_id),
    )


@router.put("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: str,
    request: UpdatePlaylistRequest,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistResponse:
    """Update a playlist's metadata. Requires edit rights."""
    await _check_editable(playlist_id, playlist_service, user.id)
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        playlist = await playlist_service.get_playlist(playlist_id)
    else:
        playlist = await playlist_service.update_playlist(playlist_id, **changes)
    return PlaylistResponse.from_playlist(playlist, user.id)


@router.delete("/{playlist_id}", response_model=MessageResponse)
async def delete_playlist(
    playlist_id: str,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> MessageResponse:
    """Delete a playlist. Only the owner may do this."""
    await _check_owner(playlist_id, playlist_service, user.id)
    await playlist_service.delete_playlist(playlist_id)
    return MessageResponse(message="Playlist deleted")


# -----------------------------------------------------------------------------
# Songs in playlist
# -----------------------------------------------------------------------------


@router.post("/{playlist_id}/songs", response_model=PlaylistEntry, status_code=status.HTTP_201_CREATED)
async def add_song_to_playlist(
    playlist_id: str,
    request: AddSongRequest,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistEntry:
    """Add a song to the end of a playlist.

    Returns 409 if the song is already in the playlist.
    """
    await _check_editable(playlist_id, playlist_service, user.id)
    return await playlist_service.add_song(playlist_id, request.song_id, user.id)


@router.delete("/{playlist_id}/songs/{song_id}", response_model=PlaylistResponse)
async def remove_song_from_playlist(
    playlist_id: str,
    song_id: str,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistResponse:
    await _check_editable(playlist_id, playlist_service, user.id)
    playlist = await playlist_service.remove_song(playlist_id, song_id)
    return PlaylistResponse.from_playlist(playlist, user.id)


@router.post("/{playlist_id}/reorder", response_model=PlaylistResponse)
async def reorder_playlist(
    playlist_id: str,
    request: ReorderRequest,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistResponse:
    """Assign new order keys to songs; unmentioned songs keep theirs."""
    await _check_editable(playlist_id, playlist_service, user.id)
    playlist = await playlist_service.reorder_songs(
        playlist_id,
        [(item.song_id, item.order) for item in request.song_orders],
    )
    return PlaylistResponse.from_playlist(playlist, user.id)


# -----------------------------------------------------------------------------
# Collaborators
# -----------------------------------------------------------------------------


@router.put("/{playlist_id}/collaborators/{collaborator_id}", response_model=Collaborator)
async def put_collaborator(
    playlist_id: str,
    collaborator_id: str,
    request: CollaboratorRequest,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> Collaborator:
    """Add a collaborator or change their role. Only the owner may do this."""
    await _check_owner(playlist_id, playlist_service, user.id)
    return await playlist_service.add_collaborator(playlist_id, collaborator_id, request.role)


@router.delete("/{playlist_id}/collaborators/{collaborator_id}", response_model=PlaylistResponse)
async def delete_collaborator(
    playlist_id: str,
    collaborator_id: str,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> PlaylistResponse:
    await _check_owner(playlist_id, playlist_service, user.id)
    playlist = await playlist_service.remove_collaborator(playlist_id, collaborator_id)
    return PlaylistResponse.from_playlist(playlist, user.id)


# -----------------------------------------------------------------------------
# Interactions
# -----------------------------------------------------------------------------


@router.post("/{playlist_id}/like", response_model=LikeResponse)
async def like_playlist(
    playlist_id: str,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> LikeResponse:
    await _get_viewable(playlist_id, playlist_service, user.id)
    playlist, liked = await playlist_service.toggle_like(playlist_id, user.id)
    return LikeResponse(liked=liked, like_count=playlist.like_count)


@router.post("/{playlist_id}/follow", response_model=FollowResponse)
async def follow_playlist(
    playlist_id: str,
    user: CurrentUser,
    playlist_service: PlaylistServiceDep,
) -> FollowResponse:
    await _get_viewable(playlist_id, playlist_service, user.id)
    playlist, following = await playlist_service.toggle_follow(playlist_id, user.id)
    return FollowResponse(following=following, follower_count=playlist.follower_count)


@router.post("/{playlist_id}/play", response_model=PlayResponse)
async def play_playlist(
    playlist_id: str,
    context: Context,
    playlist_service: PlaylistServiceDep,
) -> PlayResponse:
    """Record a play. Anyone who can view the playlist may play it."""
    await _get_viewable(playlist_id, playlist_service, context.user_id)
    playlist = await playlist_service.record_play(playlist_id)
    return PlayResponse(playlist_id=playlist.id, play_count=playlist.play_count)
