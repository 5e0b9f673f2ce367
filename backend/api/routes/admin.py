"""Admin routes for catalog and user management.

Provides endpoints for:
- Dashboard statistics
- Song upload, editing, deactivation and deletion
- User listing, activation, roles and badges

All routes require an authenticated user with the admin role.
"""

import logging
from typing import Literal

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from pydantic import BaseModel, Field

from backend.api.deps import (
    AdminUser,
    MediaServiceDep,
    PlaylistServiceDep,
    SongServiceDep,
    UserServiceDep,
)
from backend.models.admin import (
    AdminStats,
    PlaylistStats,
    SongStats,
    UserListItem,
    UserListResponse,
    UserStats,
)
from backend.models.songs import SongResponse, SongsListResponse
from backend.models.users import UserResponse
from tuneforge.core.models import Genre, Mood, Role, SongMetadata

logger = logging.getLogger(__name__)

router = APIRouter()


# -----------------------------------------------------------------------------
# Request Models
# -----------------------------------------------------------------------------


class UpdateSongRequest(BaseModel):
    """Request to edit song metadata. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    artist: str | None = Field(None, min_length=1, max_length=100)
    album: str | None = Field(None, max_length=100)
    genre: Genre | None = None
    duration: int | None = Field(None, ge=0)
    lyrics: str | None = None
    release_year: int | None = Field(None, ge=1900)
    language: str | None = None
    explicit: bool | None = None
    mood: Mood | None = None
    bpm: int | None = Field(None, ge=0)
    key: str | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    is_premium: bool | None = None
    metadata: SongMetadata | None = None


class UserStatusRequest(BaseModel):
    is_active: bool


class UserRoleRequest(BaseModel):
    role: Role


class BadgeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    icon: str | None = None


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str


# -----------------------------------------------------------------------------
# Dashboard Stats
# -----------------------------------------------------------------------------


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(
    user: AdminUser,
    song_service: SongServiceDep,
    user_service: UserServiceDep,
    playlist_service: PlaylistServiceDep,
) -> AdminStats:
    """Get dashboard statistics.

    Returns counts for users, songs and playlists, the active-song genre
    distribution, and the most recent and most played songs.
    """
    users = await user_service.get_stats()
    songs = await song_service.get_stats()
    playlists = await playlist_service.get_stats()
    genres = await song_service.get_genre_counts()
    recent = await song_service.get_recent(limit=5)
    top = await song_service.get_trending(limit=5)

    return AdminStats(
        users=UserStats(**users),
        songs=SongStats(**songs),
        playlists=PlaylistStats(**playlists),
        genres=genres,
        recent_songs=[SongResponse.from_song(song) for song in recent],
        top_songs=[SongResponse.from_song(song) for song in top],
    )


# -----------------------------------------------------------------------------
# Songs
# -----------------------------------------------------------------------------


@router.get("/songs", response_model=SongsListResponse)
async def list_songs(
    user: AdminUser,
    song_service: SongServiceDep,
    search: str | None = Query(None, description="Search title, artist, album, tags"),
    genre: Genre | None = Query(None),
    sort: Literal["newest", "oldest", "popular", "title", "artist"] = Query("newest"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> SongsListResponse:
    """List all songs, including premium and deactivated ones."""
    songs, total = await song_service.list_songs(
        search=search,
        genre=genre,
        sort=sort,
        include_premium=True,
        include_inactive=True,
        limit=limit,
        offset=offset,
    )
    return SongsListResponse(
        songs=[SongResponse.from_song(song) for song in songs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/songs", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def upload_song(
    user: AdminUser,
    song_service: SongServiceDep,
    media_service: MediaServiceDep,
    song_file: UploadFile = File(..., description="Audio file"),
    cover_art: UploadFile | None = File(None, description="Optional cover image"),
    title: str = Form(..., min_length=1, max_length=200),
    artist: str = Form(..., min_length=1, max_length=100),
    genre: Genre = Form(...),
    duration: int = Form(..., ge=0, description="Length in seconds"),
    album: str | None = Form(None, max_length=100),
    release_year: int | None = Form(None, ge=1900),
    language: str = Form("English"),
    explicit: bool = Form(False),
    lyrics: str = Form(""),
    mood: Mood | None = Form(None),
    bpm: int | None = Form(None, ge=0),
    key: str | None = Form(None),
    is_premium: bool = Form(False),
    is_featured: bool = Form(False),
    tags: str = Form("", description="Comma-separated tags"),
) -> SongResponse:
    """Upload a song file with its metadata.

    Stored files are removed again if the song record cannot be created.
    """
    content = await song_file.read()
    file_path = media_service.save("audio", song_file.filename, song_file.content_type, content)
    stored = [file_path]

    try:
        details: dict = {
            "album": album,
            "release_year": release_year,
            "language": language,
            "explicit": explicit,
            "lyrics": lyrics,
            "mood": mood,
            "bpm": bpm,
            "key": key,
            "is_premium": is_premium,
            "is_featured": is_featured,
            "tags": [tag.strip() for tag in tags.split(",") if tag.strip()],
            "file_size": len(content),
        }
        if cover_art is not None and cover_art.filename:
            cover = await cover_art.read()
            cover_path = media_service.save("image", cover_art.filename, cover_art.content_type, cover)
            stored.append(cover_path)
            details["cover_art"] = cover_path

        song = await song_service.create_song(
            uploaded_by=user.id,
            file_path=file_path,
            title=title.strip(),
            artist=artist.strip(),
            genre=genre,
            duration=duration,
            **details,
        )
    except Exception:
        for path in stored:
            media_service.delete(path)
        raise

    return SongResponse.from_song(song)


@router.put("/songs/{song_id}", response_model=SongResponse)
async def update_song(
    song_id: str,
    request: UpdateSongRequest,
    user: AdminUser,
    song_service: SongServiceDep,
) -> SongResponse:
    """Edit song metadata."""
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        return SongResponse.from_song(await song_service.get_song(song_id))
    song = await song_service.update_song(song_id, **changes)
    return SongResponse.from_song(song)


@router.delete("/songs/{song_id}", response_model=MessageResponse)
async def delete_song(
    song_id: str,
    user: AdminUser,
    song_service: SongServiceDep,
    media_service: MediaServiceDep,
    permanent: bool = Query(True, description="False only deactivates the song"),
) -> MessageResponse:
    """Delete a song and its media files, or deactivate it."""
    if not permanent:
        await song_service.deactivate_song(song_id)
        return MessageResponse(message="Song deactivated")

    song = await song_service.delete_song(song_id)
    media_service.delete(song.file_path)
    media_service.delete(song.cover_art)
    logger.info(f"Admin {user.id} deleted song {song_id}")
    return MessageResponse(message="Song deleted")


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
async def list_users(
    user: AdminUser,
    user_service: UserServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: Literal["active", "inactive"] | None = Query(None, alias="status"),
    role: Role | None = Query(None),
    subscription: Literal["free", "premium", "pro"] | None = Query(None),
    search: str | None = Query(None, description="Search username, email or name"),
) -> UserListResponse:
    """List users, newest first."""
    users, total = await user_service.list_users(
        limit=limit,
        offset=offset,
        status=status_filter,
        role=role,
        subscription=subscription,
        search=search,
    )
    return UserListResponse(
        users=[
            UserListItem(
                id=u.id,
                username=u.username,
                email=u.email,
                full_name=u.full_name,
                role=u.role,
                subscription_type=u.subscription.type,
                is_active=u.is_active,
                badge_count=len(u.badges),
                last_login=u.last_login,
                created_at=u.created_at,
            )
            for u in users
        ],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/users/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: str,
    request: UserStatusRequest,
    user: AdminUser,
    user_service: UserServiceDep,
) -> UserResponse:
    """Activate or deactivate an account."""
    updated = await user_service.set_active(user_id, request.is_active)
    return UserResponse.from_user(updated)


@router.post("/users/{user_id}/role", response_model=UserResponse)
async def set_user_role(
    user_id: str,
    request: UserRoleRequest,
    user: AdminUser,
    user_service: UserServiceDep,
) -> UserResponse:
    updated = await user_service.set_role(user_id, request.role)
    return UserResponse.from_user(updated)


@router.post("/users/{user_id}/badges", response_model=UserResponse)
async def award_badge(
    user_id: str,
    request: BadgeRequest,
    user: AdminUser,
    user_service: UserServiceDep,
) -> UserResponse:
    """Award a badge; awarding one the user already holds changes nothing."""
    updated = await user_service.add_badge(user_id, request.name, request.description, request.icon)
    return UserResponse.from_user(updated)
