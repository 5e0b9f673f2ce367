"""Admin API response models."""

from datetime import datetime

from pydantic import BaseModel

from backend.models.songs import SongResponse


class UserStats(BaseModel):
    """User statistics."""

    total: int
    active: int
    premium: int


class SongStats(BaseModel):
    """Song catalog statistics."""

    total: int
    active: int
    premium: int


class PlaylistStats(BaseModel):
    """Playlist statistics."""

    total: int
    public: int


class AdminStats(BaseModel):
    """Combined admin statistics for dashboard."""

    users: UserStats
    songs: SongStats
    playlists: PlaylistStats
    genres: dict[str, int]
    recent_songs: list[SongResponse]
    top_songs: list[SongResponse]


class UserListItem(BaseModel):
    """User item for admin list view."""

    id: str
    username: str
    email: str
    full_name: str
    role: str
    subscription_type: str
    is_active: bool
    badge_count: int
    last_login: datetime | None
    created_at: datetime


class UserListResponse(BaseModel):
    """Paginated user list response."""

    users: list[UserListItem]
    total: int
    limit: int
    offset: int
