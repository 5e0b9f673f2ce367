"""User API response models."""

from datetime import datetime

from pydantic import BaseModel

from tuneforge.core.models import Badge, HistoryEntry, Preferences, Subscription, User


class UserResponse(BaseModel):
    """Public view of a user account (never includes the password hash)."""

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    avatar: str
    role: str
    subscription: Subscription
    has_premium_access: bool
    preferences: Preferences
    badges: list[Badge]
    is_active: bool
    last_login: datetime | None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            avatar=user.avatar,
            role=user.role,
            subscription=user.subscription,
            has_premium_access=user.has_premium_access(),
            preferences=user.preferences,
            badges=user.badges,
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
        )


class HistoryResponse(BaseModel):
    """Listening history, newest first."""

    history: list[HistoryEntry]
    total: int


class BadgesResponse(BaseModel):
    """Badges held by the user."""

    badges: list[Badge]


class FavoritesResponse(BaseModel):
    """Favorite song IDs."""

    song_ids: list[str]
    total: int
