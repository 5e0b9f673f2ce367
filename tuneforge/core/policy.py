"""Authorization policy.

Stateless decision functions over the request context and entity state. They
never raise and never mutate; callers turn a False into a 403 (or hide the
entity) themselves. An anonymous caller is represented by ``user_id=None``,
which never matches an owner or collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tuneforge.core.models import Playlist, Song, User


@dataclass(frozen=True)
class RequestContext:
    """Identity snapshot for one request, built from a freshly loaded user."""

    user_id: str | None = None
    username: str | None = None
    role: str = "user"
    subscription_type: str = "free"
    subscription_active: bool = False

    @classmethod
    def anonymous(cls) -> RequestContext:
        return cls()

    @classmethod
    def from_user(cls, user: User) -> RequestContext:
        return cls(
            user_id=user.id,
            username=user.username,
            role=user.role,
            subscription_type=user.subscription.type,
            subscription_active=user.subscription.is_active,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def _subscription_of(subject: Any) -> tuple[str, bool]:
    if subject is None:
        return "free", False
    if isinstance(subject, RequestContext):
        return subject.subscription_type, subject.subscription_active
    subscription = getattr(subject, "subscription", subject)
    return getattr(subscription, "type", "free"), bool(getattr(subscription, "is_active", False))


def is_premium_eligible(subject: User | RequestContext | Any | None) -> bool:
    """True iff the subscription is not free and is active.

    Accepts a User, a RequestContext, a bare Subscription, or None.
    """
    sub_type, active = _subscription_of(subject)
    return sub_type != "free" and active


def is_admin(subject: User | RequestContext | None) -> bool:
    return getattr(subject, "role", None) == "admin"


def can_view(playlist: Playlist, user_id: str | None) -> bool:
    if playlist.is_public:
        return True
    if user_id is None:
        return False
    if user_id == playlist.owner_id:
        return True
    return any(c.user_id == user_id for c in playlist.collaborators)


def can_edit(playlist: Playlist, user_id: str | None) -> bool:
    if user_id is None:
        return False
    if user_id == playlist.owner_id:
        return True
    if not playlist.is_collaborative:
        return False
    return any(c.user_id == user_id and c.role == "editor" for c in playlist.collaborators)


def can_delete(playlist: Playlist, user_id: str | None) -> bool:
    """Only the owner may delete a playlist or manage its collaborators."""
    return user_id is not None and user_id == playlist.owner_id


def can_access_song(song: Song, context: RequestContext | None) -> bool:
    """Premium-gated songs need a premium-eligible caller; others are open."""
    if not song.is_premium:
        return True
    return is_premium_eligible(context)
