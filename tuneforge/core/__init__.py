"""Core modules for TuneForge."""

from tuneforge.core.config import Settings, get_settings
from tuneforge.core.models import (
    Badge,
    Collaborator,
    Comment,
    HistoryEntry,
    Playlist,
    PlaylistEntry,
    Song,
    Subscription,
    User,
)
from tuneforge.core.policy import RequestContext

__all__ = [
    "Settings",
    "get_settings",
    "User",
    "Subscription",
    "Badge",
    "HistoryEntry",
    "Song",
    "Comment",
    "Playlist",
    "PlaylistEntry",
    "Collaborator",
    "RequestContext",
]
