"""Service for user profile data: badges, listening history, favorites.

Also backs the admin console's user management (listing, activation,
role changes) and dashboard counters.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from tuneforge.core.exceptions import NotFoundError, ValidationError
from tuneforge.core.models import ROLES, Badge, HistoryEntry, User

logger = logging.getLogger(__name__)


class UserService:
    """Service for the User aggregate."""

    USERS_COLLECTION = "users"

    def __init__(self, settings: BackendSettings, firestore: FirestoreService):
        self.settings = settings
        self.firestore = firestore

    async def get_user(self, user_id: str) -> User:
        """Load a user.

        Raises:
            NotFoundError: If the user doesn't exist.
        """
        doc = await self.firestore.get_document(self.USERS_COLLECTION, user_id)
        if doc is None:
            raise NotFoundError(f"User {user_id} not found")
        return User.from_document(doc)

    async def _save(self, user: User, fields: list[str]) -> None:
        user.updated_at = datetime.now(UTC)
        document = user.to_document()
        data = {field: document[field] for field in [*fields, "updated_at"]}
        user.version = await self.firestore.update_document_versioned(
            self.USERS_COLLECTION,
            user.id,
            data,
            expected_version=user.version,
        )

    async def add_badge(
        self,
        user_id: str,
        name: str,
        description: str | None = None,
        icon: str | None = None,
    ) -> User:
        """Award a badge; awarding a badge the user already holds is a no-op."""
        user = await self.get_user(user_id)
        if user.add_badge(name, description, icon):
            await self._save(user, ["badges"])
            logger.info(f"Awarded badge '{name}' to {user_id}")
        return user

    async def add_to_history(self, user_id: str, song_id: str, duration: int | None) -> HistoryEntry:
        """Record a play in the user's listening history."""
        user = await self.get_user(user_id)
        entry = user.add_to_history(song_id, duration, limit=self.settings.history_limit)
        await self._save(user, ["listening_history"])
        return entry

    async def toggle_favorite(self, user_id: str, song_id: str) -> bool:
        """Add or remove a favorite song. Returns True if it is now a favorite."""
        user = await self.get_user(user_id)
        is_favorite = user.toggle_favorite(song_id)
        await self._save(user, ["favorite_songs"])
        return is_favorite

    async def get_history(self, user_id: str, limit: int = 50) -> list[HistoryEntry]:
        user = await self.get_user(user_id)
        return user.listening_history[:limit]

    async def get_badges(self, user_id: str) -> list[Badge]:
        user = await self.get_user(user_id)
        return user.badges

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    async def list_users(
        self,
        limit: int = 20,
        offset: int = 0,
        status: str | None = None,
        role: str | None = None,
        subscription: str | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        """List users, newest first.

        Status, role and subscription filter in Firestore. Search matches
        username, email and names case-insensitively and is applied
        client-side, so it scans at most 500 users.

        Returns:
            Tuple of (users for the requested page, total matching users).
        """
        filters: list[tuple[str, str, Any]] = []
        if status is not None:
            filters.append(("is_active", "==", status == "active"))
        if role is not None:
            filters.append(("role", "==", role))
        if subscription is not None:
            filters.append(("subscription.type", "==", subscription))

        if not search:
            docs = await self.firestore.query_documents(
                self.USERS_COLLECTION,
                filters=filters or None,
                order_by="created_at",
                order_direction="DESCENDING",
                limit=limit,
                offset=offset,
            )
            total = await self.firestore.count_documents(self.USERS_COLLECTION, filters=filters or None)
            return [User.from_document(doc) for doc in docs], total

        docs = await self.firestore.query_documents(
            self.USERS_COLLECTION,
            filters=filters or None,
            order_by="created_at",
            order_direction="DESCENDING",
            limit=500,
        )
        needle = search.lower()
        matches = [
            User.from_document(doc)
            for doc in docs
            if any(
                needle in (doc.get(field) or "").lower() for field in ("username", "email", "first_name", "last_name")
            )
        ]
        return matches[offset : offset + limit], len(matches)

    async def set_active(self, user_id: str, is_active: bool) -> User:
        """Soft-enable or soft-disable an account."""
        user = await self.get_user(user_id)
        user.is_active = is_active
        await self._save(user, ["is_active"])
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user

    async def set_role(self, user_id: str, role: str) -> User:
        """Change a user's role.

        Raises:
            ValidationError: If the role is unknown.
        """
        if role not in ROLES:
            raise ValidationError("Invalid role")
        user = await self.get_user(user_id)
        user.role = role  # type: ignore[assignment]
        await self._save(user, ["role"])
        logger.info(f"User {user_id} role set to {role}")
        return user

    async def get_stats(self) -> dict[str, int]:
        """User counters for the admin dashboard."""
        total = await self.firestore.count_documents(self.USERS_COLLECTION)
        active = await self.firestore.count_documents(self.USERS_COLLECTION, filters=[("is_active", "==", True)])
        premium = await self.firestore.count_documents(
            self.USERS_COLLECTION,
            filters=[
                ("subscription.type", "in", ["premium", "pro"]),
                ("subscription.is_active", "==", True),
            ],
        )
        return {"total": total, "active": active, "premium": premium}


# Lazy initialization
_user_service: UserService | None = None


def get_user_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> UserService:
    """Get the user service instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        UserService instance.
    """
    global _user_service

    if _user_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _user_service = UserService(settings, firestore)

    return _user_service
