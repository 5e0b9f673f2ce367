"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.config import BackendSettings, get_backend_settings
from backend.services.auth_service import AuthService
from backend.services.firestore_service import FirestoreService
from backend.services.media_service import MediaService
from backend.services.playlist_service import PlaylistService
from backend.services.song_service import SongService
from backend.services.user_service import UserService
from tuneforge.core import policy
from tuneforge.core.exceptions import AuthenticationError
from tuneforge.core.models import User
from tuneforge.core.policy import RequestContext

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_settings() -> BackendSettings:
    """Get application settings."""
    return get_backend_settings()


@lru_cache
def _firestore_service() -> FirestoreService:
    return FirestoreService(get_backend_settings())


async def get_firestore() -> FirestoreService:
    """Get the shared Firestore service."""
    return _firestore_service()


# -----------------------------------------------------------------------------
# Services
# -----------------------------------------------------------------------------


async def get_auth_service(
    settings: Annotated[BackendSettings, Depends(get_settings)],
    firestore: Annotated[FirestoreService, Depends(get_firestore)],
) -> AuthService:
    return AuthService(settings, firestore)


async def get_user_service(
    settings: Annotated[BackendSettings, Depends(get_settings)],
    firestore: Annotated[FirestoreService, Depends(get_firestore)],
) -> UserService:
    return UserService(settings, firestore)


async def get_song_service(
    settings: Annotated[BackendSettings, Depends(get_settings)],
    firestore: Annotated[FirestoreService, Depends(get_firestore)],
) -> SongService:
    return SongService(settings, firestore)


async def get_playlist_service(
    settings: Annotated[BackendSettings, Depends(get_settings)],
    firestore: Annotated[FirestoreService, Depends(get_firestore)],
) -> PlaylistService:
    return PlaylistService(settings, firestore)


async def get_media_service(
    settings: Annotated[BackendSettings, Depends(get_settings)],
) -> MediaService:
    return MediaService(settings)


# -----------------------------------------------------------------------------
# Authentication
# -----------------------------------------------------------------------------


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Get the current authenticated user from the JWT token.

    The user document is re-read on every request so role, subscription and
    activation changes take effect immediately.

    Raises:
        HTTPException: If not authenticated, the token is invalid, or the
            account no longer exists or is disabled.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = auth_service.validate_jwt(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = claims.get("sub")
    user = await auth_service.get_user_by_id(user_id) if user_id else None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or disabled",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User | None:
    """Get the current user if authenticated, None otherwise."""
    if credentials is None:
        return None

    try:
        return await get_current_user(credentials, auth_service)
    except HTTPException:
        return None


async def get_request_context(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> RequestContext:
    """Identity snapshot used for authorization decisions."""
    if user is None:
        return RequestContext.anonymous()
    return RequestContext.from_user(user)


async def get_admin_user(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require an authenticated admin.

    Raises:
        HTTPException: 403 if the user is not an admin.
    """
    if not policy.is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# Type aliases for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
Context = Annotated[RequestContext, Depends(get_request_context)]
Settings = Annotated[BackendSettings, Depends(get_settings)]

FirestoreServiceDep = Annotated[FirestoreService, Depends(get_firestore)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
SongServiceDep = Annotated[SongService, Depends(get_song_service)]
PlaylistServiceDep = Annotated[PlaylistService, Depends(get_playlist_service)]
MediaServiceDep = Annotated[MediaService, Depends(get_media_service)]
