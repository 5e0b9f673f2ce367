"""API routes for TuneForge."""

from fastapi import APIRouter

from backend.api.routes.admin import router as admin_router
from backend.api.routes.auth import router as auth_router
from backend.api.routes.health import router as health_router
from backend.api.routes.me import router as me_router
from backend.api.routes.playlists import router as playlists_router
from backend.api.routes.songs import router as songs_router

router = APIRouter()

# Include all route modules
router.include_router(health_router, tags=["health"])
router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(songs_router, prefix="/songs", tags=["songs"])
router.include_router(playlists_router, prefix="/playlists", tags=["playlists"])
router.include_router(me_router, prefix="/me", tags=["me"])
router.include_router(admin_router, prefix="/admin", tags=["admin"])
