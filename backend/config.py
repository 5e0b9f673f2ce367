"""Backend-specific configuration."""

from functools import lru_cache

from tuneforge.core.config import Settings


class BackendSettings(Settings):
    """Extended settings for the backend API."""

    # CORS
    cors_allow_origins: list[str] = ["http://localhost:3000"]

    # Listing caps
    trending_limit: int = 10
    featured_limit: int = 10


@lru_cache
def get_backend_settings() -> BackendSettings:
    """Get cached backend settings instance."""
    return BackendSettings()
