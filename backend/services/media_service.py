"""Service for uploaded media files.

Validates audio and cover-art uploads and stores them on local disk under
``media_root``. Stored paths are relative to ``media_root`` so they can be
served from any mount point.
"""

import logging
import uuid
from pathlib import Path
from typing import Literal

from backend.config import BackendSettings
from tuneforge.core.exceptions import ValidationError
from tuneforge.utils.text import stored_filename

logger = logging.getLogger(__name__)

MediaKind = Literal["audio", "image"]

# Subdirectory and file name prefix per kind
_LAYOUT: dict[str, tuple[str, str]] = {
    "audio": ("songs", "song"),
    "image": ("covers", "cover"),
}


class MediaService:
    """Service for storing and removing uploaded files."""

    def __init__(self, settings: BackendSettings):
        self.settings = settings

    @property
    def root(self) -> Path:
        return Path(self.settings.media_root)

    def ensure_directories(self) -> list[Path]:
        """Create the media directories if missing."""
        paths = [self.root / subdir for subdir, _ in _LAYOUT.values()]
        for path in paths:
            path.mkdir(parents=True, exist_ok=True)
        return paths

    def validate(self, kind: MediaKind, content_type: str | None, size: int) -> None:
        """Check an upload against the MIME whitelist and size limit.

        Raises:
            ValidationError: If the upload is empty, too large, or of a disallowed type.
        """
        allowed = self.settings.allowed_audio_types if kind == "audio" else self.settings.allowed_image_types
        if (content_type or "").lower() not in allowed:
            label = "audio" if kind == "audio" else "image"
            raise ValidationError(f"Invalid file type. Only {label} files are allowed.")
        if size == 0:
            raise ValidationError("Empty file.")
        if size > self.settings.max_upload_bytes:
            raise ValidationError(f"File too large. Maximum size is {self.settings.max_upload_bytes} bytes.")

    def save(
        self,
        kind: MediaKind,
        filename: str | None,
        content_type: str | None,
        content: bytes,
    ) -> str:
        """Validate and store an upload.

        Args:
            kind: "audio" for song files, "image" for cover art.
            filename: Original client file name (used for the extension only).
            content_type: MIME type reported by the client.
            content: File bytes.

        Returns:
            Path of the stored file relative to the media root,
            e.g. ``songs/song-<uuid>.mp3``.

        Raises:
            ValidationError: If the upload fails validation.
        """
        self.validate(kind, content_type, len(content))

        subdir, prefix = _LAYOUT[kind]
        name = stored_filename(prefix, filename or "", uuid.uuid4().hex)
        directory = self.root / subdir
        directory.mkdir(parents=True, exist_ok=True)

        (directory / name).write_bytes(content)
        relative = f"{subdir}/{name}"
        logger.info(f"Stored {kind} upload {relative} ({len(content)} bytes)")
        return relative

    def delete(self, relative_path: str | None) -> bool:
        """Remove a stored file. Returns False if there was nothing to remove.

        Only paths inside the media root are touched.
        """
        if not relative_path:
            return False

        root = self.root.resolve()
        path = (root / relative_path).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            return False

        path.unlink()
        logger.info(f"Deleted media file {relative_path}")
        return True


# Lazy initialization
_media_service: MediaService | None = None


def get_media_service(settings: BackendSettings | None = None) -> MediaService:
    """Get the media service instance."""
    global _media_service

    if _media_service is None or settings is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()

        _media_service = MediaService(settings)

    return _media_service
