"""
Image Storage - Blob Storage for Property Photos

Images are stored under {storage_root}/{folder}/{millis}_{filename} and
addressed by a public URL of the same shape under url_prefix.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import BinaryIO, Final, Optional

from core.errors import ImageUploadError


logger = logging.getLogger(__name__)


# =============================================================================
# Storage Configuration
# =============================================================================

DEFAULT_STORAGE_PATH: Final[str] = "data/uploads"
DEFAULT_URL_PREFIX: Final[str] = "/uploads"
DEFAULT_FOLDER: Final[str] = "properties"

# 5MB
MAX_IMAGE_BYTES: Final[int] = 5 * 1024 * 1024


# =============================================================================
# Image Storage
# =============================================================================


class ImageStorage:
    """Local-disk image storage with public URLs."""

    def __init__(
        self,
        storage_root: Optional[str] = None,
        url_prefix: str = DEFAULT_URL_PREFIX,
        max_bytes: int = MAX_IMAGE_BYTES,
    ):
        """
        Initialise image storage.

        Args:
            storage_root: Root directory for uploads. Defaults to data/uploads.
            url_prefix: Public URL prefix the root is served under
            max_bytes: Maximum accepted file size
        """
        self._storage_root = Path(storage_root or DEFAULT_STORAGE_PATH)
        self._url_prefix = url_prefix.rstrip("/")
        self._max_bytes = max_bytes
        self._storage_root.mkdir(parents=True, exist_ok=True)

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    @staticmethod
    def _sanitise(name: str, fallback: str) -> str:
        safe = name.replace("/", "_").replace("\\", "_").replace("..", "_")
        safe = safe.strip().strip(".")
        return safe or fallback

    def validate_file(
        self,
        content_type: Optional[str],
        file_size: int,
    ) -> tuple[bool, Optional[str]]:
        """
        Validate an image before upload.

        Args:
            content_type: MIME type reported by the client
            file_size: File size in bytes

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not content_type or not content_type.startswith("image/"):
            return False, "Please upload an image file"

        if file_size > self._max_bytes:
            max_mb = self._max_bytes / (1024 * 1024)
            return False, f"Image must be less than {max_mb:g}MB"

        if file_size == 0:
            return False, "File is empty"

        return True, None

    def upload(
        self,
        folder: str,
        filename: str,
        content: bytes,
        content_type: Optional[str],
    ) -> str:
        """
        Store an image and return its public URL.

        Raises:
            ImageUploadError: If the file is not an image, too large or empty
        """
        is_valid, error = self.validate_file(content_type, len(content))
        if not is_valid:
            logger.info("Rejected upload %r: %s", filename, error)
            raise ImageUploadError(error)

        safe_folder = self._sanitise(folder, DEFAULT_FOLDER)
        stored_name = f"{int(time.time() * 1000)}_{self._sanitise(filename, 'image')}"
        path = self._storage_root / safe_folder / stored_name

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise ImageUploadError(f"Failed to upload image: {e}") from e

        logger.debug("Stored image %s (%d bytes)", path, len(content))
        return f"{self._url_prefix}/{safe_folder}/{stored_name}"

    def upload_from_file(
        self,
        folder: str,
        filename: str,
        file_handle: BinaryIO,
        content_type: Optional[str],
    ) -> str:
        return self.upload(folder, filename, file_handle.read(), content_type)

    def path_for(self, url: str) -> Optional[Path]:
        """Map a public URL back to its file, or None if it is not ours."""
        prefix = self._url_prefix + "/"
        if not url.startswith(prefix):
            return None
        root = self._storage_root.resolve()
        path = (root / url[len(prefix):]).resolve()
        # Absolute segments and symlinks can point outside the root
        if root not in path.parents:
            return None
        return path

    def delete(self, url: str) -> bool:
        """
        Delete an image by URL.

        Returns:
            True if a file was removed

        Raises:
            ImageUploadError: If the file exists but cannot be removed
        """
        path = self.path_for(url)
        if path is None or not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise ImageUploadError(f"Failed to delete image: {e}") from e
        logger.debug("Deleted image %s", path)
        return True
