"""Blob storage for avatar images."""

import logging
import os
from pathlib import Path
from uuid import uuid4

from identity_manager.config import get_settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class BlobNotFoundError(StorageError):
    """Raised when a blob is not found in storage."""

    pass


class Storage:
    """Abstract storage interface for named byte blobs."""

    def save(self, original_filename: str, content: bytes) -> str:
        """Store content under a newly generated unique name.

        Args:
            original_filename: Client-supplied filename; only its extension is kept
            content: Blob content as bytes

        Returns:
            str: Generated name the blob was stored under

        Raises:
            StorageError: If the blob cannot be saved
        """
        raise NotImplementedError

    def read(self, name: str) -> bytes:
        """Read blob content.

        Raises:
            BlobNotFoundError: If the blob is not found
            StorageError: If the blob cannot be read
        """
        raise NotImplementedError

    def delete(self, name: str) -> None:
        """Delete a blob.

        Raises:
            BlobNotFoundError: If the blob is not found
            StorageError: If the blob cannot be deleted
        """
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        """Check whether a blob exists."""
        raise NotImplementedError


class LocalStorage(Storage):
    """Local file system storage implementation."""

    def __init__(self, base_path: str | Path | None = None):
        """Initialize local storage.

        Args:
            base_path: Directory for blob files. Defaults to the configured upload directory.
        """
        if base_path is None:
            base_path = get_settings().upload_dir
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, name: str) -> Path:
        return self.base_path / self._sanitize_filename(name)

    @staticmethod
    def _sanitize_filename(filename: str) -> str:
        """Sanitize filename to prevent directory traversal and other security issues.

        Args:
            filename: Original filename

        Returns:
            str: Sanitized filename
        """
        # Remove path components
        filename = os.path.basename(filename)
        # Remove any remaining path separators
        filename = filename.replace("/", "_").replace("\\", "_")
        # Remove null bytes
        filename = filename.replace("\x00", "")
        # Limit length
        if len(filename) > 255:
            name, ext = os.path.splitext(filename)
            filename = name[: 255 - len(ext)] + ext
        return filename

    @staticmethod
    def _generate_name(original_filename: str) -> str:
        _, ext = os.path.splitext(os.path.basename(original_filename or ""))
        ext = ext.lower() if ext and len(ext) <= 10 and ext[1:].isalnum() else ""
        return f"{uuid4().hex}{ext}"

    def save(self, original_filename: str, content: bytes) -> str:
        name = self._generate_name(original_filename)
        file_path = self._get_file_path(name)

        try:
            file_path.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to save file: {e}") from e

        logger.info(f"Stored blob {name} ({len(content)} bytes)")
        return name

    def read(self, name: str) -> bytes:
        file_path = self._get_file_path(name)

        if not file_path.is_file():
            raise BlobNotFoundError(f"File not found: {name}")

        try:
            return file_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read file: {e}") from e

    def delete(self, name: str) -> None:
        file_path = self._get_file_path(name)

        if not file_path.is_file():
            raise BlobNotFoundError(f"File not found: {name}")

        try:
            file_path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}") from e

        logger.info(f"Deleted blob {name}")

    def exists(self, name: str) -> bool:
        return self._get_file_path(name).is_file()


# Global storage instance
_storage: Storage | None = None


def get_storage() -> Storage:
    """Get storage instance.

    Returns:
        Storage: Storage instance (singleton)

    Example:
        ```python
        from identity_manager.core.storage import get_storage

        storage = get_storage()
        name = storage.save("me.png", content)
        ```
    """
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
