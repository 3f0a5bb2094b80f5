"""Local filesystem storage for charity logos and verification documents."""

import os
import uuid
from pathlib import Path
from typing import NamedTuple, Optional

from chainheart.errors import ExternalDependencyError, ValidationError
from chainheart.log import get_logger

logger = get_logger(__name__)


class Upload(NamedTuple):
    """An uploaded file: original name and content."""

    filename: str
    data: bytes


class LocalFileStorage:
    """Stores uploaded files under a root directory.

    References returned by ``store`` are bare file names; ``public_url``
    turns them into URLs under the configured prefix.

    Example usage:
        storage = LocalFileStorage("./uploads")
        ref = storage.store(data, "logo.png")
        url = storage.public_url(ref)  # "/uploads/<ref>"
    """

    def __init__(self, root: str, url_prefix: str = "/uploads/"):
        """Initialize the storage.

        Args:
            root: Directory files are written to (created if missing)
            url_prefix: Public URL prefix for stored files
        """
        self.root = Path(root)
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"

    def store(self, data: bytes, filename: str) -> str:
        """Persist a file and return its reference.

        Args:
            data: File content
            filename: Original file name; only its extension is kept

        Returns:
            Reference of the stored file

        Raises:
            ValidationError: If the file is empty
            ExternalDependencyError: If the file cannot be written
        """
        if not data:
            raise ValidationError(f"Uploaded file is empty: {filename!r}")

        ext = os.path.splitext(filename or "")[1].lower()
        reference = f"{uuid.uuid4().hex}{ext}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / reference).write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store {filename!r}: {e}")
            raise ExternalDependencyError(f"Failed to store file {filename!r}") from e

        logger.debug(f"Stored {filename!r} as {reference} ({len(data)} bytes)")
        return reference

    def delete(self, reference: Optional[str]) -> None:
        """Delete a stored file; missing references are ignored.

        Raises:
            ExternalDependencyError: If an existing file cannot be removed
        """
        if not reference:
            return
        path = self.root / os.path.basename(reference)
        try:
            path.unlink()
            logger.debug(f"Deleted stored file {reference}")
        except FileNotFoundError:
            logger.debug(f"Stored file already gone: {reference}")
        except OSError as e:
            logger.error(f"Failed to delete {reference}: {e}")
            raise ExternalDependencyError(f"Failed to delete file {reference}") from e

    def public_url(self, reference: Optional[str]) -> Optional[str]:
        """Public URL of a stored file, or None when there is no reference."""
        if not reference:
            return None
        return f"{self.url_prefix}{reference}"
