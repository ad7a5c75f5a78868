"""
Local file storage for uploaded scans.

References handed out are plain paths under the upload directory. Uniqueness
comes from a random prefix so concurrent uploads of the same name never collide.
"""

import logging
import uuid
from pathlib import Path

from lifeos.exceptions import FileStoreError

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Stores bytes on local disk and resolves references back to them."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def store(self, content: bytes, suggested_name: str) -> str:
        """Write content under a unique name and return its reference."""
        self.root.mkdir(parents=True, exist_ok=True)
        safe_name = Path(suggested_name or "upload").name
        path = self.root / f"{uuid.uuid4().hex}_{safe_name}"
        try:
            path.write_bytes(content)
        except OSError as e:
            raise FileStoreError(f"Could not store upload {safe_name}: {e}") from e
        logger.info("Stored %d bytes at %s", len(content), path)
        return str(path)

    def exists(self, reference: str) -> bool:
        return Path(reference).is_file()

    def read(self, reference: str) -> bytes:
        """Raises FileNotFoundError when the reference is gone."""
        return Path(reference).read_bytes()

    def delete(self, reference: str) -> None:
        """Remove the stored file; a missing file is not an error."""
        path = Path(reference)
        try:
            path.unlink()
            logger.info("Deleted stored file %s", path)
        except FileNotFoundError:
            logger.debug("Stored file %s already gone", path)
