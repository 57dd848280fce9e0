"""
State backends.

A backend stores opaque text blobs keyed by an identifier. The time-series
store only ever reads or replaces a whole blob.
"""

import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StateBackend(Protocol):
    """Blob storage keyed by identifier."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, data: str) -> None: ...


class FileStateBackend:
    """
    Backend storing each blob as ``<dir>/<key>.json``.

    Writes go to a temporary file that then replaces the target, so a
    reader never sees a half-written blob.
    """

    def __init__(self, directory: str | Path) -> None:
        """
        Initialize file backend.

        Args:
            directory: Directory holding the blobs.
        """
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """Get the file path for a key."""
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        """
        Read a blob.

        Args:
            key: Blob identifier.

        Returns:
            Blob text, or None if nothing was stored under the key.
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, data: str) -> None:
        """
        Replace a blob.

        Args:
            key: Blob identifier.
            data: Blob text.
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = path.with_name(f"{path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
        logger.debug(f"Wrote {len(data)} bytes to {path}")


class MemoryStateBackend:
    """Backend keeping blobs in a dictionary."""

    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self.blobs.get(key)

    def write(self, key: str, data: str) -> None:
        self.blobs[key] = data
