"""Whole-document JSON persistence.

Each document is read in full, mutated in memory by the caller and written
back in full. Writes go to a temp file in the same directory followed by an
atomic rename, so an interrupted or failed write never leaves a truncated
document behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from gho.errors import PersistenceError

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Load/save capability for one JSON-equivalent document."""

    def load(self) -> dict[str, Any] | None:
        """Return the stored document, or None if nothing is stored yet."""
        ...

    def save(self, document: dict[str, Any]) -> None:
        """Replace the stored document."""
        ...


class JSONDocumentStore:
    """DocumentStore backed by a JSON file."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path to the JSON file. Parent directories are created on save.
        """
        self.path = path

    def load(self) -> dict[str, Any] | None:
        """Load the document from disk.

        Returns:
            Parsed document, or None if the file does not exist.

        Raises:
            PersistenceError: If the file cannot be read or is not a JSON object.
        """
        if not self.path.exists():
            return None

        try:
            with self.path.open() as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Cannot read {self.path}: {e}"
            raise PersistenceError(msg) from e

        if not isinstance(data, dict):
            msg = f"Cannot read {self.path}: expected a JSON object"
            raise PersistenceError(msg)

        logger.debug("Loaded %s", self.path)
        return data

    def save(self, document: dict[str, Any]) -> None:
        """Write the document to disk atomically.

        Raises:
            PersistenceError: If the document cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.stem}_",
                suffix=".tmp",
            )
        except OSError as e:
            msg = f"Cannot write {self.path}: {e}"
            raise PersistenceError(msg) from e

        try:
            with os.fdopen(fd, "w") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
            Path(temp_path).replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            Path(temp_path).unlink(missing_ok=True)
            msg = f"Cannot write {self.path}: {e}"
            raise PersistenceError(msg) from e

        logger.debug("Saved %s", self.path)
