"""File-backed JSON documents, one per collection."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

_logger = logging.getLogger(__name__)


@dataclass
class JsonDocumentStore:
    """Reads and replaces whole JSON documents under a directory."""

    base_dir: Path

    def path_for(self, name: str) -> Path:
        """Return the document path for a collection name."""
        return self.base_dir / f"{name}.json"

    def read(self, name: str) -> list[dict[str, object]]:
        """Return the rows of a document.

        A missing, unreadable or corrupt document reads as empty.
        """
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            _logger.warning("Could not read local document %s", path, exc_info=True)
            return []
        if not isinstance(payload, list):
            _logger.warning("Local document %s is not a list", path)
            return []
        return [row for row in payload if isinstance(row, dict)]

    def write(self, name: str, rows: list[dict[str, object]]) -> None:
        """Replace a document atomically."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        handle, temp_name = tempfile.mkstemp(
            dir=self.base_dir, prefix=f".{name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
                json.dump(rows, temp_file, indent=2)
            os.replace(temp_name, path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
