"""File-backed pointer to the signed-in user."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

_logger = logging.getLogger(__name__)


@dataclass
class FileSessionPointer:
    """Persists the current user id as a small JSON file."""

    path: Path

    def read(self) -> UUID | None:
        """Return the stored user id, if any."""
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return UUID(str(payload["user_id"]))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            _logger.warning("Ignoring unreadable session pointer %s", self.path)
            return None

    def write(self, user_id: UUID) -> None:
        """Store the user id."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"user_id": str(user_id)}), encoding="utf-8")

    def clear(self) -> None:
        """Remove the stored user id."""
        self.path.unlink(missing_ok=True)
