"""Local JSON file ledger state repository."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from bakery_ledger.services.store import StateRepository

logger = logging.getLogger(__name__)


@dataclass
class JsonFileStateRepository(StateRepository):
    """Keeps all state keys in one JSON object on disk."""

    path: Path

    def load(self) -> dict[str, object]:
        """Return the stored object; a missing or unreadable file is empty."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable state file %s", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: expected an object", self.path)
            return {}
        return data

    def save(self, key: str, value: object) -> None:
        """Rewrite the file with one key replaced."""
        data = self.load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        os.replace(tmp_name, self.path)
