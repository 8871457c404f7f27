"""JSON-file key-value store for settings, statistics and bookmarks.

WHY: The reader remembers settings, reading statistics and bookmarks
between runs. A fixed-key store with load/save is all that is needed,
and the shell must keep working when the store is missing, unreadable
or holds something unexpected.

HOW: Each key maps to ``<directory>/<key>.json``. ``load()`` parses the
file and, when a JSON schema is given, validates it with jsonschema.
Any failure is logged and the caller's default is returned. ``save()``
writes to a temporary file and renames it over the target.

RULES:
- Keys are plain names without path separators
- load() never raises for a missing, corrupt or invalid file
- save() never raises for an I/O failure; it logs and returns False
- Writes are atomic per key (temp file + os.replace)
- The directory is created on first save
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import jsonschema

logger = logging.getLogger(__name__)


class JSONStore:
    """Key-value persistence backed by one JSON file per key."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError("Invalid store key: {!r}".format(key))
        return self.directory / "{}.json".format(key)

    def load(self, key: str, default: Any = None, schema: Optional[dict] = None) -> Any:
        """Return the stored value for ``key``, or ``default``.

        Args:
            key: Store key, e.g. ``"rsvp-reader-settings"``.
            default: Returned when nothing valid is stored.
            schema: Optional JSON schema the stored value must satisfy.
        """
        path = self.path_for(key)
        if not path.exists():
            return default

        try:
            with path.open("r", encoding="utf-8") as f:
                value = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load %s: %s", key, exc)
            return default

        if schema is not None:
            try:
                jsonschema.validate(instance=value, schema=schema)
            except jsonschema.ValidationError as exc:
                logger.error("Stored %s does not match its schema: %s", key, exc.message)
                return default

        return value

    def save(self, key: str, value: Any) -> bool:
        """Persist ``value`` under ``key``. Returns False on failure."""
        path = self.path_for(key)
        temp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=".{}-".format(key), suffix=".tmp", dir=str(self.directory)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(temp_name, path)
            temp_name = None
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", key, exc)
            return False
        finally:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)
        return True

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
