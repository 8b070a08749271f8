"""Key-value stores for persisted progress records.

The store only moves opaque JSON text. Record schemas, defaults and merge
rules live in ProgressRepository.
"""

import os
import tempfile
from pathlib import Path
from typing import Protocol

from loguru import logger

from breathwork.core.errors import ProgressStoreError


class ProgressStore(Protocol):
    def load(self, key: str) -> str | None:
        """Return the stored payload for `key`, or None when absent."""
        ...

    def save(self, key: str, payload: str) -> None:
        """Store `payload` under `key`. Raises ProgressStoreError on failure."""
        ...


class InMemoryStore:
    """Process-local store, used for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.records: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.records.get(key)

    def save(self, key: str, payload: str) -> None:
        self.records[key] = payload


class JsonFileStore:
    """Stores each record as `<key>.json` inside one directory.

    Writes go to a temporary file that replaces the record atomically, so a
    crash mid-write never leaves a truncated record behind.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ProgressStoreError(key, e) from e

    def save(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ProgressStoreError(key, e) from e
        logger.bind(key=key, path=str(path)).debug("Record saved")
