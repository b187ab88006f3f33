"""Snapshot File — JSON persistence for the in-memory driver.

Invariants:
    - One JSON document per file: {database: {collection: {id: record}}}
    - save() rewrites the file synchronously before returning (no write-behind)
    - Writes are atomic: temp file in the same directory, then os.replace
    - A missing or empty file loads as empty; a corrupt file is a StorageFailureError

Design Decisions:
    - Shared per path via DriverContext so collections in one file never clobber
      each other's sections
    - Whole-file rewrite on every mutation: meant for small datasets and demos,
      not for large collections
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from geck.core.domain_types import Record
from geck.core.errors import StorageFailureError

logger = logging.getLogger(__name__)


class SnapshotFile:
    """Synchronous JSON snapshot shared by every memory driver using one path."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, dict[str, dict[str, Record]]] = self._read()

    def load(self, database: str, collection: str) -> dict[str, Record]:
        """Records of one collection, keyed by id (a copy)."""
        section = self._data.get(database, {}).get(collection, {})
        return {key: dict(record) for key, record in section.items()}

    def save(self, database: str, collection: str, records: dict[str, Record]) -> None:
        """Replace one collection section and rewrite the file.

        On a failed write the previous section is restored before re-raising.
        """
        sections = self._data.setdefault(database, {})
        previous = sections.get(collection)
        sections[collection] = records
        try:
            self._write()
        except StorageFailureError:
            if previous is None:
                sections.pop(collection, None)
            else:
                sections[collection] = previous
            raise

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            contents = self.path.read_text(encoding="utf-8")
            return json.loads(contents) if contents.strip() else {}
        except (OSError, ValueError) as e:
            logger.error(f"Snapshot load failed for {self.path}: {e}")
            raise StorageFailureError.from_exception(e, "load") from e

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(self._data, tmp, ensure_ascii=False, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            logger.error(f"Snapshot write failed for {self.path}: {e}")
            raise StorageFailureError.from_exception(e, "persist") from e
