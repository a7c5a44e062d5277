"""Import provenance: remembers which source files were already processed.

A file is identified by a fingerprint of its name, byte size and
modification time. Fingerprints are kept as a JSON list under a single
store key, never expire, and are only removed by clear(). Two different
files with overlapping contents are not detected; that is the job of the
batch deduplicator.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from txndedup.provenance.store import ProvenanceStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "import_history"
LAST_IMPORT_KEY = "last_import_date"


@dataclass
class ImportStats:
    total_files: int
    last_import: str | None


def file_fingerprint(name: str, size: int, mtime: float | int) -> str:
    # 1700000000000 and 1700000000000.0 are the same timestamp
    if isinstance(mtime, float) and mtime.is_integer():
        mtime = int(mtime)
    return f"{name}-{size}-{mtime}"


class ImportTracker:
    """Membership checks over previously imported file fingerprints."""

    def __init__(self, store: ProvenanceStore):
        self.store = store

    def has_been_imported(self, name: str, size: int, mtime: float | int) -> bool:
        return file_fingerprint(name, size, mtime) in self._history()

    def mark_imported(self, name: str, size: int, mtime: float | int) -> None:
        """Record a file as imported. Marking the same file twice is a no-op
        for the history, but still refreshes the last-import timestamp."""
        fingerprint = file_fingerprint(name, size, mtime)
        history = self._history()
        if fingerprint not in history:
            history.append(fingerprint)
            self.store.set(HISTORY_KEY, json.dumps(history))
            logger.debug("Marked %s as imported", fingerprint)
        self.store.set(LAST_IMPORT_KEY, datetime.now(timezone.utc).isoformat())

    def clear(self) -> None:
        self.store.delete(HISTORY_KEY)
        self.store.delete(LAST_IMPORT_KEY)
        logger.info("Cleared import history")

    def stats(self) -> ImportStats:
        return ImportStats(
            total_files=len(self._history()),
            last_import=self.store.get(LAST_IMPORT_KEY),
        )

    # ── Filesystem helpers ────────────────────────────────

    def has_been_imported_path(self, path: Path) -> bool:
        return self.has_been_imported(*_stat_fingerprint_parts(path))

    def mark_imported_path(self, path: Path) -> None:
        self.mark_imported(*_stat_fingerprint_parts(path))

    def _history(self) -> list[str]:
        raw = self.store.get(HISTORY_KEY)
        if raw is None:
            return []
        try:
            history = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt import history in store: {e}") from e
        if not isinstance(history, list):
            raise ValueError(
                f"Corrupt import history in store: expected a list, got {type(history).__name__}"
            )
        return [str(h) for h in history]


def _stat_fingerprint_parts(path: Path) -> tuple[str, int, int]:
    """Name, size and mtime in whole milliseconds for a file on disk."""
    path = Path(path)
    stat = path.stat()
    return path.name, stat.st_size, int(stat.st_mtime * 1000)
