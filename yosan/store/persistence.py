"""
JSON Snapshot Storage

DESIGN DECISION: The store is local-first. The host's filesystem is the
only durability layer, so we keep it simple:
1. The whole store is one JSON document
2. Writes go to a temp file and are swapped in with os.replace
3. Transient OS errors are retried with backoff

TRADEOFFS:
- Every write rewrites the whole file (fine for one person's budget)
- No journal; a crash between two writes loses only the last one
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from yosan.audit import get_logger
from yosan.store.interface import PersistenceError, SnapshotStorageInterface


class JsonSnapshotStorage(SnapshotStorageInterface):
    """Persists snapshots as a single JSON file."""

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()
        self._logger = get_logger("yosan.store.persistence")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[dict[str, Any]]:
        """Read the snapshot file, or None if it doesn't exist yet."""
        if not self._path.exists():
            return None
        try:
            raw = self._read_text()
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read snapshot {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Snapshot {self._path} is not a JSON object")
        self._logger.info("snapshot_loaded", path=str(self._path))
        return data

    def save(self, snapshot: dict[str, Any]) -> None:
        """Write the snapshot atomically."""
        try:
            payload = json.dumps(snapshot, ensure_ascii=False, indent=2, sort_keys=True)
            self._write_text(payload)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Could not write snapshot {self._path}: {e}") from e
        self._logger.debug("snapshot_saved", path=str(self._path), size=len(payload))

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _read_text(self) -> str:
        return self._path.read_text(encoding="utf-8")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_text(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class MemorySnapshotStorage(SnapshotStorageInterface):
    """
    Keeps the last snapshot in memory.

    Used in tests and for hosts that persist through another channel.
    """

    def __init__(self, snapshot: Optional[dict[str, Any]] = None):
        self._snapshot = json.loads(json.dumps(snapshot)) if snapshot is not None else None
        self.save_count = 0

    def load(self) -> Optional[dict[str, Any]]:
        if self._snapshot is None:
            return None
        return json.loads(json.dumps(self._snapshot))

    def save(self, snapshot: dict[str, Any]) -> None:
        # Round-trip through JSON so the copy matches what a file would hold
        self._snapshot = json.loads(json.dumps(snapshot))
        self.save_count += 1
