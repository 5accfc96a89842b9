"""
JSON file persistence for ordered record lists.

Each file holds a single top-level JSON array. ``read`` never fails: a missing,
blank or corrupt file reads as an empty list. ``transaction`` is for
read-modify-write and refuses to hand out an empty list for a file it could not
parse, so a corrupt file is never overwritten. Writes replace the whole file.

Writers in the same process are serialized per path with ``transaction``, and
every write goes through a temp file plus ``os.replace`` so readers never see a
half-written file. Separate processes writing the same file still race and the
last write wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator

from storefront.errors import StorageError

logger = logging.getLogger(__name__)


class JsonRecordStore:
    """Reads and writes lists of JSON records keyed by file path."""

    def __init__(self):
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, path: str) -> threading.RLock:
        key = os.path.abspath(path)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def load(self, path: str) -> list:
        """Like ``read`` but raises ``StorageError`` when the file is unusable."""
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise StorageError(f"Could not read {os.path.basename(path)}") from exc
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Invalid JSON in {os.path.basename(path)}") from exc
        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON array in {os.path.basename(path)}")
        return data

    def read(self, path: str) -> list:
        try:
            return self.load(path)
        except StorageError as exc:
            logger.warning("%s (%s)", exc.message, exc.__cause__ or path)
            return []

    def write(self, path: str, records: list) -> bool:
        directory = os.path.dirname(os.path.abspath(path))
        with self._lock_for(path):
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                body = json.dumps(records, indent=2, ensure_ascii=False)
                fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(body)
                os.replace(tmp_path, path)
                tmp_path = None
                return True
            except (OSError, TypeError, ValueError) as exc:
                logger.warning("Could not write %s: %s", path, exc)
                return False
            finally:
                if tmp_path and os.path.exists(tmp_path):
                    os.remove(tmp_path)

    @contextmanager
    def transaction(self, path: str) -> Iterator[list]:
        """
        Hold the path lock for a read-modify-write cycle.

        Yields the current records; callers mutate the list and call ``write``
        before leaving the block. Raises ``StorageError`` if the file exists
        but is not a readable JSON array.
        """
        with self._lock_for(path):
            try:
                records = self.load(path)
            except StorageError:
                logger.error("Refusing to rewrite unreadable %s", path)
                raise
            yield records
