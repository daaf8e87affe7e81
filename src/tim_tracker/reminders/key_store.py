# src/tim_tracker/reminders/key_store.py

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from .reminder_models import ReminderKey, parse_key

logger = logging.getLogger(__name__)


class ReminderKeyStore:
    """
    Set of reminder keys that must not fire again (fired or dismissed).

    Optionally backed by a flat text file (one key per line) so dedup
    survives a restart. With path=None the store is memory-only.

    Thread-safety:
    - every set operation takes one lock
    - save() holds a separate lock from snapshot to rename, so writers never interleave
    - add() is a single add-if-absent step; its result decides "first time seen"

    I/O errors are logged and never raised: the in-memory set stays authoritative.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._keys: set[ReminderKey] = set()
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()

    @property
    def path(self) -> Path | None:
        return self._path

    # ---- set operations ----

    def add(self, key: ReminderKey) -> bool:
        """Add key; True only for the caller that inserted it."""
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def discard(self, key: ReminderKey) -> bool:
        with self._lock:
            if key not in self._keys:
                return False
            self._keys.remove(key)
            return True

    def snapshot(self) -> set[ReminderKey]:
        with self._lock:
            return set(self._keys)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    # ---- persistence ----

    def load(self) -> int:
        """
        Merge keys from the backing file into memory.

        A missing file means "no prior history". Blank and malformed lines are skipped.
        Returns the number of keys read from disk.
        """
        if self._path is None or not self._path.exists():
            return 0

        try:
            lines = self._path.read_text("utf-8").splitlines()
        except OSError:
            logger.exception("Failed to load reminder keys from %s", self._path)
            return 0

        loaded: set[ReminderKey] = set()
        for line in lines:
            key = line.strip()
            if not key:
                continue
            if parse_key(key) is None:
                logger.debug("Skipping malformed reminder key line: %r", line)
                continue
            loaded.add(key)

        with self._lock:
            self._keys.update(loaded)
        logger.info("Loaded %d reminder keys from %s", len(loaded), self._path)
        return len(loaded)

    def save(self) -> bool:
        """Write the current set to disk. Returns False (after logging) on failure."""
        if self._path is None:
            return False

        # Snapshot and replace under one lock so a later save never loses to an older one.
        with self._save_lock:
            keys = sorted(self.snapshot())
            tmp_name: str | None = None
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self._path.parent,
                    prefix=self._path.name + ".",
                    suffix=".tmp",
                    delete=False,
                ) as fh:
                    tmp_name = fh.name
                    fh.write("".join(f"{k}\n" for k in keys))
                os.replace(tmp_name, self._path)
            except OSError:
                logger.exception("Failed to save reminder keys to %s", self._path)
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)
                return False

        logger.debug("Saved %d reminder keys to %s", len(keys), self._path)
        return True
