"""
Free-Time Store - JSON ledger of free-time sets keyed by user id.

File shape:
    {
        "<user_id>": [["2025-01-06T09:00:00+00:00", "2025-01-06T10:30:00+00:00"], ...],
        ...
    }

Locking:
- user_lock(user_id): exclusive flock on a per-user lock file. Callers hold
  it around load -> compute -> save so two reservations for the same user
  never interleave. Blocks across threads and processes.
- Whole-file writes take a store-wide flock and replace the file atomically,
  so writers for different users never clobber each other and readers never
  see a partial file.
"""

import fcntl
import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path

from studytime import paths
from studytime.contracts import check_free_time_set
from studytime.free_time.errors import InvalidIntervalError
from studytime.free_time.intervals import Interval

logger = logging.getLogger(__name__)


class FreeTimeStoreError(Exception):
    """Raised when the ledger file cannot be read or parsed."""

    pass


@contextmanager
def file_lock(lock_path: Path) -> Iterator[None]:
    """Exclusive flock on lock_path for the duration of the block."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    fd = open(lock_path, "a+")
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        yield
    finally:
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            fd.close()


def write_json_atomic(path: Path, data: dict) -> None:
    """Write data as JSON to a temp file beside path, then replace path with it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FreeTimeStore:
    """
    Persists each user's Free-Time Set.

    Usage:
        store = FreeTimeStore()
        with store.user_lock(user_id):
            free_time = store.load(user_id) or ()
            ...
            store.save(user_id, updated)
    """

    def __init__(self, path: str | Path | None = None, min_keep: timedelta | None = None):
        self.path = Path(path) if path else paths.free_time_file()
        self.lock_dir = self.path.parent / "locks"
        self.min_keep = min_keep

    # ------------------------------------------------------------------
    # Locks
    # ------------------------------------------------------------------

    def _user_lock_path(self, user_id: str) -> Path:
        # Hashed so arbitrary user ids cannot escape the lock directory
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:32]
        return self.lock_dir / f"user-{digest}.lock"

    @contextmanager
    def user_lock(self, user_id: str) -> Iterator[None]:
        """Hold the exclusive read-modify-write lock for one user's ledger."""
        with file_lock(self._user_lock_path(user_id)):
            logger.debug(f"Acquired free-time lock for user {user_id}")
            yield
        logger.debug(f"Released free-time lock for user {user_id}")

    def _file_lock(self):
        return file_lock(self.lock_dir / "ledger.lock")

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FreeTimeStoreError(f"Cannot read free-time ledger {self.path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FreeTimeStoreError(f"Corrupt free-time ledger {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise FreeTimeStoreError(f"Free-time ledger {self.path} must be a JSON object")
        return data

    def _write_all(self, data: dict) -> None:
        write_json_atomic(self.path, data)

    # ------------------------------------------------------------------
    # Ledger operations
    # ------------------------------------------------------------------

    def load(self, user_id: str) -> tuple[Interval, ...] | None:
        """
        Load a user's free-time set.

        Returns:
            The stored intervals, or None if the user has never been synced.

        Raises:
            FreeTimeStoreError: Unreadable file or malformed entry
            InvariantViolation: Entry breaks the Free-Time Set invariant
        """
        pairs = self._read_all().get(user_id)
        if pairs is None:
            return None
        if not isinstance(pairs, list):
            raise FreeTimeStoreError(f"Ledger entry for {user_id!r} must be a list of pairs")
        try:
            free_time = tuple(Interval.from_pair(p) for p in pairs)
        except (InvalidIntervalError, TypeError) as e:
            raise FreeTimeStoreError(f"Malformed ledger entry for {user_id!r}: {e}") from e
        check_free_time_set(free_time, self.min_keep)
        return free_time

    def save(self, user_id: str, free_time: Iterable[Interval]) -> None:
        """Overwrite a user's free-time set."""
        pairs = [iv.to_pair() for iv in free_time]
        with self._file_lock():
            data = self._read_all()
            data[user_id] = pairs
            self._write_all(data)
        logger.info(f"Saved {len(pairs)} free intervals for user {user_id}")

    def delete(self, user_id: str) -> bool:
        """Remove a user's ledger. Returns False if there was none."""
        with self._file_lock():
            data = self._read_all()
            if user_id not in data:
                return False
            del data[user_id]
            self._write_all(data)
        logger.info(f"Deleted free-time ledger for user {user_id}")
        return True

    def user_ids(self) -> list[str]:
        return sorted(self._read_all())
