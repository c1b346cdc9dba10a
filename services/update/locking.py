"""Single-instance guard built on an advisory ``flock`` lock file."""

from __future__ import annotations

import fcntl
import logging
import os
import time
from pathlib import Path

from services.update.constants import LOCK_STALE_SECONDS
from services.update.models import InstanceLockedError, PreflightError


_LOGGER = logging.getLogger(__name__)

_ACQUIRE_ATTEMPTS = 2


class InstanceLock:
    """Exclusive, non-blocking lock held for the lifetime of one run.

    A lock file older than ``stale_after`` seconds is assumed to belong to a
    crashed run and is removed before acquisition.  The owning PID is written
    into the file, which also refreshes its modification time.
    """

    def __init__(self, path: Path, *, stale_after: float = LOCK_STALE_SECONDS) -> None:
        self._path = Path(path)
        self._stale_after = stale_after
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        if self._fd is not None:
            return
        self._remove_if_stale()

        for _ in range(_ACQUIRE_ATTEMPTS):
            fd = self._open_and_lock()
            if self._is_current_file(fd):
                break
            # The previous holder unlinked the path between our open and flock.
            os.close(fd)
            _LOGGER.debug("Lock file %s was replaced while locking; retrying", self._path)
        else:
            raise InstanceLockedError("Another instance is already running")

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode("ascii"))
        self._fd = fd
        _LOGGER.debug("Acquired instance lock %s", self._path)

    def release(self) -> None:
        fd = self._fd
        if fd is None:
            return
        self._fd = None
        # Unlink before unlocking; a waiter holding the old inode fails the identity check.
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            _LOGGER.debug("Unable to remove lock file %s", self._path, exc_info=True)
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError:
            _LOGGER.debug("Unable to unlock %s", self._path, exc_info=True)
        finally:
            os.close(fd)
        _LOGGER.debug("Released instance lock %s", self._path)

    def _open_and_lock(self) -> int:
        try:
            fd = os.open(self._path, os.O_CREAT | os.O_RDWR, 0o644)
        except OSError as exc:
            raise PreflightError(f"Failed to create lock file: {self._path}") from exc

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            os.close(fd)
            raise InstanceLockedError("Another instance is already running") from exc
        return fd

    def _is_current_file(self, fd: int) -> bool:
        try:
            on_disk = os.stat(self._path)
        except FileNotFoundError:
            return False
        held = os.fstat(fd)
        return (held.st_dev, held.st_ino) == (on_disk.st_dev, on_disk.st_ino)

    def _remove_if_stale(self) -> None:
        try:
            modified = self._path.stat().st_mtime
        except FileNotFoundError:
            return
        age = time.time() - modified
        if age <= self._stale_after:
            return
        _LOGGER.warning("Removing stale lock file %s (%.0f seconds old)", self._path, age)
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            _LOGGER.warning("Unable to remove stale lock file %s: %s", self._path, exc)

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
