"""
Process lock: only one mirror run of a given kind per host.

The lock record is a file holding the owning PID. Its presence alone means a
run is in progress; nothing checks whether that PID is still alive. A process
killed with SIGKILL leaves the record behind and it must be cleared by hand
(``mirrorkeeper unlock``).
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from types import TracebackType

from mirrorkeeper.exceptions import LockError
from mirrorkeeper.utils.hashing import safe_basename
from mirrorkeeper.utils.logging import get_logger

logger = get_logger("mirrorkeeper.lock")


def lock_basename(key: str) -> str:
    """File name for the lock record identified by ``key``."""
    return f"{safe_basename(key)}.lock"


class ProcessLock:
    """
    Scoped lock record.

    Usage::

        with ProcessLock("HardlinkFileHandler"):
            ...  # the record is deleted on every exit path
    """

    def __init__(self, key: str, lock_dir: str | Path | None = None):
        if not key:
            raise ValueError("Lock key cannot be empty")
        self.key = key
        self.lock_dir = Path(lock_dir) if lock_dir else Path(tempfile.gettempdir())
        self.path = self.lock_dir / lock_basename(key)
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def exists(self) -> bool:
        return self.path.exists()

    def owner_pid(self) -> str | None:
        """PID written in the lock record, or None if there is no record."""
        try:
            return self.path.read_text().strip() or None
        except FileNotFoundError:
            return None

    def acquire(self) -> ProcessLock:
        """
        Create the lock record with the current PID.

        Raises:
            LockError: if the record already exists or cannot be written
        """
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        try:
            # O_EXCL makes check-and-create a single step
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            pid = self.owner_pid()
            raise LockError(
                f"Lock <{self.path}> exists (PID {pid or 'unknown'})! Aborting...",
                pid=pid,
                path=str(self.path),
            ) from None
        except OSError as e:
            raise LockError(f"Couldn't create lock <{self.path}>: {e}", path=str(self.path)) from e

        pid = str(os.getpid())
        with os.fdopen(fd, "w") as f:
            logger.debug(f"Writing PID {pid} to <{self.path}>")
            f.write(pid)
        self._held = True
        return self

    def release(self) -> None:
        """Delete the lock record if this instance holds it."""
        if not self._held:
            return
        logger.debug(f"Deleting lock <{self.path}>")
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Lock <{self.path}> was already removed")
        self._held = False

    def clear(self) -> bool:
        """
        Remove a stale lock record left by a killed run.

        Returns:
            True if a record was removed, False if there was none
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Cleared lock <{self.path}>")
        return True

    def __enter__(self) -> ProcessLock:
        return self.acquire()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
