"""Exclusive lock files guarding guest-profile writes."""

from __future__ import annotations

import time
from pathlib import Path
from typing import IO

try:
    import fcntl  # Unix/Linux/macOS

    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

try:
    import msvcrt  # Windows

    HAS_MSVCRT = True
except ImportError:
    HAS_MSVCRT = False


class FileLock:
    """
    Exclusive lock on `<dir>/.<name>.lock` next to the guarded file.

    Usage:
        with FileLock(path, timeout=5.0):
            data = path.read_text()
            path.write_text(data)
    """

    def __init__(
        self,
        path: Path | str,
        *,
        timeout: float = 10.0,
        poll_interval: float = 0.01,
    ):
        self.path = Path(path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._handle: IO[str] | None = None
        self._lock_path = self.path.parent / f".{self.path.name}.lock"

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def _try_lock(self, handle: IO[str]) -> None:
        if HAS_FCNTL:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        else:
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock(self, handle: IO[str]) -> None:
        if HAS_FCNTL:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        else:
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)

    def acquire(self) -> None:
        """
        Block until the lock is held.

        Raises:
            TimeoutError: If the lock is not acquired within `timeout`
            RuntimeError: If the platform offers no file locking
        """
        if not HAS_FCNTL and not HAS_MSVCRT:
            raise RuntimeError("File locking not available on this platform.")

        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.timeout

        while True:
            handle = open(self._lock_path, "a+")
            try:
                self._try_lock(handle)
            except OSError:
                handle.close()
                if time.monotonic() >= deadline:
                    raise TimeoutError(
                        f"Could not acquire lock on {self.path} within {self.timeout}s"
                    ) from None
                time.sleep(self.poll_interval)
                continue
            self._handle = handle
            return

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            self._unlock(self._handle)
        finally:
            self._handle.close()
            self._handle = None


__all__ = ["FileLock"]
