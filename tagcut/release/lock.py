"""Per-repository lock serialising release attempts on one machine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from tagcut.core.result import Err, Ok, Result

LOCK_FILE_NAME = "tagcut.lock"


@dataclass(frozen=True, slots=True)
class LockError:
    path: Path
    message: str


class ReleaseLock:
    """Exclusive lock file, created with O_EXCL and removed on release.

    Usage:
        lock = ReleaseLock(git_dir / LOCK_FILE_NAME)
        acquired = lock.acquire()
        if isinstance(acquired, Ok):
            try:
                ...
            finally:
                lock.release()
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> Result[None, LockError]:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return Err(
                LockError(
                    self.path,
                    f"another release holds {self.path} (remove it if no release is running)",
                )
            )
        except OSError as e:
            return Err(LockError(self.path, f"cannot create lock: {e}"))

        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{os.getpid()}\n")
        self._held = True
        return Ok(None)

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        self.path.unlink(missing_ok=True)
