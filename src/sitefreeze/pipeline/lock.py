"""Run lock: one generation run per backend working directory.

The lock is a file next to the working directory (``site.lock`` for
``site/``), since ``initialize`` wipes the directory's contents.  It is
created atomically with ``O_CREAT | O_EXCL`` and holds the owner's pid.
A lock left by a crashed run is not broken automatically; delete the file
once no run is active.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Self

from sitefreeze._errors import LockError


def lock_path_for(working_dir: Path) -> Path:
    """Lock file guarding *working_dir*."""
    return working_dir.with_name(f"{working_dir.name}.lock")


class RunLock:
    """Exclusive lock file held for the duration of a run.

    Usage::

        with RunLock(lock_path_for(backend.working_dir)):
            ...

    """

    __slots__ = ("_held", "_path")

    def __init__(self, path: Path) -> None:
        self._path = path
        self._held = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Create the lock file.

        Raises:
            LockError: If the file already exists or cannot be created.

        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as exc:
            owner = _read_owner(self._path)
            msg = (
                f"Another run holds {self._path}{owner}; "
                "remove the file if no run is active"
            )
            raise LockError(msg) from exc
        except OSError as exc:
            msg = f"Cannot create lock file {self._path}: {exc}"
            raise LockError(msg) from exc
        with os.fdopen(fd, "w") as fh:
            fh.write(f"{os.getpid()}\n")
        self._held = True

    def release(self) -> None:
        """Remove the lock file if this instance holds it."""
        if self._held:
            self._path.unlink(missing_ok=True)
            self._held = False

    def __enter__(self) -> Self:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def _read_owner(path: Path) -> str:
    try:
        pid = path.read_text(encoding="utf-8").strip()
    except OSError:
        return ""
    return f" (pid {pid})" if pid else ""
