"""File locking and atomic replacement for snapshot and export files."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, TextIO

import portalocker


def lock_path_for(path: Path) -> Path:
    """Sidecar lock file used for ``path``."""
    return path.with_suffix(path.suffix + ".lock")


@contextmanager
def file_lock(path: Path, timeout: float = 10.0) -> Generator[None, None, None]:
    """Hold an exclusive lock guarding ``path``.

    Raises:
        portalocker.LockException: If the lock is not acquired in time.
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


@contextmanager
def atomic_write(path: Path, encoding: str = "utf-8") -> Generator[TextIO, None, None]:
    """Write text to ``path`` through a temp file that replaces it on success.

    Readers see either the old content or the new, never a partial file.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(tmp_path, "w", encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


@contextmanager
def locked_atomic_write(path: Path, encoding: str = "utf-8", timeout: float = 10.0) -> Generator[TextIO, None, None]:
    """``atomic_write`` under ``file_lock``."""
    with file_lock(path, timeout=timeout):
        with atomic_write(path, encoding=encoding) as f:
            yield f
