"""Filesystem helpers for writing decoded artefacts atomically."""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Callable, IO

__all__ = ["ensure_dir", "write_bytes", "write_json"]


def _ensure_parent(path: str) -> str:
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    return directory


def _atomic_write(path: str | os.PathLike[str], writer: Callable[[IO[Any]], None], mode: str) -> None:
    target = os.fspath(path)
    directory = _ensure_parent(target)
    fd, temp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".partial", dir=directory)
    try:
        encoding = None if "b" in mode else "utf-8"
        with os.fdopen(fd, mode, encoding=encoding) as handle:
            writer(handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except Exception:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise


def ensure_dir(path: str | os.PathLike[str]) -> str:
    """Create ``path`` if needed and return it as a string."""

    fs_path = os.fspath(path)
    os.makedirs(fs_path, exist_ok=True)
    return fs_path


def write_json(path: str | os.PathLike[str], obj: Any, *, sort_keys: bool = False) -> None:
    """Serialise ``obj`` as pretty JSON at ``path``."""

    def _writer(handle: IO[str]) -> None:
        json.dump(obj, handle, ensure_ascii=False, indent=2, sort_keys=sort_keys)
        handle.write("\n")

    _atomic_write(path, _writer, "w")


def write_bytes(path: str | os.PathLike[str], data: bytes) -> None:
    """Write ``data`` to ``path`` without leaving partial files behind."""

    _atomic_write(path, lambda handle: handle.write(data), "wb")
