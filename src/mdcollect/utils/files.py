"""Utility helpers for working with files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Set, Tuple

from mdcollect.errors import ContentIOError


def _relative_or_self(path: Path, root: Path) -> Path:
    if path == root:
        return root
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def iter_content_paths(root: Path, *, extension: str = ".md") -> Iterator[Path]:
    """Yield content files under ``root``, descending into directories.

    Symlinked directories are followed; a directory already visited (same
    device and inode) is not entered twice, which also breaks symlink loops.
    The extension match is case-sensitive. Any directory that cannot be
    listed aborts the walk with ``ContentIOError``.
    """
    root = Path(root)
    visited: Set[Tuple[int, int]] = set()

    def _raise(exc: OSError) -> None:
        failed = Path(exc.filename) if exc.filename else root
        raise ContentIOError(
            _relative_or_self(failed, root), f"cannot read directory: {exc.strerror or exc}"
        ) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=True):
        try:
            stat = os.stat(dirpath)
        except OSError as exc:
            _raise(exc)
        identity = (stat.st_dev, stat.st_ino)
        if identity in visited:
            dirnames[:] = []
            continue
        visited.add(identity)

        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.suffix != extension:
                continue
            # Dangling links still count as content so that reading them fails loudly.
            if path.exists() and not path.is_file():
                continue
            yield path


def read_bytes(path: Path, *, name: Path | None = None) -> bytes:
    """Read a whole file, reporting failures as ``ContentIOError``.

    ``name`` is the path reported in the error, defaulting to ``path``.
    """
    try:
        with path.open("rb") as handle:
            return handle.read()
    except OSError as exc:
        raise ContentIOError(name or path, f"cannot read file: {exc.strerror or exc}") from exc
