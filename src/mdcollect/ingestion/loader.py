"""Discovery of content files under a root directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Tuple

from mdcollect.config import DEFAULT_EXTENSION
from mdcollect.errors import ContentIOError
from mdcollect.utils.files import iter_content_paths, read_bytes

LOGGER = logging.getLogger(__name__)


def section_from_path(path: Path) -> str:
    """Default directory-to-section mapping.

    The section is the parent directory of ``path`` (relative to the content
    root) in POSIX form, or ``""`` for files at the root.
    """
    parent = Path(path).parent.as_posix()
    return "" if parent == "." else parent


def load_all(root: Path, *, extension: str = DEFAULT_EXTENSION) -> Iterator[Tuple[Path, bytes]]:
    """Lazily yield ``(relative_path, raw_bytes)`` for each content file.

    Every call walks the filesystem again. The order is not part of the
    contract. Any unreadable directory or file raises ``ContentIOError``.
    """
    root = Path(root)
    if not root.exists():
        raise ContentIOError(root, "content root does not exist")
    if not root.is_dir():
        raise ContentIOError(root, "content root is not a directory")

    found = 0
    for path in iter_content_paths(root, extension=extension):
        relative = path.relative_to(root)
        LOGGER.debug("Loading %s", relative)
        yield relative, read_bytes(path, name=relative)
        found += 1

    if not found:
        LOGGER.warning("No %s files found under %s", extension, root)
