"""Collection indexing pipeline."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, Tuple

from mdcollect.config import DEFAULT_EXTENSION
from mdcollect.errors import DocumentNotFoundError, DuplicatePathError
from mdcollect.ingestion.frontmatter import parse_document
from mdcollect.ingestion.loader import load_all, section_from_path
from mdcollect.models import DateValue, Document

LOGGER = logging.getLogger(__name__)

SectionMapper = Callable[[Path], str]
OrderingKey = Tuple[int, int, float, str]


def _timestamp(value: DateValue) -> float:
    """Place dates and datetimes on one UTC timeline."""
    if not isinstance(value, dt.datetime):
        value = dt.datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.timestamp()


def ordering_key(document: Document) -> OrderingKey:
    """Composite listing key: weight ascending, newest date first, undated last, then path."""
    date = document.metadata.date
    if date is None:
        return (document.metadata.weight, 1, 0.0, document.key)
    return (document.metadata.weight, 0, -_timestamp(date), document.key)


class CollectionSet:
    """Immutable, per-load index of documents grouped by section."""

    __slots__ = ("_documents", "_sections")

    def __init__(self, documents: Dict[str, Document], sections: Dict[str, Tuple[Document, ...]]) -> None:
        self._documents = documents
        self._sections = sections

    def get(self, path: Path | str) -> Document:
        key = Path(path).as_posix()
        try:
            return self._documents[key]
        except KeyError:
            raise DocumentNotFoundError(path) from None

    def list(self, section: str) -> Tuple[Document, ...]:
        """Documents of ``section`` in listing order (empty for unknown sections)."""
        return self._sections.get(section, ())

    def sections(self) -> FrozenSet[str]:
        return frozenset(self._sections)

    def drafts(self) -> Tuple[Document, ...]:
        return tuple(document for document in self if document.is_draft)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return Path(path).as_posix() in self._documents

    def __iter__(self) -> Iterator[Document]:
        for section in sorted(self._sections):
            yield from self._sections[section]

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"CollectionSet(documents={len(self)}, sections={len(self._sections)})"


def build(documents: Iterable[Document]) -> CollectionSet:
    """Group documents by section and sort each section by ``ordering_key``.

    Raises ``DuplicatePathError`` if two documents share a path.
    """
    by_path: Dict[str, Document] = {}
    grouped: Dict[str, list[Document]] = {}
    for document in documents:
        if document.key in by_path:
            raise DuplicatePathError(document.path)
        by_path[document.key] = document
        grouped.setdefault(document.section, []).append(document)

    sections = {name: tuple(sorted(members, key=ordering_key)) for name, members in grouped.items()}
    LOGGER.info("Indexed %d documents across %d sections", len(by_path), len(sections))
    return CollectionSet(by_path, sections)


def iter_documents(
    root: Path,
    *,
    section_for: SectionMapper = section_from_path,
    extension: str = DEFAULT_EXTENSION,
) -> Iterator[Document]:
    """Parse every content file under ``root``; the first failure stops the walk."""
    for path, raw in load_all(root, extension=extension):
        yield parse_document(path, section_for(path), raw)


def load_collection(
    root: Path,
    *,
    section_for: SectionMapper = section_from_path,
    extension: str = DEFAULT_EXTENSION,
) -> CollectionSet:
    """Load, parse and index a content directory in one pass."""
    LOGGER.info("Loading content from %s", root)
    return build(iter_documents(root, section_for=section_for, extension=extension))
