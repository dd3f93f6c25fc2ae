"""Long-lived holder that swaps whole collections on reload."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from mdcollect.config import DEFAULT_EXTENSION
from mdcollect.index.indexer import CollectionSet, SectionMapper, load_collection
from mdcollect.ingestion.loader import section_from_path

LOGGER = logging.getLogger(__name__)


class ContentLibrary:
    """Serves the current ``CollectionSet`` of a content root.

    Readers take ``collection`` without locking; ``reload`` builds a complete
    new set and replaces the reference in a single assignment.
    """

    def __init__(
        self,
        root: Path,
        *,
        section_for: SectionMapper = section_from_path,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self.root = Path(root)
        self.section_for = section_for
        self.extension = extension
        self._reload_lock = threading.Lock()
        self._collection: CollectionSet | None = None
        self._generation = 0

    @property
    def collection(self) -> CollectionSet:
        current = self._collection
        if current is None:
            return self.reload()
        return current

    @property
    def generation(self) -> int:
        """Number of successful loads so far."""
        return self._generation

    def reload(self) -> CollectionSet:
        """Rebuild from disk; on failure the previous collection stays current."""
        with self._reload_lock:
            fresh = load_collection(self.root, section_for=self.section_for, extension=self.extension)
            self._collection = fresh
            self._generation += 1
            LOGGER.info("Loaded generation %d from %s", self._generation, self.root)
            return fresh
