"""Error taxonomy for content loading, parsing and indexing.

Every error carries the path of the offending file so a consuming tool can
report the kind and location and refuse to publish.
"""

from __future__ import annotations

from pathlib import Path


class ContentError(Exception):
    """Base class for all content pipeline failures."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")

    @property
    def kind(self) -> str:
        return type(self).__name__


class ContentIOError(ContentError, OSError):
    """Content root or an individual file could not be read."""


class EncodingError(ContentError):
    """File bytes are not valid UTF-8."""


class MissingFrontMatterError(ContentError):
    """File does not start with a recognized front-matter delimiter."""


class MalformedFrontMatterError(ContentError):
    """Front matter is unterminated or its content cannot be decoded."""


class MetadataTypeError(ContentError):
    """A known front-matter key holds a value of the wrong type."""

    def __init__(self, path: Path | str, key: str, message: str) -> None:
        self.key = key
        super().__init__(path, message)


class RequiredFieldError(ContentError):
    """A required front-matter key is absent or empty."""

    def __init__(self, path: Path | str, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(path, message or f"required field '{key}' is missing or empty")


class DuplicatePathError(ContentError):
    """Two documents resolve to the same identity."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(path, "duplicate document path")


class DocumentNotFoundError(ContentError, KeyError):
    """Lookup of a path that is not part of the collection."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(path, "document not found")

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
