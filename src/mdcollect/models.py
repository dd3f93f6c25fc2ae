"""Core mdcollect data models."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple, Union

DateValue = Union[dt.date, dt.datetime]


class FrontMatterStyle(Enum):
    """Supported front-matter block styles, keyed by their delimiter line."""

    TOML = "+++"
    YAML = "---"

    @property
    def delimiter(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Metadata:
    """Typed front-matter record of a document."""

    title: str
    description: str = ""
    date: DateValue | None = None
    weight: int = 0
    draft: bool = False
    author: str | None = None
    keywords: Tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.extra, MappingProxyType):
            object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))
        if not isinstance(self.keywords, tuple):
            object.__setattr__(self, "keywords", tuple(self.keywords))

    def to_dict(self) -> Dict[str, Any]:
        """Return known fields that differ from their defaults, then passthrough keys."""
        data: Dict[str, Any] = {"title": self.title}
        if self.description:
            data["description"] = self.description
        if self.date is not None:
            data["date"] = self.date
        if self.weight:
            data["weight"] = self.weight
        if self.draft:
            data["draft"] = True
        if self.author is not None:
            data["author"] = self.author
        if self.keywords:
            data["keywords"] = list(self.keywords)
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data


@dataclass(frozen=True, slots=True)
class Document:
    """One parsed content file."""

    path: Path
    section: str
    metadata: Metadata
    body: str
    style: FrontMatterStyle = FrontMatterStyle.TOML

    @property
    def key(self) -> str:
        """Identity of the document inside a collection."""
        return self.path.as_posix()

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def is_draft(self) -> bool:
        return self.metadata.draft
