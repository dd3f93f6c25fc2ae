"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONTENT_DIR = Path("content")
DEFAULT_EXTENSION = ".md"


@dataclass(slots=True)
class AppConfig:
    content_dir: Path | None = None
    extension: str = DEFAULT_EXTENSION
    show_drafts: bool = True

    def __post_init__(self) -> None:
        if self.content_dir is None:
            self.content_dir = DEFAULT_CONTENT_DIR
        if not self.extension.startswith("."):
            self.extension = f".{self.extension}"

    def resolve_content_dir(self, base_dir: Path | None = None) -> Path:
        if self.content_dir is None:
            self.content_dir = DEFAULT_CONTENT_DIR
        if Path(self.content_dir).is_absolute() or base_dir is None:
            return Path(self.content_dir)
        return base_dir / self.content_dir
