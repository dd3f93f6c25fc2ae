"""Front-matter splitting, decoding and validation.

A content file starts with a delimited metadata block followed by an opaque
body. The block style is chosen once per file from its first line:

    +++                      ---
    title = "Ownership"      title: Ownership
    weight = 2               weight: 2
    +++                      ---
    Body text...             Body text...

TOML blocks are decoded with ``tomllib`` and YAML blocks with PyYAML's safe
loader. Both reject duplicate keys.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Tuple

import yaml

from mdcollect.errors import (
    EncodingError,
    MalformedFrontMatterError,
    MetadataTypeError,
    MissingFrontMatterError,
    RequiredFieldError,
)
from mdcollect.models import Document, FrontMatterStyle, Metadata

LOGGER = logging.getLogger(__name__)

KNOWN_KEYS = ("title", "description", "date", "weight", "draft", "author", "keywords")

_BOM = "\ufeff"
_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


class _UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that refuses mappings with repeated keys."""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, _ in node.value:
                if key_node.tag == "tag:yaml.org,2002:merge":
                    continue
                key = self.construct_object(key_node, deep=deep)
                if isinstance(key, str) and key in seen:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key {key!r}",
                        key_node.start_mark,
                    )
                if isinstance(key, str):
                    seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _iter_lines(text: str) -> Iterator[Tuple[str, int, int]]:
    """Yield ``(line, start, end)`` for each line, terminator stripped from ``line``."""
    start = 0
    length = len(text)
    while start < length:
        newline = text.find("\n", start)
        end = length if newline == -1 else newline + 1
        yield text[start:end].rstrip("\r\n"), start, end
        start = end


def _is_delimiter(line: str, style: FrontMatterStyle) -> bool:
    return line.rstrip() == style.delimiter


def detect_style(first_line: str) -> FrontMatterStyle | None:
    """Resolve the block style from the first line of a file."""
    for style in FrontMatterStyle:
        if _is_delimiter(first_line, style):
            return style
    return None


def decode_text(raw: bytes, path: Path) -> str:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(path, f"invalid UTF-8 at byte {exc.start}") from exc
    return text[1:] if text.startswith(_BOM) else text


def split_front_matter(text: str, path: Path) -> Tuple[FrontMatterStyle, str, str]:
    """Split text into ``(style, block, body)``.

    The body is everything after the closing delimiter line, verbatim.
    """
    lines = _iter_lines(text)
    first = next(lines, None)
    style = detect_style(first[0]) if first is not None else None
    if style is None:
        raise MissingFrontMatterError(path, "file does not start with '+++' or '---'")

    block_start = first[2]
    for line, start, end in lines:
        if _is_delimiter(line, style):
            return style, text[block_start:start], text[end:]

    raise MalformedFrontMatterError(path, f"no closing '{style.delimiter}' delimiter")


def decode_block(block: str, style: FrontMatterStyle, path: Path) -> Dict[str, Any]:
    """Decode the structured content of a front-matter block into a mapping."""
    if style is FrontMatterStyle.TOML:
        try:
            return tomllib.loads(block)
        except tomllib.TOMLDecodeError as exc:
            raise MalformedFrontMatterError(path, f"invalid TOML front matter: {exc}") from exc

    try:
        data = yaml.load(block, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise MalformedFrontMatterError(path, f"invalid YAML front matter: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFrontMatterError(path, "YAML front matter is not a mapping")
    return {str(key): value for key, value in data.items()}


def _expect_str(data: Mapping[str, Any], key: str, path: Path) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MetadataTypeError(path, key, f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _coerce_date(value: Any, path: Path) -> dt.date | dt.datetime | None:
    if value is None or isinstance(value, (dt.date, dt.datetime)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return dt.datetime.fromisoformat(text)
        except ValueError as exc:
            raise MetadataTypeError(path, "date", f"'date' is not an ISO-8601 date: {value!r}") from exc
    raise MetadataTypeError(path, "date", f"'date' must be a date, got {type(value).__name__}")


def build_metadata(data: Mapping[str, Any], path: Path) -> Metadata:
    """Validate decoded front matter and apply defaults.

    A key whose value is null (possible in YAML) counts as absent.
    """
    title = _expect_str(data, "title", path)
    if title is None or not title.strip():
        raise RequiredFieldError(path, "title")

    weight = data.get("weight")
    if weight is None:
        weight = 0
    elif isinstance(weight, bool) or not isinstance(weight, int):
        raise MetadataTypeError(path, "weight", f"'weight' must be an integer, got {weight!r}")

    draft = data.get("draft")
    if draft is None:
        draft = False
    elif not isinstance(draft, bool):
        raise MetadataTypeError(path, "draft", f"'draft' must be a boolean, got {draft!r}")

    keywords = data.get("keywords")
    if keywords is None:
        keywords = []
    elif not isinstance(keywords, list) or not all(isinstance(item, str) for item in keywords):
        raise MetadataTypeError(path, "keywords", "'keywords' must be an array of strings")

    return Metadata(
        title=title,
        description=_expect_str(data, "description", path) or "",
        date=_coerce_date(data.get("date"), path),
        weight=weight,
        draft=draft,
        author=_expect_str(data, "author", path),
        keywords=tuple(keywords),
        extra={key: value for key, value in data.items() if key not in KNOWN_KEYS},
    )


def parse(raw: bytes, path: Path) -> Tuple[Metadata, str, FrontMatterStyle]:
    """Parse one raw file into ``(metadata, body, style)``.

    Pure transform: every failure is raised with ``path`` attached.
    """
    path = Path(path)
    text = decode_text(raw, path)
    style, block, body = split_front_matter(text, path)
    metadata = build_metadata(decode_block(block, style, path), path)
    LOGGER.debug("Parsed %s (%s front matter)", path, style.name)
    return metadata, body, style


def parse_document(path: Path, section: str, raw: bytes) -> Document:
    metadata, body, style = parse(raw, path)
    return Document(path=Path(path), section=section, metadata=metadata, body=body, style=style)


def _toml_string(text: str) -> str:
    # JSON escapes every control character TOML forbids except DEL.
    return json.dumps(text, ensure_ascii=False).replace("\x7f", "\\u007f")


def _toml_key(key: str) -> str:
    return key if _BARE_KEY.match(key) else _toml_string(key)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _toml_string(value)
    if isinstance(value, (dt.date, dt.datetime, dt.time)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        items = ", ".join(f"{_toml_key(str(k))} = {_toml_value(v)}" for k, v in value.items())
        return "{ " + items + " }" if items else "{}"
    raise TypeError(f"Cannot express {type(value).__name__} in TOML front matter")


def dump_front_matter(metadata: Metadata, style: FrontMatterStyle = FrontMatterStyle.TOML) -> str:
    """Render metadata as a complete delimited block, closing newline included."""
    data = metadata.to_dict()
    if style is FrontMatterStyle.TOML:
        content = "".join(f"{_toml_key(key)} = {_toml_value(value)}\n" for key, value in data.items())
    else:
        content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return f"{style.delimiter}\n{content}{style.delimiter}\n"


def render_document(metadata: Metadata, body: str, style: FrontMatterStyle = FrontMatterStyle.TOML) -> str:
    return dump_front_matter(metadata, style) + body
