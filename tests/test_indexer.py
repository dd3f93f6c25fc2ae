"""Tests for the collection indexer."""

from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from typing import Iterable, Tuple
from unittest.mock import patch

import pytest

from mdcollect.errors import (
    ContentIOError,
    DocumentNotFoundError,
    DuplicatePathError,
    MissingFrontMatterError,
    RequiredFieldError,
)
from mdcollect.index.indexer import CollectionSet, build, load_collection, ordering_key
from mdcollect.ingestion.frontmatter import parse_document
from mdcollect.models import Document, Metadata
from mdcollect.utils.files import read_bytes


def _doc(path: str, section: str = "day1", **fields) -> Document:
    fields.setdefault("title", path)
    return Document(path=Path(path), section=section, metadata=Metadata(**fields), body="")


def _from_bytes(entries: Iterable[Tuple[str, str, bytes]]) -> CollectionSet:
    """Build directly from (path, section, bytes), bypassing the loader."""
    return build(parse_document(Path(path), section, raw) for path, section, raw in entries)


def _keys(documents: Iterable[Document]) -> list[str]:
    return [document.key for document in documents]


def _write(root: Path, relative: str, text: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")


class TestOrdering:
    """Test the composite listing order."""

    def test_lower_weight_first(self) -> None:
        collection = _from_bytes(
            [
                ("day1/b.md", "day1", b'+++\ntitle = "B"\nweight = 2\n+++\n'),
                ("day1/a.md", "day1", b'+++\ntitle = "A"\nweight = 1\n+++\n'),
            ]
        )

        assert _keys(collection.list("day1")) == ["day1/a.md", "day1/b.md"]

    def test_same_weight_newest_date_first(self) -> None:
        collection = _from_bytes(
            [
                ("day1/old.md", "day1", b'+++\ntitle = "Old"\ndate = 2025-08-01\n+++\n'),
                ("day1/new.md", "day1", b'+++\ntitle = "New"\ndate = 2025-08-13\n+++\n'),
            ]
        )

        assert _keys(collection.list("day1")) == ["day1/new.md", "day1/old.md"]

    def test_dated_before_undated(self) -> None:
        collection = _from_bytes(
            [
                ("day1/a.md", "day1", b'+++\ntitle = "Undated"\n+++\n'),
                ("day1/z.md", "day1", b'+++\ntitle = "Dated"\ndate = 2020-01-01\n+++\n'),
            ]
        )

        assert _keys(collection.list("day1")) == ["day1/z.md", "day1/a.md"]

    def test_weight_dominates_date(self) -> None:
        documents = [
            _doc("day1/heavy.md", weight=5, date=dt.date(2025, 12, 31)),
            _doc("day1/light.md", weight=1),
        ]

        assert _keys(build(documents).list("day1")) == ["day1/light.md", "day1/heavy.md"]

    def test_path_breaks_remaining_ties(self) -> None:
        documents = [_doc("day1/c.md"), _doc("day1/a.md"), _doc("day1/b.md")]

        assert _keys(build(documents).list("day1")) == ["day1/a.md", "day1/b.md", "day1/c.md"]

    def test_negative_weight_sorts_first(self) -> None:
        documents = [_doc("day1/a.md"), _doc("day1/b.md", weight=-1)]

        assert _keys(build(documents).list("day1")) == ["day1/b.md", "day1/a.md"]

    def test_dates_and_datetimes_share_a_timeline(self) -> None:
        documents = [
            _doc("day1/date.md", date=dt.date(2025, 8, 2)),
            _doc("day1/morning.md", date=dt.datetime(2025, 8, 1, 9, 0)),
            _doc(
                "day1/aware.md",
                date=dt.datetime(2025, 8, 2, 12, 0, tzinfo=dt.timezone(dt.timedelta(hours=2))),
            ),
        ]

        assert _keys(build(documents).list("day1")) == [
            "day1/aware.md",
            "day1/date.md",
            "day1/morning.md",
        ]

    def test_total_order(self) -> None:
        """No two distinct documents share an ordering key."""
        documents = [
            _doc("day1/a.md", weight=1, date=dt.date(2025, 1, 1)),
            _doc("day1/b.md", weight=1, date=dt.date(2025, 1, 1)),
            _doc("day1/c.md", weight=1),
            _doc("day1/d.md", weight=1),
        ]

        keys = [ordering_key(document) for document in documents]

        assert len(set(keys)) == len(keys)

    def test_drafts_are_indexed_like_any_document(self) -> None:
        documents = [_doc("day1/b.md"), _doc("day1/a.md", draft=True)]

        collection = build(documents)

        assert _keys(collection.list("day1")) == ["day1/a.md", "day1/b.md"]
        assert _keys(collection.drafts()) == ["day1/a.md"]


class TestBuild:
    """Test grouping, lookup and failure behaviour of build."""

    def test_groups_by_section(self) -> None:
        collection = build([_doc("day1/a.md"), _doc("day2/a.md", section="day2")])

        assert collection.sections() == frozenset({"day1", "day2"})
        assert _keys(collection.list("day2")) == ["day2/a.md"]

    def test_unknown_section_is_empty(self) -> None:
        assert build([_doc("day1/a.md")]).list("day9") == ()

    def test_list_is_reiterable(self) -> None:
        listing = build([_doc("day1/a.md"), _doc("day1/b.md")]).list("day1")

        assert list(listing) == list(listing)

    def test_get(self) -> None:
        document = _doc("day1/a.md")
        collection = build([document])

        assert collection.get("day1/a.md") is document
        assert collection.get(Path("day1") / "a.md") is document

    def test_get_missing(self) -> None:
        collection = build([_doc("day1/a.md")])

        with pytest.raises(DocumentNotFoundError) as excinfo:
            collection.get("day1/zzz.md")

        assert isinstance(excinfo.value, KeyError)
        assert "day1/zzz.md" in str(excinfo.value)

    def test_contains_len_iter(self) -> None:
        collection = build([_doc("b/x.md", section="b"), _doc("a/y.md", section="a")])

        assert "a/y.md" in collection
        assert "a/none.md" not in collection
        assert 42 not in collection
        assert len(collection) == 2
        assert _keys(collection) == ["a/y.md", "b/x.md"]

    def test_empty_input(self) -> None:
        collection = build([])

        assert len(collection) == 0
        assert collection.sections() == frozenset()

    @pytest.mark.parametrize("reverse", [False, True])
    def test_duplicate_path(self, reverse: bool) -> None:
        """Should fail regardless of input order."""
        documents = [_doc("day1/a.md", title="One"), _doc("day1/a.md", title="Two")]
        if reverse:
            documents.reverse()

        with pytest.raises(DuplicatePathError) as excinfo:
            build(documents)

        assert excinfo.value.path == Path("day1/a.md")

    def test_duplicate_across_sections(self) -> None:
        with pytest.raises(DuplicatePathError):
            build([_doc("shared.md", section="x"), _doc("shared.md", section="y")])

    def test_build_is_idempotent(self) -> None:
        entries = [
            ("day1/a.md", "day1", b'+++\ntitle = "A"\nweight = 2\n+++\nA\n'),
            ("day1/b.md", "day1", b'+++\ntitle = "B"\ndate = 2025-08-01\n+++\nB\n'),
            ("day2/c.md", "day2", b'+++\ntitle = "C"\n+++\nC\n'),
        ]

        first = _from_bytes(entries)
        second = _from_bytes(reversed(entries))

        assert list(first) == list(second)


class TestLoadCollection:
    """Test the full load, parse and index pass over a directory."""

    def test_loads_directory(self, tmp_path: Path) -> None:
        _write(tmp_path, "day1/intro.md", '+++\ntitle = "Intro"\nweight = 1\n+++\nHello\n')
        _write(tmp_path, "day1/ownership.md", '+++\ntitle = "Ownership"\nweight = 2\n+++\n')
        _write(tmp_path, "day2/traits.md", '---\ntitle: Traits\n---\n')
        _write(tmp_path, "day2/logo.svg", "<svg/>")

        collection = load_collection(tmp_path)

        assert collection.sections() == frozenset({"day1", "day2"})
        assert _keys(collection.list("day1")) == ["day1/intro.md", "day1/ownership.md"]
        assert collection.get("day1/intro.md").body == "Hello\n"

    def test_custom_section_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path, "part1/day1/a.md", '+++\ntitle = "A"\n+++\n')
        _write(tmp_path, "part1/day2/b.md", '+++\ntitle = "B"\n+++\n')

        collection = load_collection(tmp_path, section_for=lambda path: path.parts[0])

        assert collection.sections() == frozenset({"part1"})
        assert len(collection.list("part1")) == 2

    def test_one_bad_file_fails_the_whole_load(self, tmp_path: Path) -> None:
        _write(tmp_path, "day1/a.md", '+++\ntitle = "A"\n+++\n')
        _write(tmp_path, "day1/broken.md", "No front matter here\n")
        _write(tmp_path, "day1/c.md", '+++\ntitle = "C"\n+++\n')

        with pytest.raises(MissingFrontMatterError) as excinfo:
            load_collection(tmp_path)

        assert excinfo.value.path == Path("day1/broken.md")

    def test_missing_title_fails_the_whole_load(self, tmp_path: Path) -> None:
        _write(tmp_path, "a.md", '+++\ntitle = "A"\n+++\n')
        _write(tmp_path, "b.md", "+++\nweight = 1\n+++\n")

        with pytest.raises(RequiredFieldError):
            load_collection(tmp_path)

    def test_reload_is_idempotent(self, tmp_path: Path) -> None:
        _write(tmp_path, "day1/a.md", '+++\ntitle = "A"\ndate = 2025-08-01\n+++\n')
        _write(tmp_path, "day1/b.md", '+++\ntitle = "B"\ndate = 2025-08-13\n+++\n')

        first = load_collection(tmp_path)
        second = load_collection(tmp_path)

        assert first is not second
        assert list(first) == list(second)

    def test_unreadable_file_fails_the_whole_load(self, tmp_path: Path) -> None:
        _write(tmp_path, "day1/a.md", '+++\ntitle = "A"\n+++\n')
        _write(tmp_path, "day1/b.md", '+++\ntitle = "B"\n+++\n')
        _write(tmp_path, "day1/c.md", '+++\ntitle = "C"\n+++\n')

        def _read(path: Path, *, name: Path | None = None) -> bytes:
            if path.name == "b.md":
                raise ContentIOError(name or path, "cannot read file: Permission denied")
            return read_bytes(path, name=name)

        collection = None
        with patch("mdcollect.ingestion.loader.read_bytes", side_effect=_read):
            with pytest.raises(ContentIOError) as excinfo:
                collection = load_collection(tmp_path)

        assert collection is None
        assert excinfo.value.path == Path("day1/b.md")

    @pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
    def test_symlinked_section_is_loaded(self, tmp_path: Path) -> None:
        _write(tmp_path, "shared/a.md", '+++\ntitle = "A"\n+++\n')
        root = tmp_path / "content"
        _write(root, "b.md", '+++\ntitle = "B"\n+++\n')
        (root / "day2").symlink_to(tmp_path / "shared", target_is_directory=True)

        collection = load_collection(root)

        assert "day2/a.md" in collection
        assert collection.get("day2/a.md").section == "day2"
