"""Tests for docmerge.enumerator."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from docmerge import enumerator
from docmerge.enumerator import SourceEnumerator, compile_pattern
from docmerge.errors import SourceNotFoundError


def _write(path: Path, content: str = "# Doc\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("docs/*.md", "docs/a.md", True),
        ("docs/*.md", "docs/nested/a.md", False),
        ("docs/**/*.md", "docs/a.md", True),
        ("docs/**/*.md", "docs/x/y/a.md", True),
        ("docs/**", "docs/x/image.png", True),
        ("Sources/*/Documentation.docc/**/*.md", "Sources/CasePaths/Documentation.docc/Articles/Intro.md", True),
        ("Sources/*/Documentation.docc/**/*.md", "Sources/CasePaths/Internal/Documentation.docc/Intro.md", False),
        ("docs/?.md", "docs/a.md", True),
        ("docs/?.md", "docs/ab.md", False),
        ("docs/[ab].md", "docs/b.md", True),
        ("docs/[!ab].md", "docs/b.md", False),
        ("docs/[^a].md", "docs/^.md", True),
        ("docs/[^a].md", "docs/b.md", False),
        ("docs/a+b.md", "docs/a+b.md", True),
    ],
)
def test_compile_pattern_matches_posix_paths(pattern: str, path: str, expected: bool) -> None:
    assert bool(compile_pattern(pattern).match(path)) is expected


def test_enumerate_sorts_each_pattern_lexicographically(tmp_path: Path) -> None:
    for name in ("b.md", "a.md", "c.txt", "sub/z.md", "A.md"):
        _write(tmp_path / "docs" / name)

    paths = SourceEnumerator().enumerate(tmp_path, ["docs/**/*.md"])

    assert list(paths) == ["docs/A.md", "docs/a.md", "docs/b.md", "docs/sub/z.md"]


def test_enumerate_keeps_pattern_order_and_deduplicates(tmp_path: Path) -> None:
    _write(tmp_path / "docs" / "a.md")
    _write(tmp_path / "docs" / "b.md")
    _write(tmp_path / "README.md")

    paths = SourceEnumerator().enumerate(tmp_path, ["README.md", "docs/b.md", "docs/*.md"])

    assert list(paths) == ["README.md", "docs/b.md", "docs/a.md"]


def test_enumerate_is_restartable(tmp_path: Path) -> None:
    _write(tmp_path / "docs" / "a.md")
    _write(tmp_path / "docs" / "b.md")

    paths = SourceEnumerator().enumerate(tmp_path, ["docs/*.md"])

    assert list(paths) == list(paths) == ["docs/a.md", "docs/b.md"]


def test_enumerate_bare_directory_means_markdown_beneath_it(tmp_path: Path) -> None:
    docc = tmp_path / "Sources" / "Lib" / "Documentation.docc"
    _write(docc / "Lib.md")
    _write(docc / "Articles" / "GettingStarted.md")
    _write(docc / "Resources" / "diagram.png", "not markdown")

    paths = SourceEnumerator().enumerate(tmp_path, ["Sources/Lib/Documentation.docc"])

    assert list(paths) == [
        "Sources/Lib/Documentation.docc/Articles/GettingStarted.md",
        "Sources/Lib/Documentation.docc/Lib.md",
    ]


def test_enumerate_applies_excludes_and_skips_tooling_dirs(tmp_path: Path) -> None:
    _write(tmp_path / "docs" / "keep.md")
    _write(tmp_path / "docs" / "Deprecations" / "old.md")
    _write(tmp_path / "docs" / ".build" / "generated.md")
    _write(tmp_path / "docs" / ".git" / "info.md")

    paths = SourceEnumerator().enumerate(tmp_path, ["docs/**/*.md"], exclude=["**/Deprecations/*.md"])

    assert list(paths) == ["docs/keep.md"]


def test_enumerate_missing_directory_yields_nothing_and_warns(tmp_path: Path, caplog) -> None:
    _write(tmp_path / "docs" / "a.md")
    caplog.set_level(logging.WARNING, logger="docmerge")

    paths = SourceEnumerator().enumerate(tmp_path, ["missing/**/*.md", "docs/*.md"])

    assert list(paths) == ["docs/a.md"]
    assert len(paths.missing) == 1
    assert isinstance(paths.missing[0], SourceNotFoundError)
    assert paths.missing[0].pattern == "missing/**/*.md"
    assert "matched no documents" in caplog.text


def test_enumerate_rejects_missing_checkout(tmp_path: Path) -> None:
    with pytest.raises(SourceNotFoundError, match="Checkout not found"):
        SourceEnumerator().enumerate(tmp_path / "nope", ["docs/*.md"])


def test_enumerate_ignores_directory_listing_order(tmp_path: Path, monkeypatch) -> None:
    for name in ("c.md", "a.md", "b.md", "x/d.md", "w/e.md"):
        _write(tmp_path / "docs" / name)

    expected = list(SourceEnumerator().enumerate(tmp_path, ["docs/**/*.md"]))

    real_walk = os.walk

    def reversed_walk(top, *args, **kwargs):
        for dirpath, dirnames, filenames in real_walk(top, *args, **kwargs):
            dirnames.reverse()
            yield dirpath, dirnames, list(reversed(filenames))

    monkeypatch.setattr(enumerator.os, "walk", reversed_walk)

    assert list(SourceEnumerator().enumerate(tmp_path, ["docs/**/*.md"])) == expected
    assert expected == ["docs/a.md", "docs/b.md", "docs/c.md", "docs/w/e.md", "docs/x/d.md"]
