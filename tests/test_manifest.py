"""Tests for docmerge.manifest."""

from __future__ import annotations

from pathlib import Path

from docmerge.manifest import ManifestBuilder
from docmerge.models import LibrarySource

LIBRARIES = [
    LibrarySource(name="case-paths", repository_url="https://github.com/pointfreeco/swift-case-paths", doc_patterns=("a",)),
    LibrarySource(
        name="dependencies",
        repository_url="https://github.com/pointfreeco/swift-dependencies",
        doc_patterns=("b",),
        output="deps.md",
    ),
]


def test_build_is_derived_from_configuration_order() -> None:
    entries = ManifestBuilder().build(LIBRARIES)

    assert [(entry.library.name, entry.output_file) for entry in entries] == [
        ("case-paths", "case-paths.md"),
        ("dependencies", "deps.md"),
    ]


def test_render_generates_full_index(tmp_path: Path) -> None:
    builder = ManifestBuilder()
    entries = builder.build(LIBRARIES)

    rendered = builder.render(
        entries,
        output_dir=tmp_path / "docs",
        index_path=tmp_path / "README.md",
        title="Swift Docs",
    )

    assert rendered.startswith("# Swift Docs\n")
    assert rendered.endswith("<!-- docmerge:end:libraries -->\n")
    assert (
        "<!-- docmerge:begin:libraries -->\n"
        "| Library | File | Repository |\n"
        "| --- | --- | --- |\n"
        "| case-paths | [case-paths.md](docs/case-paths.md) | "
        "[https://github.com/pointfreeco/swift-case-paths](https://github.com/pointfreeco/swift-case-paths) |\n"
        "| dependencies | [deps.md](docs/deps.md) | "
        "[https://github.com/pointfreeco/swift-dependencies](https://github.com/pointfreeco/swift-dependencies) |\n"
        "<!-- docmerge:end:libraries -->"
    ) in rendered


def test_render_links_relative_to_index_location(tmp_path: Path) -> None:
    builder = ManifestBuilder()

    table = builder.render_table(
        builder.build(LIBRARIES[:1]),
        output_dir=tmp_path / "out",
        index_path=tmp_path / "meta" / "INDEX.md",
    )

    assert "[case-paths.md](../out/case-paths.md)" in table


def test_render_only_replaces_managed_block_of_existing_index(tmp_path: Path) -> None:
    builder = ManifestBuilder()
    existing = (
        "# My Docs\n\nHand-written introduction.\n\n"
        "<!-- docmerge:begin:libraries -->\n| stale |\n<!-- docmerge:end:libraries -->\n\n"
        "## License\n\nMIT\n"
    )

    rendered = builder.render(
        builder.build(LIBRARIES),
        output_dir=tmp_path / "docs",
        index_path=tmp_path / "README.md",
        existing=existing,
    )

    assert rendered.startswith("# My Docs\n\nHand-written introduction.\n\n")
    assert rendered.endswith("\n\n## License\n\nMIT\n")
    assert "| stale |" not in rendered
    assert "[deps.md](docs/deps.md)" in rendered


def test_render_replaces_index_without_managed_block(tmp_path: Path) -> None:
    builder = ManifestBuilder()

    rendered = builder.render(
        builder.build(LIBRARIES),
        output_dir=tmp_path / "docs",
        index_path=tmp_path / "README.md",
        existing="# Old unmanaged readme\n",
    )

    assert "Old unmanaged readme" not in rendered
    assert rendered.startswith("# Consolidated Documentation\n")
