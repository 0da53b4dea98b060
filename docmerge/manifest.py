"""Index (manifest) of consolidated documentation files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from jinja2 import Environment

from .markers import ManagedBlock, MarkerManager
from .models import LibrarySource, ManifestEntry
from .templating import create_environment, render_template


class ManifestBuilder:
    """Derives and renders the library -> output file -> repository table."""

    BLOCK_KEY = "libraries"
    INDEX_TEMPLATE = "index.md.j2"
    TABLE_TEMPLATE = "index_table.md.j2"

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        env: Environment | None = None,
        marker_manager: MarkerManager | None = None,
    ) -> None:
        self._env = env or create_environment(templates_dir)
        self.marker_manager = marker_manager or MarkerManager()

    def build(self, libraries: Iterable[LibrarySource]) -> List[ManifestEntry]:
        """Return one entry per library, in configuration order."""
        return [ManifestEntry(library=library, output_file=library.output_file) for library in libraries]

    def render(
        self,
        entries: Iterable[ManifestEntry],
        *,
        output_dir: Path,
        index_path: Path,
        title: str = "Consolidated Documentation",
        existing: Optional[str] = None,
    ) -> str:
        """Render the index, updating only the managed block of ``existing`` when present."""
        table = self.render_table(entries, output_dir=output_dir, index_path=index_path)
        if existing is not None and self.marker_manager.contains(existing, self.BLOCK_KEY):
            return self.marker_manager.replace(existing, self.BLOCK_KEY, table)

        block = self.marker_manager.wrap(ManagedBlock(key=self.BLOCK_KEY, body=table))
        rendered = render_template(self._env, self.INDEX_TEMPLATE, title=title, table=block)
        return rendered.rstrip("\n") + "\n"

    def render_table(self, entries: Iterable[ManifestEntry], *, output_dir: Path, index_path: Path) -> str:
        rows: List[Dict[str, str]] = []
        for entry in entries:
            rows.append(
                {
                    "name": entry.library.name,
                    "file": entry.output_file,
                    "link": _relative_link(output_dir / entry.output_file, index_path.parent),
                    "repository": entry.library.repository_url,
                }
            )
        return render_template(self._env, self.TABLE_TEMPLATE, rows=rows).rstrip("\n")


def _relative_link(target: Path, start: Path) -> str:
    return Path(os.path.relpath(target, start)).as_posix()


__all__ = ["ManifestBuilder"]
