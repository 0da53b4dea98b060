"""Concatenation of normalized documents into one consolidated file."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Optional

from jinja2 import Environment

from .markers import (
    DOCUMENT_DELIMITER,
    GENERATED_AT_PLACEHOLDER,
    parse_source_header,
    unescape_line,
)
from .models import AggregatedOutput, DocumentRecord, LibrarySource
from .templating import create_environment, render_template


@dataclass(frozen=True)
class SplitDocument:
    """A document recovered from a consolidated file."""

    source_path: str
    content: str


class Aggregator:
    """Builds the consolidated markdown body for a library."""

    BANNER_TEMPLATE = "banner.md.j2"

    def __init__(self, templates_dir: Path | None = None, *, env: Environment | None = None) -> None:
        self._env = env or create_environment(templates_dir)

    def aggregate(
        self,
        library: LibrarySource,
        records: Iterable[DocumentRecord],
        *,
        generated_at: Optional[datetime] = None,
    ) -> AggregatedOutput:
        """Concatenate ``records`` in the order given, each followed by the delimiter."""
        ordered = list(records)
        parts: List[str] = [self.render_banner(library, len(ordered)).rstrip("\n"), ""]
        for record in ordered:
            parts.append(record.content.rstrip("\n"))
            parts.append("")
            parts.append(DOCUMENT_DELIMITER)
            parts.append("")
        body = "\n".join(parts).rstrip("\n") + "\n"
        return AggregatedOutput(
            library=library,
            body=body,
            generated_at=generated_at or datetime.now(UTC),
            documents=len(ordered),
        )

    def render_banner(self, library: LibrarySource, documents: int) -> str:
        return render_template(
            self._env,
            self.BANNER_TEMPLATE,
            library=library,
            documents=documents,
            generated_at_placeholder=GENERATED_AT_PLACEHOLDER,
        )

    @staticmethod
    def split(markdown: str) -> List[SplitDocument]:
        """Recover the documents of a consolidated file, in order."""
        documents: List[SplitDocument] = []
        chunk: List[str] = []
        for line in markdown.replace("\r\n", "\n").split("\n"):
            if line == DOCUMENT_DELIMITER:
                document = _parse_chunk(chunk)
                if document is not None:
                    documents.append(document)
                chunk = []
                continue
            chunk.append(line)
        document = _parse_chunk(chunk)
        if document is not None:
            documents.append(document)
        return documents


def _parse_chunk(lines: List[str]) -> Optional[SplitDocument]:
    for index, line in enumerate(lines):
        source_path = parse_source_header(line)
        if source_path is None:
            continue
        body = lines[index + 1 :]
        while body and not body[0].strip():
            body.pop(0)
        while body and not body[-1].strip():
            body.pop()
        content = "\n".join(unescape_line(item) for item in body)
        return SplitDocument(source_path=source_path, content=content + "\n" if content else "")
    return None


__all__ = ["Aggregator", "SplitDocument"]
