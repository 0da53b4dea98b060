"""Core data models shared across docmerge components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import DocMergeError
from .markers import stamp_generated_at


@dataclass(frozen=True)
class LibrarySource:
    """A configured upstream library and where its documentation lives."""

    name: str
    repository_url: str
    doc_patterns: Tuple[str, ...]
    checkout: Optional[Path] = None
    output: Optional[str] = None
    exclude: Tuple[str, ...] = ()
    allow_empty: bool = False

    @property
    def output_file(self) -> str:
        return self.output or f"{self.name}.md"


@dataclass
class DocumentRecord:
    """A single normalized documentation file bound for aggregation."""

    source_path: str
    library: LibrarySource
    raw_content: str
    content: str
    order: int


@dataclass
class AggregatedOutput:
    """Consolidated markdown for one library."""

    library: LibrarySource
    body: str
    generated_at: datetime
    documents: int = 0

    def render(self) -> str:
        """Return the file text with the generation timestamp stamped in."""
        return stamp_generated_at(self.body, self.generated_at)


@dataclass(frozen=True)
class ManifestEntry:
    """Maps a library to its consolidated output file."""

    library: LibrarySource
    output_file: str


class WriteResult(str, Enum):
    """Outcome of a writer invocation."""

    UNCHANGED = "unchanged"
    UPDATED = "updated"
    CREATED = "created"


@dataclass(frozen=True)
class SkippedDocument:
    """A source file that was left out of the consolidated output."""

    source_path: str
    reason: str


@dataclass
class LibraryOutcome:
    """Result of aggregating and writing one library."""

    library: LibrarySource
    output_path: Path
    result: Optional[WriteResult] = None
    documents: int = 0
    skipped: List[SkippedDocument] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    error: Optional[DocMergeError] = None
    diff: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregate report for a pipeline run."""

    outcomes: List[LibraryOutcome]
    index_path: Optional[Path] = None
    index_result: Optional[WriteResult] = None
    index_error: Optional[DocMergeError] = None

    @property
    def failures(self) -> List[LibraryOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def succeeded(self) -> List[LibraryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def exit_code(self) -> int:
        if self.failures or self.index_error is not None:
            return 1
        return 0
