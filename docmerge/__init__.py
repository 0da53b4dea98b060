"""Consolidate documentation sources into one markdown file per library."""

from .aggregator import Aggregator, SplitDocument
from .config import DocMergeConfig, load_config
from .enumerator import SourceEnumerator
from .errors import (
    ConfigurationError,
    DecodeError,
    DocMergeError,
    SourceNotFoundError,
    WriteError,
)
from .manifest import ManifestBuilder
from .models import (
    AggregatedOutput,
    DocumentRecord,
    LibraryOutcome,
    LibrarySource,
    ManifestEntry,
    RunSummary,
    WriteResult,
)
from .normalizer import ContentNormalizer
from .pipeline import Pipeline
from .writer import Writer

__version__ = "0.1.0"

__all__ = [
    "AggregatedOutput",
    "Aggregator",
    "ConfigurationError",
    "ContentNormalizer",
    "DecodeError",
    "DocMergeConfig",
    "DocMergeError",
    "DocumentRecord",
    "LibraryOutcome",
    "LibrarySource",
    "ManifestBuilder",
    "ManifestEntry",
    "Pipeline",
    "RunSummary",
    "SourceEnumerator",
    "SourceNotFoundError",
    "SplitDocument",
    "WriteError",
    "WriteResult",
    "Writer",
    "load_config",
]
