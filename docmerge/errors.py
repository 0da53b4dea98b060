"""Error taxonomy shared across docmerge components."""

from __future__ import annotations


class DocMergeError(RuntimeError):
    """Base class for failures raised by the aggregation pipeline."""


class ConfigurationError(DocMergeError):
    """Raised when the configuration file is malformed or incomplete."""


class SourceNotFoundError(DocMergeError):
    """Raised when a checkout or documentation pattern yields nothing."""

    def __init__(self, message: str, *, pattern: str | None = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class DecodeError(DocMergeError):
    """Raised when a document is binary or not valid UTF-8."""

    def __init__(self, source_path: str, reason: str) -> None:
        super().__init__(f"{source_path}: {reason}")
        self.source_path = source_path
        self.reason = reason


class WriteError(DocMergeError):
    """Raised when an output file cannot be written."""

    def __init__(self, path: object, cause: OSError) -> None:
        super().__init__(f"Failed to write {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DocMergeError",
    "SourceNotFoundError",
    "WriteError",
]
