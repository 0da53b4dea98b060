"""Discovery of documentation files inside checked-out repositories."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterator, List, Sequence, Set

from .errors import SourceNotFoundError
from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".build",
    ".swiftpm",
    ".docmerge",
    "node_modules",
    "__pycache__",
    "DerivedData",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

_WILDCARD_CHARS = set("*?[")

logger = get_logger("enumerator")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a relative glob into a regex over POSIX paths.

    ``*``, ``?`` and ``[...]`` never cross a ``/``; a ``**`` segment matches
    zero or more whole directories (or everything when it is the last segment).
    """
    segments = _split_pattern(pattern)
    pieces: List[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            pieces.append(".*" if last else "(?:[^/]+/)*")
            continue
        pieces.append(_translate_segment(segment))
        if not last:
            pieces.append("/")
    return re.compile("^" + "".join(pieces) + "$")


def _split_pattern(pattern: str) -> List[str]:
    return [segment for segment in pattern.replace("\\", "/").split("/") if segment and segment != "."]


def _translate_segment(segment: str) -> str:
    result: List[str] = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            result.append("[^/]*")
        elif char == "?":
            result.append("[^/]")
        elif char == "[":
            start = index + 1
            if segment[start : start + 1] == "!":
                start += 1
            if segment[start : start + 1] == "]":
                start += 1
            close = segment.find("]", start)
            if close == -1:
                result.append(re.escape(char))
            else:
                body = segment[index + 1 : close].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                elif body.startswith("^"):
                    body = "\\" + body
                result.append("[" + body + "]")
                index = close
        else:
            result.append(re.escape(char))
        index += 1
    return "".join(result)


def _static_prefix(segments: Sequence[str]) -> List[str]:
    prefix: List[str] = []
    for segment in segments:
        if segment == "**" or _WILDCARD_CHARS.intersection(segment):
            break
        prefix.append(segment)
    return prefix


class DocumentPaths:
    """Lazy, restartable sequence of source paths for one library.

    Each pattern is resolved in configuration order with its matches sorted
    lexicographically; a path matched by several patterns is yielded once.
    Patterns that match nothing are recorded in :attr:`missing`.
    """

    def __init__(self, root: Path, patterns: Sequence[str], exclude: Sequence[str] = ()) -> None:
        self.root = root
        self.patterns = tuple(patterns)
        self.exclude = tuple(exclude)
        self._exclude_regexes = [compile_pattern(pattern) for pattern in self.exclude]
        self.missing: List[SourceNotFoundError] = []

    def __iter__(self) -> Iterator[str]:
        self.missing = []
        seen: Set[str] = set()
        for pattern in self.patterns:
            matched = False
            for rel_path in self._resolve(pattern):
                matched = True
                if rel_path in seen:
                    continue
                seen.add(rel_path)
                yield rel_path
            if not matched:
                error = SourceNotFoundError(
                    f"Pattern {pattern!r} matched no documents under {self.root}",
                    pattern=pattern,
                )
                logger.warning("%s", error)
                self.missing.append(error)

    def _resolve(self, pattern: str) -> List[str]:
        segments = _split_pattern(pattern)
        if not segments:
            return []
        if not _WILDCARD_CHARS.intersection(pattern) and "**" not in segments:
            literal = self.root.joinpath(*segments)
            if literal.is_file():
                return [] if self._is_excluded("/".join(segments)) else ["/".join(segments)]
            # A bare directory means every markdown file beneath it.
            segments = segments + ["**", "*.md"]

        prefix = _static_prefix(segments)
        base = self.root.joinpath(*prefix) if prefix else self.root
        if not base.is_dir():
            logger.debug("Base directory %s for pattern %r does not exist", base, pattern)
            return []

        regex = compile_pattern("/".join(segments))
        matches = [
            rel_path
            for rel_path in _iter_files(self.root, base)
            if regex.match(rel_path) and not self._is_excluded(rel_path)
        ]
        return sorted(matches)

    def _is_excluded(self, rel_path: str) -> bool:
        return any(regex.match(rel_path) for regex in self._exclude_regexes)


def _iter_files(root: Path, base: Path) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = [name for name in dirnames if name not in _EXCLUDED_DIRS]
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
        for filename in filenames:
            if filename in _EXCLUDED_FILES:
                continue
            yield f"{rel_dir}/{filename}" if rel_dir else filename


class SourceEnumerator:
    """Produces ordered candidate document paths for a library checkout."""

    def enumerate(
        self,
        repo_root: Path,
        doc_patterns: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> DocumentPaths:
        """Return the document paths matched by ``doc_patterns`` under ``repo_root``."""
        root_path = Path(repo_root).expanduser()
        if not root_path.exists():
            raise SourceNotFoundError(f"Checkout not found: {root_path}")
        if not root_path.is_dir():
            raise SourceNotFoundError(f"Checkout is not a directory: {root_path}")
        return DocumentPaths(root_path.resolve(), doc_patterns, exclude)


__all__ = ["DocumentPaths", "SourceEnumerator", "compile_pattern"]
