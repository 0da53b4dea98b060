"""Normalization of individual documentation files before aggregation."""

from __future__ import annotations

import os
import re
from typing import List, Optional, Tuple

import yaml

from .errors import DecodeError
from .markers import escape_line, source_header
from .models import DocumentRecord, LibrarySource

_FENCE_PATTERN = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
_DOC_LINK_PATTERN = re.compile(r"<doc:(?P<target>[^>#\s]+)(?:#(?P<anchor>[^>\s]+))?>")
_SYMBOL_LINK_PATTERN = re.compile(r"``(?P<symbol>[^`\n]+)``")
_BLOCK_DIRECTIVES = ("@Metadata", "@Options", "@Comment")
_LINE_DIRECTIVES = ("@Redirected(",)


class ContentNormalizer:
    """Prepares a raw document for inclusion in a flat consolidated file."""

    def normalize(
        self,
        source_path: str,
        raw_content: bytes | str,
        *,
        library: LibrarySource,
        order: int,
    ) -> DocumentRecord:
        """Return a :class:`DocumentRecord` whose content is safe to concatenate."""
        _check_path(source_path)
        text = decode(source_path, raw_content)
        lines = text.split("\n")
        lines = _strip_front_matter(lines)
        lines = _rewrite_outside_code(lines)
        body = _trim_blank_edges([escape_line(line) for line in lines])

        header = source_header(source_path)
        content = f"{header}\n\n" + "\n".join(body) + "\n" if body else f"{header}\n"
        return DocumentRecord(
            source_path=source_path,
            library=library,
            raw_content=text,
            content=content,
            order=order,
        )


def _check_path(source_path: str) -> None:
    try:
        source_path.encode("utf-8")
    except UnicodeEncodeError as exc:
        printable = os.fsencode(source_path).decode("utf-8", errors="backslashreplace")
        raise DecodeError(printable, "file name is not valid UTF-8") from exc


def decode(source_path: str, raw_content: bytes | str) -> str:
    """Decode document bytes as UTF-8 text with LF line endings."""
    if isinstance(raw_content, bytes):
        if b"\x00" in raw_content:
            raise DecodeError(source_path, "binary content")
        try:
            text = raw_content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(source_path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
    else:
        text = raw_content
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def rewrite_references(line: str) -> str:
    """Turn site-relative DocC references into plain text."""
    line = _DOC_LINK_PATTERN.sub(_doc_link_text, line)
    return _SYMBOL_LINK_PATTERN.sub(lambda match: f"`{match.group('symbol')}`", line)


def _doc_link_text(match: re.Match[str]) -> str:
    target = match.group("target").rstrip("/").rsplit("/", 1)[-1]
    return re.sub(r"[-_]+", " ", target).strip() or target


def _strip_front_matter(lines: List[str]) -> List[str]:
    if not lines or lines[0].strip() != "---":
        return lines
    for index in range(1, len(lines)):
        if lines[index].strip() in {"---", "..."}:
            if _is_front_matter(lines[1:index]):
                return lines[index + 1 :]
            return lines
    return lines


def _is_front_matter(lines: List[str]) -> bool:
    try:
        data = yaml.safe_load("\n".join(lines))
    except yaml.YAMLError:
        return False
    return isinstance(data, dict) and bool(data)


def _rewrite_outside_code(lines: List[str]) -> List[str]:
    output: List[str] = []
    fence: Optional[Tuple[str, int]] = None
    depth = 0
    for line in lines:
        if depth:
            depth += _brace_delta(line)
            continue

        match = _FENCE_PATTERN.match(line)
        if fence is not None:
            if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= fence[1]:
                if not line.strip().lstrip(fence[0]):
                    fence = None
            output.append(line)
            continue
        if match:
            marker = match.group(1)
            fence = (marker[0], len(marker))
            output.append(line)
            continue

        stripped = line.strip()
        if stripped.startswith(_BLOCK_DIRECTIVES):
            depth = max(_brace_delta(line), 0)
            continue
        if stripped.startswith(_LINE_DIRECTIVES):
            continue
        output.append(rewrite_references(line))
    return output


def _brace_delta(line: str) -> int:
    return line.count("{") - line.count("}")


def _trim_blank_edges(lines: List[str]) -> List[str]:
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


__all__ = ["ContentNormalizer", "decode", "rewrite_references"]
