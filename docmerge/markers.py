"""Reserved HTML-comment markers used in consolidated output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

MARKER_PREFIX = "<!-- docmerge:"
DOCUMENT_DELIMITER = "<!-- docmerge:end-of-document -->"
SOURCE_HEADER_FMT = "<!-- docmerge:source {path} -->"
GENERATED_AT_PLACEHOLDER = "<!-- docmerge:generated-at -->"
GENERATED_AT_FMT = "<!-- docmerge:generated-at {timestamp} -->"

_SOURCE_HEADER_PATTERN = re.compile(r"^<!-- docmerge:source (?P<path>.+) -->$")
_GENERATED_AT_PATTERN = re.compile(r"^<!-- docmerge:generated-at(?: [^\n]*)? -->$", re.MULTILINE)
_ESCAPE_PATTERN = re.compile(r"^(\\*)" + re.escape(MARKER_PREFIX))
_UNESCAPE_PATTERN = re.compile(r"^\\(\\*" + re.escape(MARKER_PREFIX) + ")")


def escape_line(line: str) -> str:
    """Escape a content line that would otherwise read as a reserved marker."""
    if _ESCAPE_PATTERN.match(line):
        return "\\" + line
    return line


def unescape_line(line: str) -> str:
    """Reverse :func:`escape_line`."""
    return _UNESCAPE_PATTERN.sub(r"\1", line, count=1)


def source_header(path: str) -> str:
    return SOURCE_HEADER_FMT.format(path=path)


def parse_source_header(line: str) -> Optional[str]:
    """Return the source path recorded in a header line, if it is one."""
    match = _SOURCE_HEADER_PATTERN.match(line)
    if match is None:
        return None
    return match.group("path")


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def stamp_generated_at(body: str, moment: datetime) -> str:
    """Fill the generated-at placeholder with ``moment``."""
    stamped = GENERATED_AT_FMT.format(timestamp=format_timestamp(moment))
    return body.replace(GENERATED_AT_PLACEHOLDER, stamped, 1)


def strip_volatile(text: str) -> str:
    """Return ``text`` with generated-at stamps reset to the bare placeholder."""
    return _GENERATED_AT_PATTERN.sub(GENERATED_AT_PLACEHOLDER, text)


@dataclass
class ManagedBlock:
    """Represents rendered content for a managed block of a markdown file."""

    key: str
    body: str


class MarkerManager:
    """Applies docmerge markers for idempotent block replacement."""

    BEGIN_FMT = "<!-- docmerge:begin:{key} -->"
    END_FMT = "<!-- docmerge:end:{key} -->"

    def wrap(self, block: ManagedBlock) -> str:
        """Wrap block body with managed markers."""
        begin = self.BEGIN_FMT.format(key=block.key)
        end = self.END_FMT.format(key=block.key)
        return f"{begin}\n{block.body.rstrip()}\n{end}"

    def contains(self, markdown: str, key: str) -> bool:
        begin = self.BEGIN_FMT.format(key=key)
        end = self.END_FMT.format(key=key)
        return begin in markdown and end in markdown.split(begin, 1)[1]

    def replace(self, markdown: str, key: str, new_body: str) -> str:
        """Replace an existing managed block in the markdown string."""
        if not self.contains(markdown, key):
            return markdown
        begin = self.BEGIN_FMT.format(key=key)
        end = self.END_FMT.format(key=key)
        pre, rest = markdown.split(begin, 1)
        _, post = rest.split(end, 1)
        return f"{pre}{begin}\n{new_body.rstrip()}\n{end}{post}"


__all__ = [
    "DOCUMENT_DELIMITER",
    "GENERATED_AT_PLACEHOLDER",
    "MARKER_PREFIX",
    "ManagedBlock",
    "MarkerManager",
    "escape_line",
    "format_timestamp",
    "parse_source_header",
    "source_header",
    "stamp_generated_at",
    "strip_volatile",
    "unescape_line",
]
