"""Change-aware writing of generated files."""

from __future__ import annotations

import difflib
import hashlib
import os
import tempfile
from pathlib import Path
from typing import Optional

from .errors import WriteError
from .logging import get_logger
from .markers import strip_volatile
from .models import WriteResult


def content_hash(text: str) -> str:
    """Hash ``text`` with volatile generated-at stamps removed."""
    return hashlib.sha256(strip_volatile(text).encode("utf-8")).hexdigest()


class Writer:
    """Writes output files only when their stable content changed."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.logger = get_logger("writer")

    def write(self, path: Path, content: str) -> WriteResult:
        """Write ``content`` to ``path`` unless only volatile lines differ."""
        existing = self._read_existing(path)
        if existing is not None and content_hash(existing) == content_hash(content):
            self.logger.debug("%s unchanged; skipping write", path)
            return WriteResult.UNCHANGED

        result = WriteResult.CREATED if existing is None else WriteResult.UPDATED
        if self.dry_run:
            self.logger.debug("Dry-run: %s would be %s", path, result.value)
            return result

        try:
            _atomic_write(path, content)
        except OSError as exc:
            raise WriteError(path, exc) from exc
        self.logger.debug("%s %s", path, result.value)
        return result

    def diff(self, path: Path, content: str) -> str:
        """Render a unified diff between the file on disk and ``content``."""
        existing = self._read_existing(path) or ""
        diff = difflib.unified_diff(
            strip_volatile(existing).splitlines(keepends=True),
            strip_volatile(content).splitlines(keepends=True),
            fromfile=f"{path.name} (current)",
            tofile=f"{path.name} (generated)",
        )
        return "".join(diff)

    @staticmethod
    def _read_existing(path: Path) -> Optional[str]:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise WriteError(path, exc) from exc
        return data.decode("utf-8", errors="replace")


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="\n",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            handle.write(content)
        os.chmod(handle.name, _target_mode(path))
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


def _target_mode(path: Path) -> int:
    try:
        return path.stat().st_mode & 0o777
    except FileNotFoundError:
        return 0o644


__all__ = ["Writer", "content_hash"]
