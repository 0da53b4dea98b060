"""Configuration loading for docmerge (.docmerge.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigurationError
from .models import LibrarySource

CONFIG_FILENAME = ".docmerge.yml"

_DEFAULT_OUTPUT_DIR = "docs"
_DEFAULT_INDEX_FILE = "README.md"
_DEFAULT_CHECKOUTS_DIR = ".checkouts"


@dataclass
class DocMergeConfig:
    """Represents the settings defined in .docmerge.yml."""

    root: Path
    libraries: List[LibrarySource] = field(default_factory=list)
    output_dir: Path = Path(_DEFAULT_OUTPUT_DIR)
    index_file: Optional[Path] = None
    checkouts_dir: Path = Path(_DEFAULT_CHECKOUTS_DIR)
    title: str = "Consolidated Documentation"
    workers: int = 1
    templates_dir: Optional[Path] = None

    def checkout_for(self, library: LibrarySource) -> Path:
        """Return the local working tree that holds ``library``."""
        if library.checkout is not None:
            return library.checkout
        return self.checkouts_dir / library.name


def load_config(config_path: Path) -> DocMergeConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(Path(config_path))
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_file}")
    root = config_file.parent

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_file.name} must contain a mapping at the root")
    return parse_config(data, root=root)


def parse_config(data: Dict[str, Any], *, root: Path) -> DocMergeConfig:
    """Build a :class:`DocMergeConfig` from an already-parsed mapping."""
    raw_libraries = data.get("libraries")
    if not isinstance(raw_libraries, list) or not raw_libraries:
        raise ConfigurationError("'libraries' must be a non-empty list")

    checkouts_dir = root / (_as_str(data.get("checkouts_dir")) or _DEFAULT_CHECKOUTS_DIR)

    libraries: List[LibrarySource] = []
    seen_names: set[str] = set()
    seen_outputs: set[str] = set()
    for index, raw in enumerate(raw_libraries):
        library = _parse_library(raw, index=index, root=root)
        if library.name in seen_names:
            raise ConfigurationError(f"Duplicate library name: {library.name}")
        if library.output_file in seen_outputs:
            raise ConfigurationError(f"Duplicate output file: {library.output_file}")
        seen_names.add(library.name)
        seen_outputs.add(library.output_file)
        libraries.append(library)

    workers = _as_workers(data.get("workers"))
    if workers is None:
        workers = 1
    if workers < 1:
        raise ConfigurationError("'workers' must be a positive integer")

    # An explicit `index_file: null` disables the index.
    index_value = _as_str(data.get("index_file", _DEFAULT_INDEX_FILE))
    index_file = root / index_value if index_value else None
    templates_value = _as_str(data.get("templates_dir"))

    return DocMergeConfig(
        root=root,
        libraries=libraries,
        output_dir=root / (_as_str(data.get("output_dir")) or _DEFAULT_OUTPUT_DIR),
        index_file=index_file,
        checkouts_dir=checkouts_dir,
        title=_as_str(data.get("title")) or "Consolidated Documentation",
        workers=workers,
        templates_dir=root / templates_value if templates_value else None,
    )


def _parse_library(raw: Any, *, index: int, root: Path) -> LibrarySource:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Library entry #{index + 1} must be a mapping")

    name = _as_str(raw.get("name"))
    if not name or not name.strip():
        raise ConfigurationError(f"Library entry #{index + 1} is missing 'name'")
    name = name.strip()
    if "/" in name or "\\" in name or name in {".", ".."}:
        raise ConfigurationError(f"Library name {name!r} cannot be used as a file name")

    repository = _as_str(raw.get("repository"))
    if not repository:
        raise ConfigurationError(f"Library {name!r} is missing 'repository'")

    patterns = _as_str_list(raw.get("docs"))
    if not patterns:
        raise ConfigurationError(f"Library {name!r} must list at least one 'docs' pattern")
    for pattern in patterns:
        _validate_pattern(name, pattern)
    excludes = _as_str_list(raw.get("exclude"))
    for pattern in excludes:
        _validate_pattern(name, pattern)

    checkout_value = _as_str(raw.get("checkout"))
    output = _as_str(raw.get("output"))
    if output is not None and (Path(output).is_absolute() or ".." in PurePosixPath(output).parts):
        raise ConfigurationError(f"Library {name!r} output must stay inside the output directory")

    return LibrarySource(
        name=name,
        repository_url=repository,
        doc_patterns=tuple(patterns),
        checkout=(root / checkout_value) if checkout_value else None,
        output=output,
        exclude=tuple(excludes),
        allow_empty=_as_bool(raw.get("allow_empty")) or False,
    )


def _validate_pattern(name: str, pattern: str) -> None:
    normalized = pattern.replace("\\", "/")
    if not normalized.strip():
        raise ConfigurationError(f"Library {name!r} has an empty pattern")
    if normalized.startswith("/") or PurePosixPath(normalized).is_absolute():
        raise ConfigurationError(f"Library {name!r} pattern must be relative: {pattern}")
    if ".." in normalized.split("/"):
        raise ConfigurationError(f"Library {name!r} pattern escapes the checkout: {pattern}")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_workers(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        raise ConfigurationError("'workers' must be a positive integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigurationError("'workers' must be a positive integer") from exc
    if value is None:
        return None
    raise ConfigurationError("'workers' must be a positive integer")


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = ["CONFIG_FILENAME", "DocMergeConfig", "load_config", "parse_config"]
