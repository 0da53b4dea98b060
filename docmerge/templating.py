"""Jinja2 environment shared by the banner and index renderers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .errors import ConfigurationError

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return an environment that prefers ``templates_dir`` over the bundled templates."""
    directories: List[str] = []
    if templates_dir is not None:
        directories.append(str(templates_dir))
    if str(DEFAULT_TEMPLATES_DIR) not in directories:
        directories.append(str(DEFAULT_TEMPLATES_DIR))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )



def render_template(env: Environment, name: str, **context: Any) -> str:
    """Render ``name``; template problems surface as :class:`ConfigurationError`."""
    try:
        template = env.get_template(name)
        return template.render(**context)
    except TemplateError as exc:
        raise ConfigurationError(f"Template {name!r} failed to render: {exc}") from exc


__all__ = ["DEFAULT_TEMPLATES_DIR", "create_environment", "render_template"]
