from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .errors import ConfigError


@dataclass(frozen=True)
class RenderConfig:
    """Options shared by every stage of the render pipeline."""

    allow_html: bool = False
    breaks: bool = True
    linkify: bool = True
    diagram_language: str = "mermaid"
    toc_title: str = "Table of Contents"
    contents_toc_depth: int = 3
    pygments_style: str = "github-dark"
    mermaid_command: str = "mmdc"
    mermaid_theme: str = "default"
    mermaid_background: str = "transparent"
    diagram_timeout: float = 30.0


DEFAULT_CONFIG = RenderConfig()


def load_config(path: str | Path) -> RenderConfig:
    """Read a YAML mapping of ``RenderConfig`` fields."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping of option names to values.")
    return config_from_mapping(data)


def config_from_mapping(data: dict) -> RenderConfig:
    known = {f.name: f for f in fields(RenderConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigError(f"Unknown config option(s): {', '.join(unknown)}")
    values = {}
    for key, value in data.items():
        default = getattr(DEFAULT_CONFIG, key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"Option {key!r} must be true or false.")
        elif isinstance(default, (int, float)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"Option {key!r} must be a number.")
            value = type(default)(value)
        elif not isinstance(value, str):
            raise ConfigError(f"Option {key!r} must be a string.")
        if key == "pygments_style":
            try:
                get_style_by_name(value)
            except ClassNotFound as exc:
                raise ConfigError(f"Unknown Pygments style {value!r}.") from exc
        values[key] = value
    return RenderConfig(**values)
