"""
config.py

Responsibility: Build-step configuration for the description publisher.

A `PublisherConfig` is created once per build-step definition and reused for
every build that step runs in. It is validated at construction time:
an unknown charset fails fast rather than at the end of a build.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CHARSET = "UTF-8"


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class PublisherConfig:
    """Parameters of a description-setter build step."""

    charset: str = DEFAULT_CHARSET
    project_description_filename: str = ""
    disable_tokens: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.charset, str) or not self.charset.strip():
            raise ConfigurationError("`charset` must be a non-empty encoding name.")
        try:
            info = codecs.lookup(self.charset.strip())
        except LookupError as e:
            raise ConfigurationError(f"Unsupported charset: {self.charset!r}") from e
        # Frozen dataclass: store the canonical codec name.
        object.__setattr__(self, "charset", info.name)
        if self.project_description_filename is None:
            object.__setattr__(self, "project_description_filename", "")


# Build-step parameter names as entered by users, with snake_case aliases.
_KEYS = {
    "charset": ("charset",),
    "project_description_filename": ("projectDescriptionFilename", "project_description_filename"),
    "disable_tokens": ("disableTokens", "disable_tokens"),
}


def _pick(data: dict[str, Any], field_name: str) -> Any:
    for key in _KEYS[field_name]:
        if key in data:
            return data[key]
    return None


def config_from_mapping(data: dict[str, Any]) -> PublisherConfig:
    """
    Build a `PublisherConfig` from raw build-step parameters.

    Missing keys fall back to defaults (UTF-8, blank filename, tokens enabled).
    """
    charset = _pick(data, "charset")
    filename = _pick(data, "project_description_filename")
    disable = _pick(data, "disable_tokens")

    if filename is not None and not isinstance(filename, str):
        raise ConfigurationError("`projectDescriptionFilename` must be a string when provided.")
    if disable is not None and not isinstance(disable, bool):
        raise ConfigurationError("`disableTokens` must be a boolean when provided.")

    return PublisherConfig(
        charset=DEFAULT_CHARSET if charset is None else charset,
        project_description_filename=filename or "",
        disable_tokens=bool(disable),
    )


def load_config(config_path: str | Path) -> PublisherConfig:
    """
    Load build-step parameters from a YAML file.

    Expected keys (all optional):
    - charset: str
    - projectDescriptionFilename: str
    - disableTokens: bool
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Config file does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Config must be a mapping/object at the top level.")
    return config_from_mapping(data)
