"""Locating relay.yaml and feeding it to pydantic-settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_ENV_VAR = "RELAY_CONFIG"
CONFIG_FILENAMES = ("relay.yaml", "relay.yml")


def find_config_file() -> Path | None:
    """Return the YAML file to load, if any.

    An explicit ``RELAY_CONFIG`` path wins and is never second-guessed: when
    it does not exist, no file is loaded. Otherwise the working directory is
    searched for ``relay.yaml`` then ``relay.yml``.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        return path if path.is_file() else None

    for name in CONFIG_FILENAMES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate
    return None


def load_yaml(path: Path | None) -> dict[str, Any]:
    """Read a mapping from ``path``; anything else yields an empty dict."""
    if path is None:
        return {}
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by the discovered relay.yaml."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = load_yaml(find_config_file())

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data
