"""YAML settings source that merges base and per-environment config files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested dicts are merged key by key. Any other value in ``override``,
    lists included, replaces the value in ``base``.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class MultiYamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source built from layered YAML files.

    The files under ``config/base/`` are loaded first. The files under
    ``config/environments/{APP_ENV}/`` are merged on top. Within each
    directory, files are read in name order.
    """

    def __init__(
        self,
        settings_cls: type[Any],
        config_dir: Path | None = None,
    ) -> None:
        """Initialize the YAML settings source.

        Args:
            settings_cls: The settings class to load configuration for.
            config_dir: Override for the config directory (tests).
        """
        super().__init__(settings_cls)
        self._config_dir = config_dir or self._find_config_dir()
        self._app_env = os.getenv("APP_ENV", "development")
        self._yaml_data: dict[str, Any] = {}
        self._load_yaml_files()

    def _find_config_dir(self) -> Path:
        """Locate ``config/`` at the project root.

        ``ZAP_GATEWAY_CONFIG_DIR`` takes precedence when it is set.
        """
        override = os.getenv("ZAP_GATEWAY_CONFIG_DIR")
        if override:
            return Path(override)
        # src/zap_gateway/core/config/yaml_source.py -> project root
        return Path(__file__).resolve().parents[4] / "config"

    def _read_dir(self, directory: Path, merged: dict[str, Any]) -> dict[str, Any]:
        if not directory.exists():
            return merged
        for yaml_file in sorted(directory.glob("*.yaml")):
            with yaml_file.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            merged = deep_merge(merged, data)
        return merged

    def _load_yaml_files(self) -> None:
        merged = self._read_dir(self._config_dir / "base", {})
        merged = self._read_dir(
            self._config_dir / "environments" / self._app_env, merged
        )
        self._yaml_data = merged

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        """Look up one top-level field in the merged YAML data."""
        value = self._yaml_data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, Any]:
        """Return the merged YAML configuration."""
        return self._yaml_data
