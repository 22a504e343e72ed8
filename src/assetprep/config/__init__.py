"""Configuration management for assetprep.

Settings live in a YAML file (``~/.assetprep/config.yaml`` by default) and can
be overridden per process with ``ASSETPREP__SECTION__KEY`` environment
variables and per invocation with CLI flags.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import AssetPrepConfig
from .resolver import (
    ENV_PREFIX,
    flatten_for_env,
    parse_env_overrides,
    resolve_with_precedence,
    set_path,
)

DEFAULT_CONFIG_PATH = Path("~/.assetprep/config.yaml")
LOG_FILENAME = "assetprep.log"

_HEADER_LINES = (
    "# assetprep configuration file",
    "# Edit with `assetprep config edit` or `assetprep config set KEY --value VALUE`.",
)
STAMP_PREFIX = "# Last updated:"


def _parse_mapping(text: str, *, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source.capitalize()} must contain a mapping at the top level.")
    return data


class ConfigManager:
    """Read, validate, and write the assetprep configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the configuration file location."""
        return self._config_path

    @property
    def log_path(self) -> Path:
        """Return the log file kept next to the configuration file."""
        return self._config_path.parent / LOG_FILENAME

    def ensure_exists(self) -> Path:
        """Write a defaults file when none exists yet and return its path."""
        if not self._config_path.exists():
            self.save(AssetPrepConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the raw file contents, or an empty string if there is no file."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored in the configuration file."""
        return _parse_mapping(self.read_text(), source="configuration file")

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> AssetPrepConfig:
        """Resolve the effective configuration.

        Args:
            cli_overrides: Dotted keys supplied on the command line.
            include_env: Whether ``ASSETPREP__`` variables are applied.
            ensure_file: Create the defaults file first when it is missing.
            env_overrides: Environment to read instead of the process environment.

        Returns:
            AssetPrepConfig: Validated configuration.

        Raises:
            ConfigError: If the file is unreadable or a value fails validation.
        """

        if ensure_file:
            self.ensure_exists()
        env_layer = None
        if include_env:
            env_layer = parse_env_overrides(
                env_overrides if env_overrides is not None else self._env
            )
        return resolve_with_precedence(
            defaults=AssetPrepConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_layer,
            cli_overrides=cli_overrides,
        )

    def save(self, config: AssetPrepConfig | Mapping[str, Any]) -> None:
        """Write ``config`` with the standard header and a fresh timestamp."""
        data = config.model_dump(mode="json") if isinstance(config, AssetPrepConfig) else config
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            "\n".join([*_HEADER_LINES, f"{STAMP_PREFIX} {stamp}", body]), encoding="utf-8"
        )

    def set_value(self, key: str, raw_value: str) -> AssetPrepConfig:
        """Persist a single dotted ``key`` parsed from a YAML literal.

        Args:
            key: Dotted path such as ``processing.chunk_size``.
            raw_value: YAML literal to store.

        Returns:
            AssetPrepConfig: The configuration as validated with the new value.

        Raises:
            ConfigError: If the key is empty, the value does not parse, or the
                result fails validation. The file is left untouched.
        """

        path = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not path:
            raise ConfigError("KEY must be a dotted path such as 'processing.throttle_limit'.")
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value for {key}: {exc}") from exc

        data = self.load_file_overrides()
        set_path(data, path, value, origin="cli")
        validated = resolve_with_precedence(defaults=AssetPrepConfig(), file_overrides=data)
        self.save(data)
        return validated

    def apply_text(self, text: str) -> AssetPrepConfig:
        """Validate edited file contents and save them.

        Raises:
            ConfigError: If the text is not a valid configuration mapping.
        """

        data = _parse_mapping(text, source="edited configuration")
        validated = resolve_with_precedence(defaults=AssetPrepConfig(), file_overrides=data)
        self.save(data)
        return validated


__all__ = [
    "AssetPrepConfig",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "STAMP_PREFIX",
    "flatten_for_env",
    "resolve_with_precedence",
]
