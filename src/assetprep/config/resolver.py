"""Layering of configuration sources into a validated :class:`AssetPrepConfig`."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Iterable

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import AssetPrepConfig

ENV_PREFIX = "ASSETPREP__"


def expand_dotted(source: Mapping[str, Any], *, origin: str) -> dict[str, Any]:
    """Turn ``{"a.b": 1}`` style keys into nested dictionaries.

    Args:
        source: Overrides whose keys may be dotted paths.
        origin: Source name used in error messages (``file``, ``environment``, ``cli``).

    Returns:
        dict[str, Any]: Equivalent nested mapping.

    Raises:
        ConfigError: If a key is not a string or two keys disagree about nesting.
    """

    if not isinstance(source, Mapping):
        raise ConfigError(f"{origin.capitalize()} overrides must be a mapping.")

    nested: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{origin.capitalize()} override keys must be strings (got {key!r}).")
        if isinstance(value, Mapping):
            value = expand_dotted(value, origin=origin)
        set_path(nested, key.split("."), value, origin=origin)
    return nested


def set_path(target: dict[str, Any], path: list[str], value: Any, *, origin: str) -> None:
    """Store ``value`` at ``path`` inside ``target``, creating sections as needed.

    Raises:
        ConfigError: If a section along ``path`` already holds a scalar.
    """

    *sections, leaf = path
    node = target
    for section in sections:
        child = node.setdefault(section, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{origin.capitalize()} override {'.'.join(path)} conflicts with the scalar "
                f"value at '{section}'."
            )
        node = child
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = merge(node[leaf], value)
    else:
        node[leaf] = value


def merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``overrides`` applied recursively; inputs are not mutated."""
    result = deepcopy(dict(base))
    for key, value in overrides.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = merge(current, value)
        else:
            result[key] = deepcopy(value)
    return result


def parse_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``ASSETPREP__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``"true"`` and ``"250"`` become typed
    values; anything YAML rejects is kept as the raw string.
    """

    overrides: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        set_path(overrides, path, value, origin="environment")
    return overrides


def resolve_with_precedence(
    *,
    defaults: AssetPrepConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AssetPrepConfig:
    """Layer configuration sources: defaults < file < environment < CLI.

    Raises:
        ConfigError: If a layer is malformed or the merged result fails validation.
    """

    layers: Iterable[tuple[str, Mapping[str, Any] | None]] = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged = defaults.model_dump(mode="json")
    for origin, layer in layers:
        if layer:
            merged = merge(merged, expand_dotted(layer, origin=origin))

    try:
        return AssetPrepConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: AssetPrepConfig) -> dict[str, str]:
    """Render ``config`` as the environment variables that would reproduce it.

    Lists and non-empty mappings below a leaf are emitted in YAML flow style.
    """

    flat: dict[str, str] = {}
    pending: list[tuple[list[str], Any]] = [([], config.model_dump(mode="json"))]
    while pending:
        path, value = pending.pop()
        if isinstance(value, dict) and value:
            pending.extend((path + [str(key)], child) for key, child in value.items())
            continue
        name = ENV_PREFIX + "__".join(part.upper() for part in path)
        if value is None:
            flat[name] = "null"
        elif isinstance(value, (dict, list)):
            flat[name] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[name] = str(value)
    return flat


__all__ = [
    "ENV_PREFIX",
    "expand_dotted",
    "flatten_for_env",
    "merge",
    "parse_env_overrides",
    "resolve_with_precedence",
    "set_path",
]
