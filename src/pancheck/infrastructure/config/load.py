"""Layered configuration loading: defaults < YAML < environment < CLI."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_GENERAL_KEYS = ("app_name", "environment", "locale")

# Flat key prefix -> YAML section. "log_" is the one prefix that differs
# from its section name.
_FLAT_PREFIXES: dict[str, str] = {
    "http_": "http",
    "log_": "logging",
    "baidu_": "baidu",
}
_SECTIONS = frozenset(_FLAT_PREFIXES.values())


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Merge *layer* into *target* in place; nested mappings merge per key."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _split_flat_key(key: str) -> tuple[str, str] | None:
    for prefix, section in _FLAT_PREFIXES.items():
        if key.startswith(prefix) and len(key) > len(prefix):
            return section, key[len(prefix):]
    return None


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape used by ``config.yaml``.

    Accepts both ``{"baidu": {"timeout_seconds": 5}}`` and the flat form
    ``{"baidu_timeout_seconds": 5}`` used by env vars and CLI flags. Flat
    keys win over a sectioned block within the same layer. Unknown keys
    are dropped.
    """
    shaped: dict[str, Any] = {
        key: layer[key] for key in _GENERAL_KEYS if key in layer
    }

    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            shaped[section] = dict(block)

    for key, value in layer.items():
        split = _split_flat_key(key)
        if split is None:
            continue
        section, field = split
        shaped.setdefault(section, {})[field] = value

    return shaped


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"Config YAML must be a mapping, got: {type(parsed).__name__}"
        )
    return parsed


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterator[Mapping[str, Any]]:
    """Yield raw layers, lowest precedence first."""
    yield deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        yield _read_yaml_config(config_path)
    yield EnvOverrides().to_update_dict()
    yield cli_overrides


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated application config.

    A ``.env`` file, when given, is loaded into the process environment
    first (without overriding variables already set) so it takes part in
    the environment layer. Nothing is ever written to disk.

    Raises:
        FileNotFoundError: An explicitly given config or dotenv file is missing.
        ValueError: The YAML file is not a mapping.
        pydantic.ValidationError: The merged values are invalid.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    merged: dict[str, Any] = {}
    for layer in _layers(config_path, cli_overrides or {}):
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
