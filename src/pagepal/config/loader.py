"""
Configuration loading for PagePal.

Settings are layered, later layers winning:

1. Model defaults (settings.py)
2. A YAML file: the explicit path, else ``$PAGEPAL_CONFIG``, else the
   first ``pagepal.yaml`` found by ``get_default_config_path()``
3. Environment variables named ``PAGEPAL__{SECTION}__{KEY}``, e.g.
   ``PAGEPAL__CAPTURE__MAX_CAPTURES=20``

Environment values are read as YAML scalars, so ``false``, ``0.5`` and
``["main", "article"]`` arrive typed.
"""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from pagepal.config.settings import Settings
from pagepal.core.exceptions import ConfigurationError

ENV_PREFIX = "PAGEPAL"
CONFIG_FILE_NAME = "pagepal.yaml"

_settings_instance: Settings | None = None


def _merge(target: dict[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively fold ``layer`` into ``target`` (mutated and returned)."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        elif isinstance(value, Mapping):
            target[key] = _merge({}, value)
        else:
            target[key] = value
    return target


def _coerce_env_value(raw: str) -> Any:
    """
    Interpret an environment value as a YAML scalar or flow sequence.

    Anything YAML would turn into a mapping, or cannot parse (log format
    strings, for instance), is kept verbatim.
    """
    if raw == "":
        return None
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    return raw if isinstance(value, dict) else value


def env_overrides(
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """
    Collect ``{PREFIX}__{SECTION}__{KEY}`` variables into a nested dict.

    Args:
        environ: Variables to scan (``os.environ`` when None)
        prefix: Variable prefix

    Returns:
        Nested overrides, e.g. ``{"capture": {"max_captures": 20}}``
    """
    environ = os.environ if environ is None else environ
    marker = f"{prefix}__"
    overrides: dict[str, Any] = {}

    for name, raw in environ.items():
        if not name.startswith(marker):
            continue

        *sections, key = name[len(marker):].lower().split("__")
        if not sections or not key:
            continue

        node = overrides
        for section in sections:
            node = node.setdefault(section, {})
        node[key] = _coerce_env_value(raw)

    return overrides


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a YAML configuration file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}",
            details={"path": str(path)},
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got: {type(content).__name__}",
            details={"path": str(path)},
        )
    return content


def get_default_config_path() -> Path | None:
    """
    First existing configuration file among the usual locations.

    Looks for ``pagepal.yaml`` in the working directory, then in
    ``~/.config/pagepal/``.
    """
    for candidate in (
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".config" / "pagepal" / CONFIG_FILE_NAME,
    ):
        if candidate.is_file():
            return candidate
    return None


def _resolve_config_path(config_path: Path | str | None, prefix: str) -> Path | None:
    if config_path is not None:
        return Path(config_path)
    from_env = os.environ.get(f"{prefix}_CONFIG")
    if from_env:
        return Path(from_env)
    return None


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = ENV_PREFIX,
) -> Settings:
    """
    Build validated settings from file and environment layers.

    Args:
        config_path: YAML file to read. When None, ``$PAGEPAL_CONFIG`` is
            used if set; otherwise defaults and environment only.
        env_prefix: Prefix for environment variables

    Returns:
        Validated Settings instance

    Raises:
        FileNotFoundError: If the chosen file doesn't exist
        ConfigurationError: If the file is malformed or values are invalid
    """
    data: dict[str, Any] = {}

    path = _resolve_config_path(config_path, env_prefix)
    if path is not None:
        _merge(data, read_config_file(path))

    _merge(data, env_overrides(prefix=env_prefix))

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} validation error(s)",
            details={"errors": [".".join(str(p) for p in err["loc"]) for err in e.errors()]},
        ) from e


def get_settings(
    config_path: Path | str | None = None,
    reload: bool = False,
) -> Settings:
    """
    Process-wide settings, loaded on first use.

    Args:
        config_path: YAML file (only read on first load or reload)
        reload: Force a fresh load
    """
    global _settings_instance

    if _settings_instance is None or reload:
        _settings_instance = load_config(config_path)
    return _settings_instance


def reset_settings() -> None:
    """Forget the process-wide settings."""
    global _settings_instance
    _settings_instance = None
