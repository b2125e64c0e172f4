"""Configuration loading.

Settings come from, in increasing priority: built-in defaults, a JSON or
YAML config file, and ``LOCALE_SYNC_*`` environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pydantic
import structlog
import yaml
from pydantic.alias_generators import to_snake

from locale_sync.config.settings import Settings
from locale_sync.errors import ConfigurationError

logger = structlog.get_logger(__name__)

CONFIG_CANDIDATES = (
    "i18n.config.json",
    "i18n.config.yaml",
    "i18n.config.yml",
    "translation.config.json",
    "translation.config.yaml",
)

ENV_OVERRIDES: Dict[str, Tuple[str, ...]] = {
    "LOCALE_SYNC_LOCALES_PATH": ("locales_path",),
    "LOCALE_SYNC_SOURCE_LANG": ("default_source_lang",),
    "LOCALE_SYNC_BATCH_SIZE": ("rate_limiting", "batch_size"),
    "LOCALE_SYNC_BATCH_DELAY_MS": ("rate_limiting", "delay_between_batches"),
}


def find_config(directory: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Return the first config file present in ``directory`` (default: cwd)."""
    base = Path(directory or Path.cwd())
    for name in CONFIG_CANDIDATES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Parse a JSON or YAML config file into a dict."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}", previous_error=e) from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}", previous_error=e) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _normalize(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Snake-case the top-level keys and the rate limiting section."""
    values = {to_snake(key): value for key, value in data.items()}
    section = values.get("rate_limiting")
    if isinstance(section, Mapping):
        values["rate_limiting"] = {to_snake(key): value for key, value in section.items()}
    return values


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ``LOCALE_SYNC_*`` values as a nested snake_case mapping."""
    environ = os.environ if environ is None else environ

    overrides: Dict[str, Any] = {}
    for env_name, (*parents, field) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        target = overrides
        for parent in parents:
            target = target.setdefault(parent, {})
        target[field] = raw
    return overrides


def _merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def build_settings(data: Mapping[str, Any]) -> Settings:
    """Validate a config mapping into settings.

    Raises:
        ConfigurationError: Naming the first offending key
    """
    try:
        return Settings.model_validate(dict(data))
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        config_key = ".".join(to_snake(str(part)) for part in first["loc"])
        raise ConfigurationError(
            f"Invalid configuration value for {config_key or 'config'}: {first['msg']}",
            config_key=config_key or None,
            previous_error=e,
        ) from e


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    directory: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load and validate settings.

    Args:
        config_file: Explicit config file; must exist when given
        directory: Where to look for a config file when none is given
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Validated settings
    """
    path = Path(config_file) if config_file else find_config(directory)

    if path is None:
        logger.debug("No config file found, using defaults")
        data: Dict[str, Any] = {}
    else:
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}", config_key="config_file")
        logger.info("Loading config file", path=str(path))
        data = _normalize(read_config_file(path))

    return build_settings(_merge(data, env_overrides(environ)))
