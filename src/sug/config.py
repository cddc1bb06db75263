#!/usr/bin/env python

import os
import re
import yaml
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from rich.errors import StyleSyntaxError
from rich.style import Style

from .constants import (
    CONFIG_FILE_PATH, MAX_CONFIG_FILE_SIZE, PROVIDER_ENV_VARS,
    DEFAULT_HISTORY_LIMIT, ENV_PREFIX,
)
from .exceptions import ConfigurationError
from .models import Provider

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Resolved options for a single invocation"""
    provider: Optional[Provider] = None
    debug: bool = False
    timeout: Optional[float] = None
    history_limit: int = DEFAULT_HISTORY_LIMIT
    models: Dict[str, str] = field(default_factory=dict)
    base_urls: Dict[str, str] = field(default_factory=dict)
    theme: Dict[str, str] = field(default_factory=dict)
    source: Optional[Path] = None


def parse_duration(value: Any) -> float:
    """Parse a Go-style duration ("30s", "1m30s", "500ms") into seconds.

    Plain numbers are taken as seconds.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_duration_units(text)

    if seconds <= 0:
        raise ConfigurationError(f"Duration must be positive: {value!r}")
    return seconds


def _parse_duration_units(text: str) -> float:
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if not text or position != len(text):
        raise ConfigurationError(f"Invalid duration: {text!r} (expected e.g. 30s, 1m30s, 500ms)")
    return seconds


def parse_bool(value: Any, name: str = "debug") -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def parse_provider(value: Any) -> Provider:
    try:
        return Provider(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"unsupported provider: {value} (choose one of: {', '.join(Provider.names())})"
        )


def _parse_history_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid history_limit: {value!r}")
    if limit <= 0:
        raise ConfigurationError(f"history_limit must be positive: {value!r}")
    return limit


def _provider_mapping(config: Dict[str, Any], key: str) -> Dict[str, str]:
    """Validate a provider -> string mapping such as 'models' or 'base_urls'"""
    mapping = config.get(key) or {}
    if not isinstance(mapping, dict):
        raise ConfigurationError(f"Config field '{key}' must be a mapping of provider to value")
    result = {}
    for name, value in mapping.items():
        result[parse_provider(name).value] = str(value)
    return result


def _theme_mapping(config: Dict[str, Any]) -> Dict[str, str]:
    theme = config.get("theme") or {}
    if not isinstance(theme, dict):
        raise ConfigurationError("Config field 'theme' must be a mapping of style name to color")
    result = {}
    for name, color in theme.items():
        try:
            Style.parse(str(color))
        except StyleSyntaxError as e:
            raise ConfigurationError(f"Invalid color for theme style '{name}': {e}")
        result[str(name)] = str(color)
    return result


def read_config_file(config_path: Path = CONFIG_FILE_PATH) -> Dict[str, Any]:
    """Read the YAML config file; a missing file yields an empty config"""
    config_path = Path(config_path).expanduser()
    if not config_path.exists():
        return {}

    if not config_path.is_file() or not os.access(config_path, os.R_OK):
        raise ConfigurationError(f"Config file '{config_path}' is not readable")

    try:
        if config_path.stat().st_size > MAX_CONFIG_FILE_SIZE:
            raise ConfigurationError(f"Config file '{config_path}' is too large (>1MB)")
        with open(config_path, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file '{config_path}': {e}")
    except OSError as e:
        raise ConfigurationError(f"Error reading config file '{config_path}': {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file '{config_path}' must contain a mapping")
    return config


def settings_from_config(config: Dict[str, Any], source: Optional[Path] = None) -> Settings:
    """Validate a raw config mapping into Settings; unknown keys are ignored"""
    provider = config.get("provider")
    timeout = config.get("timeout")
    return Settings(
        provider=parse_provider(provider) if provider else None,
        debug=parse_bool(config.get("debug", False)),
        timeout=parse_duration(timeout) if timeout not in (None, "") else None,
        history_limit=_parse_history_limit(config.get("history_limit", DEFAULT_HISTORY_LIMIT)),
        models=_provider_mapping(config, "models"),
        base_urls=_provider_mapping(config, "base_urls"),
        theme=_theme_mapping(config),
        source=source,
    )


def apply_environment(settings: Settings, environ: Mapping[str, str]) -> Settings:
    """Overlay SUG_PROVIDER, SUG_DEBUG and SUG_TIMEOUT onto file settings"""
    overrides: Dict[str, Any] = {}
    if environ.get(f"{ENV_PREFIX}PROVIDER"):
        overrides["provider"] = parse_provider(environ[f"{ENV_PREFIX}PROVIDER"])
    if f"{ENV_PREFIX}DEBUG" in environ:
        overrides["debug"] = parse_bool(environ[f"{ENV_PREFIX}DEBUG"])
    if environ.get(f"{ENV_PREFIX}TIMEOUT"):
        overrides["timeout"] = parse_duration(environ[f"{ENV_PREFIX}TIMEOUT"])
    return replace(settings, **overrides) if overrides else settings


def load_settings(config_path: Optional[Path] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings from the config file, then the environment"""
    path = Path(config_path).expanduser() if config_path else CONFIG_FILE_PATH
    environ = os.environ if environ is None else environ
    config = read_config_file(path)
    settings = settings_from_config(config, source=path if config else None)
    return apply_environment(settings, environ)


def detect_provider(environ: Mapping[str, str]) -> Optional[Tuple[Provider, str]]:
    """Return the first provider whose API key is set, in fixed precedence order"""
    for name, env_var in PROVIDER_ENV_VARS.items():
        key = environ.get(env_var, "")
        if key:
            return Provider(name), key
    return None


def resolve_provider(settings: Settings, environ: Mapping[str, str]) -> Tuple[Provider, str]:
    """Pick the provider and API key for this invocation"""
    if settings.provider is None:
        detected = detect_provider(environ)
        if detected is None:
            raise ConfigurationError(
                "no AI provider found. Set one of: " + ", ".join(PROVIDER_ENV_VARS.values())
            )
        return detected

    env_var = PROVIDER_ENV_VARS[settings.provider.value]
    api_key = environ.get(env_var, "")
    if not api_key:
        raise ConfigurationError(
            f"API key not found for provider {settings.provider.value} (set {env_var})"
        )
    return settings.provider, api_key
