"""Configuration loading for the Ambassador pointings admin tool."""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional


CONFIG_ENV_PREFIX = "AMBASSADOR_POINTINGS_"
CONFIG_FILE_ENV = f"{CONFIG_ENV_PREFIX}CONFIG"

# Variable names understood by the legacy shell helper.
LEGACY_ENV_NAMES = {
    "DEFAULT_DEMO_FQDN": "demo_fqdn",
    "DEFAULT_QA_FQDN": "qa_fqdn",
    "SCHEME": "scheme",
    "LIST_PATH": "list_path",
    "UPDATE_PATH": "update_path",
}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    demo_fqdn: str = "dev-ambassador-22.birdeye.internal:8080"
    qa_fqdn: str = "qa-ambassador5.birdeye.internal:8080"
    scheme: str = "http"
    list_path: str = "/ambassador/admin/list-microservice-endpoint"
    update_path: str = "/ambassador/admin/update-microservice-endpoint"
    connect_timeout: float = 5.0
    timeout: float = 20.0
    armor_domain: str = "birdeye.internal"
    armor_fallback_host: str = "armor.example.internal"
    health_path: str = "/health/check"
    picker: str = "auto"
    output: str = "table"
    log_level: str = "WARNING"
    log_format: str = "plain"

    def __post_init__(self) -> None:
        _validate_config(self)

    def logging_dict(self) -> Dict[str, Any]:
        """Return a mapping suitable for structured logging."""

        return {field.name: getattr(self, field.name) for field in fields(self)}

    @classmethod
    def from_sources(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from defaults, file, legacy env and env (in that order)."""

        environ = os.environ if environ is None else environ
        file_config = _load_file_config(_coerce_path(environ.get(CONFIG_FILE_ENV)))
        legacy_config = _load_legacy_env_config(environ)
        env_config = _load_env_config(CONFIG_ENV_PREFIX, environ)

        config = cls()
        config = _apply_mapping(config, file_config)
        config = _apply_mapping(config, legacy_config)
        config = _apply_mapping(config, env_config)
        return config


def _validate_config(config: Config) -> None:
    _validate_choice("scheme", config.scheme, {"http", "https"})
    _validate_choice("picker", config.picker, {"auto", "picker", "numbered", "plain"})
    _validate_choice("output", config.output, {"table", "json", "yaml"})
    _validate_choice("log_format", config.log_format, {"plain", "json"})
    _validate_choice("log_level", config.log_level.upper(), _LOG_LEVELS)
    for name in ("list_path", "update_path", "health_path"):
        _validate_path(name, getattr(config, name))
    for name in ("demo_fqdn", "qa_fqdn", "armor_domain", "armor_fallback_host"):
        if not getattr(config, name).strip():
            raise ValueError(f"{name} must not be empty.")
    _validate_range("connect_timeout", config.connect_timeout, 0.1, 60.0)
    _validate_range("timeout", config.timeout, 0.1, 300.0)
    if config.timeout < config.connect_timeout:
        raise ValueError(
            f"timeout ({config.timeout}) must not be shorter than connect_timeout ({config.connect_timeout})."
        )


def _validate_range(name: str, value: float, minimum: float, maximum: float) -> None:
    if value < minimum or value > maximum:
        raise ValueError(f"{name} must be between {minimum} and {maximum}; got {value}.")


def _validate_choice(name: str, value: str, allowed: set[str]) -> None:
    if value not in allowed:
        raise ValueError(f"{name} must be one of {sorted(allowed)}; got {value}.")


def _validate_path(name: str, value: str) -> None:
    if not value.startswith("/"):
        raise ValueError(f"{name} must start with '/'; got {value!r}.")


def _load_file_config(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as f:
        parsed = tomllib.load(f)
    if not isinstance(parsed, Mapping):
        raise ValueError("Configuration file must contain a TOML table.")
    return {k.replace("-", "_"): v for k, v in parsed.items()}


def _load_legacy_env_config(environ: Mapping[str, str]) -> Dict[str, Any]:
    return {
        field: environ[name]
        for name, field in LEGACY_ENV_NAMES.items()
        if environ.get(name)
    }


def _load_env_config(prefix: str, environ: Mapping[str, str]) -> Dict[str, Any]:
    mapping: Dict[str, Any] = {}
    for field in Config.__dataclass_fields__:
        env_key = f"{prefix}{field}".upper()
        if env_key in environ:
            mapping[field] = environ[env_key]
    return mapping


def _apply_mapping(config: Config, overrides: Mapping[str, Any]) -> Config:
    data: MutableMapping[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key not in Config.__dataclass_fields__:
            raise ValueError(f"Unknown configuration key: {key}")
        if key in {"connect_timeout", "timeout"}:
            data[key] = float(value)
        elif key == "log_level":
            data[key] = str(value).upper()
        elif key in {"scheme", "picker", "output", "log_format"}:
            data[key] = str(value).strip().lower()
        else:
            data[key] = str(value).strip()
    return replace(config, **data)


def _coerce_path(value: Any) -> Optional[Path]:
    if not value:
        return None
    return value if isinstance(value, Path) else Path(str(value)).expanduser()


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Public helper used by the entrypoint."""

    try:
        return Config.from_sources(environ)
    except Exception as exc:
        print(f"Failed to load configuration: {exc}", file=sys.stderr)
        raise
