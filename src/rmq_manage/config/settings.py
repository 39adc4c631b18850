"""Configuration loading with Dynaconf, validated into AppConfig."""

from pathlib import Path
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from rmq_manage.config.platform_dirs import get_config_location
from rmq_manage.config.schemas.app_schema import AppConfig
from rmq_manage.domain.base.exceptions import ConfigurationError

ENVVAR_PREFIX = "RMQ_MANAGE"
SETTINGS_FILE_NAMES = ("rmq_manage.yaml", "rmq_manage.toml", "rmq_manage.json")


def _default_settings_files() -> list[str]:
    config_dir = get_config_location()
    return [str(config_dir / name) for name in SETTINGS_FILE_NAMES]


def load_settings(settings_file: Optional[str] = None) -> Dynaconf:
    """
    Load raw settings from file, environment and .env.

    Environment variables use the ``RMQ_MANAGE_`` prefix with ``__`` for nesting,
    e.g. ``RMQ_MANAGE_BROKER__API_URL``.
    """
    settings_files = [settings_file] if settings_file else _default_settings_files()
    if settings_file and not Path(settings_file).exists():
        raise ConfigurationError(f"Configuration file not found: {settings_file}")
    return Dynaconf(
        settings_files=settings_files,
        envvar_prefix=ENVVAR_PREFIX,
        load_dotenv=True,
        merge_enabled=True,
    )


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


def load_config(settings_file: Optional[str] = None) -> AppConfig:
    """Load settings and validate them into an AppConfig."""
    settings = load_settings(settings_file)
    raw = _lower_keys(settings.as_dict())

    data = {key: raw[key] for key in ("broker", "logging", "templates") if key in raw}
    broker = dict(data.get("broker") or {})
    # Flat credentials: RMQ_MANAGE_USERNAME / RMQ_MANAGE_PASSWORD
    for key in ("username", "password"):
        if raw.get(key) and not broker.get(key):
            broker[key] = str(raw[key])
    if broker:
        data["broker"] = broker

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
