"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class BackendSchema(StrEnum):
    """Which upstream API shape the adapter targets."""

    LEGACY = "legacy"
    FORMULA = "formula"
    AUTO = "auto"  # try formula, fall back to legacy


class DisplayMode(StrEnum):
    """How the menu bar title renders the primary monitor."""

    ICON_ONLY = "iconOnly"
    ICON_AND_VALUE = "iconAndValue"
    ICON_NAME_VALUE = "iconNameValue"


class RefreshInterval(StrEnum):
    """Menu bar refresh cadence."""

    SECONDS_30 = "30s"
    MINUTE_1 = "1m"
    MINUTES_5 = "5m"

    @property
    def seconds(self) -> float:
        return _REFRESH_SECONDS[self]


_REFRESH_SECONDS: dict[RefreshInterval, float] = {
    RefreshInterval.SECONDS_30: 30.0,
    RefreshInterval.MINUTE_1: 60.0,
    RefreshInterval.MINUTES_5: 300.0,
}


def parse_id_list(raw: str | None) -> list[str]:
    """Split a comma-separated id list, trimming blanks.

    >>> parse_id_list(" m1, ,m2 ")
    ['m1', 'm2']
    """
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class BackendConfig(BaseModel):
    """Matsu backend API configuration."""

    url: str = "http://localhost:8000"
    username: str = ""
    password: SecretStr = SecretStr("")
    schema_version: BackendSchema = BackendSchema.LEGACY
    timeout_secs: float = 10.0
    login_path: str = "/api/auth/login"

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


class PreferencesConfig(BaseModel):
    """User preferences normally supplied by the host launcher."""

    monitor_order: str = ""
    menu_bar_monitors: str = ""
    menu_bar_display_mode: DisplayMode = DisplayMode.ICON_AND_VALUE
    menu_bar_refresh_interval: RefreshInterval = RefreshInterval.MINUTE_1
    rotation_secs: float = 3.0
    history_days: int = 7

    @property
    def custom_order(self) -> list[str]:
        return parse_id_list(self.monitor_order)

    @property
    def pinned_monitors(self) -> list[str]:
        return parse_id_list(self.menu_bar_monitors)


class StorageConfig(BaseModel):
    """Local annotation storage."""

    path: str = "~/.config/matsu/annotations.json"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    backend: BackendConfig = BackendConfig()
    preferences: PreferencesConfig = PreferencesConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()


def _normalize_backend_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Accept ``schema`` as the YAML key for ``schema_version``."""
    backend = data.get("backend")
    if isinstance(backend, dict) and "schema" in backend:
        backend = dict(backend)
        backend.setdefault("schema_version", backend.pop("schema"))
        data = {**data, "backend": backend}
    return data


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = _normalize_backend_keys(raw)

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
