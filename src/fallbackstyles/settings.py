"""Engine settings loaded from YAML."""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from fallbackstyles.exceptions import SettingsError
from fallbackstyles.models import DEFAULT_FALLBACK_FONT
from fallbackstyles.user_dir import get_user_dir


CONFIG_ENV = "FALLBACKSTYLES_CONFIG"
DEFAULT_APP_NAME = "fallbackstyles"


class EngineSettings(BaseModel):
    """Tunable values of the engine and its collaborators."""

    model_config = ConfigDict(extra="forbid")

    app_name: str = DEFAULT_APP_NAME
    default_fallback_font: str = DEFAULT_FALLBACK_FONT
    validation_timeout: float = Field(default=3.0, gt=0)
    autosave_delay: float = Field(default=1.0, ge=0)
    store_root: Path | None = None
    default_language_ids: list[str] = Field(default_factory=list)

    @field_validator("store_root", mode="before")
    @classmethod
    def _expand_store_root(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip():
            return Path(value).expanduser()
        return value

    def resolved_store_root(self) -> Path:
        return self.store_root or get_user_dir().store_root


def _settings_path(path: str | Path | None) -> tuple[Path | None, bool]:
    if path is not None:
        return Path(path).expanduser(), True
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser(), True
    return get_user_dir().settings_path, False


def settings_from_mapping(payload: Mapping[str, Any] | None) -> EngineSettings:
    try:
        return EngineSettings.model_validate(dict(payload or {}))
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Load settings from ``path``, ``$FALLBACKSTYLES_CONFIG`` or the user dir.

    A missing default file yields the built-in defaults; a missing file that
    was asked for explicitly is an error.
    """
    target, explicit = _settings_path(path)
    if target is None or not target.exists():
        if explicit:
            raise SettingsError(f"Settings file '{target}' does not exist.")
        return EngineSettings()
    try:
        payload = yaml.safe_load(target.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise SettingsError(f"Unable to read settings file '{target}': {exc}") from exc
    if payload is not None and not isinstance(payload, Mapping):
        raise SettingsError(f"Settings file '{target}' must contain a mapping.")
    return settings_from_mapping(payload)


__all__ = [
    "CONFIG_ENV",
    "DEFAULT_APP_NAME",
    "EngineSettings",
    "load_settings",
    "settings_from_mapping",
]
