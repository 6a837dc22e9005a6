# src/harvesthub/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/harvesthub/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `HARVESTHUB_DIRECTORY_URL`, `HARVESTHUB_DIRECTORY_TOKEN`)
- an external YAML file via `HARVESTHUB_CONFIG_PATH`

Design rule:
- Tuning knobs (default radius, slider maximum, default sort) live in YAML, not in locator code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from harvesthub.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, model_validator


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `harvesthub.config`."""
    text = resources.files("harvesthub.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "HarvestHub"
    timezone: str = "Asia/Manila"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class DirectorySettings(BaseModel):
    """Where farmer records come from: a local JSON file, or a remote JSON endpoint when `url` is set."""

    path: str = "data/farmers/farmers.json"
    url: str | None = None
    token: str | None = None


class FallbackLocation(BaseModel):
    lat: float = Field(14.5995, ge=-90, le=90)
    lon: float = Field(120.9842, ge=-180, le=180)


class LocatorSettings(BaseModel):
    default_radius_km: float = Field(10, gt=0)
    max_radius_km: float = Field(50, gt=0)
    default_sort_by: Literal["distance", "product_count"] = "distance"
    max_results_default: int = Field(50, ge=1)
    product_preview_limit: int = Field(3, ge=0)
    # Used by the CLI when the buyer does not pass a location (device geolocation denied).
    fallback_buyer_location: FallbackLocation = Field(default_factory=FallbackLocation)

    @model_validator(mode="after")
    def _validate_radius_bounds(self) -> "LocatorSettings":
        if self.default_radius_km > self.max_radius_km:
            raise ValueError("locator.default_radius_km must not exceed locator.max_radius_km")
        return self


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    locator: LocatorSettings = Field(default_factory=LocatorSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("HARVESTHUB_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    directory_path = os.getenv("HARVESTHUB_DIRECTORY_PATH")
    if directory_path:
        data.setdefault("directory", {})["path"] = directory_path

    directory_url = os.getenv("HARVESTHUB_DIRECTORY_URL")
    directory_token = os.getenv("HARVESTHUB_DIRECTORY_TOKEN")
    if directory_url:
        data.setdefault("directory", {})["url"] = directory_url
    if directory_token:
        data.setdefault("directory", {})["token"] = directory_token

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("HARVESTHUB_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
