"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml: static defaults checked into the repo
#      (upstream paths, user agent, CORS origins)
#   2. .env file: local developer overrides (not committed)
#   3. Environment vars: set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-backed Settings values on top.  build_runtime_config()
# validates the merged dict into a frozen RuntimeConfig.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fm4keys.config.settings import Settings
from fm4keys.utils.errors import ConfigurationError


class RuntimeConfig(BaseModel):
    """Validated, immutable view of the merged configuration."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(min_length=1)
    current_path: str = "/live"
    schedule_path: str = "/broadcasts"
    user_agent: str = "FM4-Key-Server/1.0"
    request_timeout: float = Field(default=30.0, gt=0)
    current_interval: float = Field(default=60.0, gt=0)
    schedule_interval: float = Field(default=300.0, gt=0)
    database_path: str = Field(default="data/keys.db", min_length=1)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


def load_config(
    path: str = "config/config.yaml",
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  A missing file is not an
              error; the Settings defaults are used on their own.
        settings: Pre-built Settings; a fresh instance is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Top level of {config_path} must be a mapping", source_name="config"
        )

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "upstream": {
            "base_url": settings.fm4_api_base_url,
            "timeout": settings.request_timeout_seconds,
        },
        "collector": {
            "current_interval": settings.current_interval_seconds,
            "schedule_interval": settings.schedule_interval_seconds,
        },
        "store": {
            "path": settings.database_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_runtime_config(config: dict[str, Any]) -> RuntimeConfig:
    """Flatten and validate a merged config dict.

    Raises:
        ConfigurationError: When a value is missing or out of range
            (e.g. a non-positive collection interval).
    """
    upstream = config.get("upstream") or {}
    collector = config.get("collector") or {}
    store = config.get("store") or {}
    api = config.get("api") or {}

    values: dict[str, Any] = {
        "base_url": upstream.get("base_url"),
        "current_path": upstream.get("current_path"),
        "schedule_path": upstream.get("schedule_path"),
        "user_agent": upstream.get("user_agent"),
        "request_timeout": upstream.get("timeout"),
        "current_interval": collector.get("current_interval"),
        "schedule_interval": collector.get("schedule_interval"),
        "database_path": store.get("path"),
        "cors_origins": api.get("cors_origins"),
    }
    # Unset keys fall back to the model defaults.
    values = {key: value for key, value in values.items() if value is not None}

    try:
        return RuntimeConfig(**values)
    except ValidationError as exc:
        raise ConfigurationError(str(exc), source_name="config") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
