"""Configuration module — exports Settings, load_config and RuntimeConfig."""

from fm4keys.config.loader import RuntimeConfig, build_runtime_config, load_config
from fm4keys.config.settings import Settings

__all__ = ["RuntimeConfig", "Settings", "build_runtime_config", "load_config"]
