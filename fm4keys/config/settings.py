"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority order):
#
#   1. **Environment variables**, e.g. FM4_API_BASE_URL=https://...
#   2. **.env file**: key=value lines in the project root .env file
#
# Field name `database_path` maps to env var `DATABASE_PATH`.
# Defaults apply when neither an env var nor a .env entry exists.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """fm4keys application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Upstream ===
    fm4_api_base_url: str = "https://audioapi.orf.at/fm4/json/4.0"
    request_timeout_seconds: float = 30.0

    # === Collection cycles ===
    current_interval_seconds: float = 60.0
    schedule_interval_seconds: float = 300.0

    # === Key store ===
    database_path: str = "data/keys.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3001
    app_env: str = "development"
    log_level: str = "INFO"
