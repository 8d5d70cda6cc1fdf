"""Unit tests for the YAML + environment configuration layer."""

from __future__ import annotations

from pathlib import Path

import pytest

from fm4keys.config.loader import RuntimeConfig, build_runtime_config, load_config
from fm4keys.config.settings import Settings
from fm4keys.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _write_yaml(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestLoadConfig:
    def test_yaml_values_survive_merge(self, tmp_path):
        path = _write_yaml(
            tmp_path,
            "upstream:\n  current_path: /now\n  user_agent: custom/2.0\n"
            "api:\n  cors_origins:\n    - http://localhost:3000\n",
        )

        config = load_config(path, settings=_settings())

        assert config["upstream"]["current_path"] == "/now"
        assert config["upstream"]["user_agent"] == "custom/2.0"
        assert config["upstream"]["base_url"] == "https://audioapi.orf.at/fm4/json/4.0"
        assert config["api"]["cors_origins"] == ["http://localhost:3000"]
        assert config["collector"]["current_interval"] == 60.0

    def test_settings_override_yaml(self, tmp_path):
        path = _write_yaml(tmp_path, "store:\n  path: from-yaml.db\n")

        config = load_config(path, settings=_settings(database_path="from-env.db"))

        assert config["store"]["path"] == "from-env.db"

    def test_environment_variables_are_read(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CURRENT_INTERVAL_SECONDS", "15")
        monkeypatch.setenv("FM4_API_BASE_URL", "http://localhost:8080")

        config = load_config(str(tmp_path / "missing.yaml"), settings=Settings(_env_file=None))

        assert config["collector"]["current_interval"] == 15.0
        assert config["upstream"]["base_url"] == "http://localhost:8080"

    def test_missing_file_uses_settings_only(self, tmp_path):
        config = load_config(str(tmp_path / "nope.yaml"), settings=_settings())

        assert config["app"]["port"] == 3001
        assert config["store"]["path"] == "data/keys.db"

    def test_empty_file(self, tmp_path):
        config = load_config(_write_yaml(tmp_path, ""), settings=_settings())
        assert config["logging"]["level"] == "INFO"

    def test_non_mapping_top_level_raises(self, tmp_path):
        path = _write_yaml(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path, settings=_settings())

    def test_repo_config_file_loads(self):
        config_path = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

        runtime = build_runtime_config(load_config(str(config_path), settings=_settings()))

        assert runtime.current_path == "/live"
        assert runtime.schedule_path == "/broadcasts"
        assert runtime.user_agent == "FM4-Key-Server/1.0"
        assert runtime.cors_origins == ["*"]


class TestBuildRuntimeConfig:
    def test_defaults(self, tmp_path):
        runtime = build_runtime_config(load_config(str(tmp_path / "x.yaml"), settings=_settings()))

        assert isinstance(runtime, RuntimeConfig)
        assert runtime.base_url == "https://audioapi.orf.at/fm4/json/4.0"
        assert runtime.request_timeout == 30.0
        assert runtime.current_interval == 60.0
        assert runtime.schedule_interval == 300.0
        assert runtime.database_path == "data/keys.db"

    def test_flattens_sections(self):
        runtime = build_runtime_config(
            {
                "upstream": {"base_url": "http://up", "timeout": 3},
                "collector": {"current_interval": 1, "schedule_interval": 2},
                "store": {"path": ":memory:"},
                "api": {"cors_origins": ["http://localhost:3000"]},
            }
        )

        assert runtime.base_url == "http://up"
        assert runtime.request_timeout == 3
        assert runtime.current_interval == 1
        assert runtime.schedule_interval == 2
        assert runtime.database_path == ":memory:"
        assert runtime.cors_origins == ["http://localhost:3000"]

    @pytest.mark.parametrize(
        "collector",
        [{"current_interval": 0}, {"schedule_interval": -10}],
    )
    def test_non_positive_interval_raises(self, collector):
        config = {"upstream": {"base_url": "http://up"}, "collector": collector}
        with pytest.raises(ConfigurationError):
            build_runtime_config(config)

    def test_missing_base_url_raises(self):
        with pytest.raises(ConfigurationError):
            build_runtime_config({})

    def test_runtime_config_is_frozen(self):
        runtime = build_runtime_config({"upstream": {"base_url": "http://up"}})
        with pytest.raises(Exception):
            runtime.base_url = "http://other"  # type: ignore[misc]
