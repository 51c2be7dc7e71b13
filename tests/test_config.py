"""Tests for config loading."""

import pytest

from prenatal_chat.config import PrenatalChatConfig, load_config, resolve_env_vars


@pytest.fixture(autouse=True)
def _isolate(monkeypatch, tmp_path):
    """Run from an empty directory with no config env vars set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("PRENATAL_CHAT_CONFIG_PATH", "DATABASE_URL", "FASTAPI_URL", "FRONTEND_URL"):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_no_file_returns_defaults(self):
        cfg = load_config()
        assert isinstance(cfg, PrenatalChatConfig)
        assert cfg.server.port == 3001
        assert cfg.gateway.url == "http://localhost:8001"
        assert cfg.gateway.timeout_seconds == 30.0
        assert cfg.rate_limit.max_requests == 200
        assert cfg.rate_limit.window_seconds == 900
        assert cfg.rate_limit.trust_proxy is False
        assert cfg.database.url.startswith("sqlite")

    def test_legacy_env_names(self, monkeypatch):
        monkeypatch.setenv("FASTAPI_URL", "http://ai:9000")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
        monkeypatch.setenv("FRONTEND_URL", "https://app.example")
        cfg = load_config()
        assert cfg.gateway.url == "http://ai:9000"
        assert cfg.database.url == "sqlite:///./other.db"
        assert "https://app.example" in cfg.server.allowed_origins


class TestYamlFile:
    def test_loads_working_directory_file(self, tmp_path):
        (tmp_path / "prenatal_chat.yaml").write_text(
            "server:\n  port: 4000\ngateway:\n  model_name: custom\n"
        )
        cfg = load_config()
        assert cfg.server.port == 4000
        assert cfg.gateway.model_name == "custom"

    def test_env_var_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AI_HOST", "ai.internal")
        path = tmp_path / "custom.yaml"
        path.write_text("gateway:\n  url: http://${AI_HOST}:8001\n")
        cfg = load_config(config_path=str(path))
        assert cfg.gateway.url == "http://ai.internal:8001"

    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(config_path=str(tmp_path / "missing.yaml"))


class TestEnvOverrides:
    def test_section_overrides_are_coerced(self, monkeypatch):
        monkeypatch.setenv("PRENATAL_CHAT_RATE_LIMIT_MAX_REQUESTS", "5")
        monkeypatch.setenv("PRENATAL_CHAT_RATE_LIMIT_ENABLED", "false")
        monkeypatch.setenv("PRENATAL_CHAT_SERVER_PORT", "8080")
        cfg = load_config()
        assert cfg.rate_limit.max_requests == 5
        assert cfg.rate_limit.enabled is False
        assert cfg.server.port == 8080

    def test_trust_proxy_from_env(self, monkeypatch):
        monkeypatch.setenv("PRENATAL_CHAT_RATE_LIMIT_TRUST_PROXY", "true")
        cfg = load_config()
        assert cfg.rate_limit.trust_proxy is True

    def test_origins_from_comma_list(self, monkeypatch):
        monkeypatch.setenv(
            "PRENATAL_CHAT_SERVER_ALLOWED_ORIGINS", "http://a.test, http://b.test"
        )
        cfg = load_config()
        assert cfg.server.allowed_origins == ["http://a.test", "http://b.test"]


class TestResolveEnvVars:
    def test_missing_var_resolves_empty(self):
        assert resolve_env_vars("x-${PRENATAL_CHAT_UNSET_VAR}-y") == "x--y"
