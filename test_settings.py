"""Tests for settings and configuration."""

import pytest

import config.settings as settings_module
from config.config import EngineConfig
from config.settings import (
    ProductionSettings, Settings, create_default_config_file,
    get_environment_settings, get_settings, update_settings, validate_settings
)


def test_environment_settings():
    settings = get_environment_settings("testing")
    assert settings.state_backend == "memory"
    assert settings.database_url == "sqlite://"
    assert settings.random_seed == 42

    assert isinstance(get_environment_settings("production"), ProductionSettings)


def test_settings_build_engine_config():
    settings = Settings(prior_beta=2.0, spillover_factor=0.5, max_focus_minutes=90)
    config = settings.to_engine_config()

    assert isinstance(config, EngineConfig)
    assert config.bandit.prior_beta == 2.0
    assert config.bandit.spillover_factor == 0.5
    assert config.bounds.max_focus == 90
    assert config.zones.history_limit == 10


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("STATE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_PORT", "6380")
    settings = Settings()
    assert settings.state_backend == "redis"
    assert settings.redis_port == 6380


def test_validate_settings():
    assert validate_settings(get_environment_settings("testing"))

    with pytest.raises(ValueError):
        validate_settings(Settings(state_backend="floppy"))

    with pytest.raises(ValueError):
        validate_settings(Settings(ewma_alpha=1.5))

    with pytest.raises(ValueError):
        validate_settings(Settings(min_focus_minutes=60, max_focus_minutes=30))


def test_create_default_config_file(tmp_path):
    path = tmp_path / ".env"
    create_default_config_file(str(path))

    content = path.read_text()
    assert 'STATE_BACKEND="sql"' in content
    assert "PRIOR_BETA=1.5" in content


def test_update_settings(monkeypatch):
    monkeypatch.setattr(settings_module, "_settings", None)
    settings = update_settings(log_level="DEBUG", not_a_setting=1)

    assert settings.log_level == "DEBUG"
    assert get_settings() is settings
    assert not hasattr(settings, "not_a_setting")
