"""Tests for Settings and the Odoo connection models."""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pydantic
import pytest

from hrms_connector.config import Settings
from hrms_connector.models.connection import OdooConfig, PoolConfig, RetryPolicy


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_defaults_build_web_profile_config():
    config = _settings().odoo_config()

    assert config.profile == "web"
    assert config.url == "http://localhost:8069"
    assert config.pool == PoolConfig(
        min_connections=2, max_connections=10, idle_timeout=30.0, connection_timeout=10.0
    )
    assert config.retry.max_attempts == 3
    assert config.model_name("invoice") == "account.move"


def test_docker_profile_switches_endpoint():
    config = _settings(ODOO_PROFILE="Docker", ODOO_DOCKER_HOST="odoo-svc").odoo_config()

    assert config.profile == "docker"
    assert config.host == "odoo-svc"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ODOO_POOL_MAX", "4")
    monkeypatch.setenv("ODOO_MODEL_LEAVE", "custom.leave")

    config = _settings().odoo_config()

    assert config.pool.max_connections == 4
    assert config.model_name("leave") == "custom.leave"


def test_pool_bounds_are_validated():
    with pytest.raises(pydantic.ValidationError):
        _settings(ODOO_POOL_MIN=5, ODOO_POOL_MAX=2).odoo_config()


def test_retry_policy_delays():
    policy = RetryPolicy(max_attempts=4, delay=0.5, backoff_multiplier=3)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.5, 4.5]

    with pytest.raises(pydantic.ValidationError):
        RetryPolicy(max_attempts=0)


def test_connection_string_hides_password():
    config = OdooConfig(username="svc", password="s3cret", database="hr")
    assert "s3cret" not in config.connection_string
    assert "s3cret" not in repr(config)
    assert config.connection_string == "http://svc@localhost:8069/hr"


def test_cors_origins_default_from_host_and_port():
    settings = _settings(APP_HOST="127.0.0.1", APP_PORT=9000)
    assert settings.CORS_ORIGINS == ["http://127.0.0.1:9000", "http://localhost:9000"]
