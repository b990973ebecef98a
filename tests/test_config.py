from pathlib import Path

import pytest
from pydantic import ValidationError

from src.imgdrop.core.config import load_settings
from src.imgdrop.core.errors import ConfigError
from src.imgdrop.core.rate_limiter import limiter
from src.imgdrop.main import create_app

KEY = "a" * 32


def test_defaults():
    settings = load_settings({"API_KEY": KEY})
    assert settings.port == 3000
    assert settings.upload_dir == Path("./uploads")
    assert settings.base_url == "http://localhost:3000"
    assert settings.rate_limit_enabled is True


def test_base_url_follows_port_and_strips_slash():
    assert load_settings({"API_KEY": KEY, "PORT": "8080"}).base_url == (
        "http://localhost:8080"
    )
    settings = load_settings({"API_KEY": KEY, "BASE_URL": "https://cdn.example.com/"})
    assert settings.base_url == "https://cdn.example.com"


def test_overrides():
    settings = load_settings(
        {
            "API_KEY": KEY,
            "UPLOAD_DIR": "/srv/images",
            "RATE_LIMIT_ENABLED": "false",
            "LOG_LEVEL": "debug",
        },
    )
    assert settings.upload_dir == Path("/srv/images")
    assert settings.rate_limit_enabled is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("env", [{}, {"API_KEY": ""}, {"API_KEY": "a" * 31}])
def test_short_or_missing_key_is_rejected(env):
    with pytest.raises(ConfigError):
        load_settings(env)


@pytest.mark.parametrize("port", ["abc", "0", "70000"])
def test_bad_port_is_rejected(port):
    with pytest.raises(ConfigError):
        load_settings({"API_KEY": KEY, "PORT": port})


def test_settings_are_immutable():
    settings = load_settings({"API_KEY": KEY})
    with pytest.raises(ValidationError):
        settings.port = 1


def test_key_not_in_repr():
    assert KEY not in repr(load_settings({"API_KEY": KEY}))


def test_create_app_creates_storage_root(tmp_path):
    target = tmp_path / "nested" / "uploads"
    settings = load_settings({"API_KEY": KEY, "UPLOAD_DIR": str(target)})
    app = create_app(settings)
    assert target.is_dir()
    assert app.state.settings.upload_dir == target.resolve()


def test_create_app_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("API_KEY", KEY)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "env-uploads"))
    app = create_app()
    assert app.state.settings.api_key == KEY


def test_create_app_fails_fast_without_key(monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(ConfigError):
        create_app()


def test_rate_limiting_follows_settings(tmp_path):
    env = {"API_KEY": KEY, "UPLOAD_DIR": str(tmp_path)}
    create_app(load_settings({**env, "RATE_LIMIT_ENABLED": "true"}))
    assert limiter.enabled is True
    create_app(load_settings({**env, "RATE_LIMIT_ENABLED": "0"}))
    assert limiter.enabled is False
