"""Process configuration loaded once from the environment."""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from src.imgdrop.core.constants import MIN_API_KEY_LENGTH
from src.imgdrop.core.errors import ConfigError

# Defaults
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"  # noqa: S104
DEFAULT_UPLOAD_DIR = "./uploads"
DEFAULT_LOG_LEVEL = "INFO"

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Immutable settings shared read-only by every request."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(default=DEFAULT_PORT, description="Listening port")
    host: str = Field(default=DEFAULT_HOST, description="Listening interface")
    api_key: str = Field(repr=False, description="Shared bearer secret")
    upload_dir: Path = Field(
        default=Path(DEFAULT_UPLOAD_DIR),
        description="Storage root for written images",
    )
    base_url: str = Field(description="Externally visible base URL")
    rate_limit_enabled: bool = Field(default=True, description="Enable slowapi")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Root log level")


def _parse_port(raw: str | None) -> int:
    if raw is None or raw.strip() == "":
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError as err:
        msg = f"PORT must be an integer, got {raw!r}"
        raise ConfigError(msg) from err
    if not 0 < port < 65536:  # noqa: PLR2004
        msg = f"PORT must be between 1 and 65535, got {port}"
        raise ConfigError(msg)
    return port


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from environment variables.

    Raises ConfigError when API_KEY is missing or shorter than 32 characters.
    """
    env = os.environ if environ is None else environ

    api_key = env.get("API_KEY", "")
    if len(api_key) < MIN_API_KEY_LENGTH:
        msg = (
            f"API_KEY must be set and be at least {MIN_API_KEY_LENGTH} "
            "characters long"
        )
        raise ConfigError(msg)

    port = _parse_port(env.get("PORT"))
    base_url = env.get("BASE_URL") or f"http://localhost:{port}"

    return Settings(
        port=port,
        host=env.get("HOST") or DEFAULT_HOST,
        api_key=api_key,
        upload_dir=Path(env.get("UPLOAD_DIR") or DEFAULT_UPLOAD_DIR),
        base_url=base_url.rstrip("/"),
        rate_limit_enabled=env.get("RATE_LIMIT_ENABLED", "true").lower() in _TRUTHY,
        log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
