"""
Process configuration for the Repo Mirror API.

Settings are read once at start-up from the environment (and a local .env
file) and handed to every pipeline invocation by reference.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:8080",
)


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""
    github_token: Optional[str] = None
    gemini_api_key: Optional[str] = None
    port: int = 3000
    github_api_url: str = DEFAULT_GITHUB_API_URL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    github_timeout: float = 30.0  # seconds, per GitHub call
    gemini_timeout: float = 60.0  # seconds, for the single assessment call
    pr_page_limit: int = 10
    rate_limit: str = "10/minute"
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _read_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def _read_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def settings_from_env(env: Mapping[str, str]) -> Settings:
    """Build Settings from a mapping of environment variables."""
    origins = env.get("ALLOWED_ORIGINS")
    if origins:
        allowed_origins = tuple(o.strip() for o in origins.split(",") if o.strip())
    else:
        allowed_origins = DEFAULT_ALLOWED_ORIGINS

    return Settings(
        github_token=env.get("GITHUB_PAT") or None,
        gemini_api_key=env.get("GEMINI_API_KEY") or None,
        port=_read_int(env, "PORT", 3000),
        github_api_url=(env.get("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL).rstrip("/"),
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        github_timeout=_read_float(env, "GITHUB_TIMEOUT", 30.0),
        gemini_timeout=_read_float(env, "GEMINI_TIMEOUT", 60.0),
        pr_page_limit=_read_int(env, "PR_PAGE_LIMIT", 10),
        rate_limit=env.get("RATE_LIMIT") or "10/minute",
        allowed_origins=allowed_origins,
        environment=(env.get("ENVIRONMENT") or "development").lower(),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )


def load_settings() -> Settings:
    """Load .env (if present) and read Settings from the process environment."""
    load_dotenv()
    return settings_from_env(os.environ)
