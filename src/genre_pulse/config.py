"""Configuration management for genre-pulse.

Loads Spotify client credentials and client tuning from the environment
(and a .env file in the working directory, when present).
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"


class Market(BaseModel):
    """A dashboard market and the Spotify market code it queries."""
    code: str
    name: str


# Dashboard markets; GLOBAL has no Spotify market of its own and uses US
DEFAULT_MARKETS: dict[str, Market] = {
    "GLOBAL": Market(code="US", name="Global"),
    "BR": Market(code="BR", name="Brazil"),
    "DE": Market(code="DE", name="Germany"),
    "MX": Market(code="MX", name="Mexico"),
}


class Settings(BaseModel):
    """Application settings loaded from environment variables."""
    client_id: str = Field(default="", description="Spotify client ID")
    client_secret: str = Field(default="", description="Spotify client secret")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Spotify Web API base URL")
    token_url: str = Field(default=DEFAULT_TOKEN_URL, description="Client-credentials token endpoint")
    max_retries: int = Field(default=3, description="Attempts per logical request")
    retry_delay: float = Field(default=1.0, description="Backoff unit in seconds, multiplied by attempt number")
    retry_on_auth_error: bool = Field(default=True, description="Renew the token and retry on HTTP 401")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    default_market: str = Field(default="US", description="Spotify market used when none is given")

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id.strip() and self.client_secret.strip())


class Config(BaseModel):
    """Full application configuration."""
    settings: Settings
    markets: dict[str, Market] = Field(default_factory=lambda: dict(DEFAULT_MARKETS))

    def get_market(self, country: str) -> Market:
        """Get a market by dashboard code (e.g. GLOBAL, BR, DE)."""
        country = country.upper()
        if country not in self.markets:
            available = ", ".join(sorted(self.markets.keys()))
            raise ValueError(f"Unknown market '{country}'. Available: {available}")
        return self.markets[country]

    @property
    def all_markets(self) -> list[str]:
        """List all configured dashboard market codes."""
        return sorted(self.markets.keys())


def _env(*keys: str, default: str = "") -> str:
    """Try multiple env var names, return the first one found."""
    for key in keys:
        val = os.environ.get(key, "")
        if val:
            return val.strip().strip('"')
    return default


def _env_bool(*keys: str, default: bool) -> bool:
    raw = _env(*keys, default="true" if default else "false")
    return raw.lower() in ("true", "1", "yes")


def _load_settings() -> Settings:
    """Load settings from environment variables.

    Supports SPOTIFY_* names as well as the bare and VITE_-prefixed names
    used by the dashboard's .env.
    """
    return Settings(
        client_id=_env("SPOTIFY_CLIENT_ID", "CLIENT_ID", "VITE_SPOTIFY_CLIENT_ID"),
        client_secret=_env("SPOTIFY_CLIENT_SECRET", "CLIENT_SECRET", "VITE_SPOTIFY_CLIENT_SECRET"),
        base_url=_env("SPOTIFY_BASE_URL", default=DEFAULT_BASE_URL).rstrip("/"),
        token_url=_env("SPOTIFY_TOKEN_URL", default=DEFAULT_TOKEN_URL),
        max_retries=int(_env("SPOTIFY_MAX_RETRIES", default="3")),
        retry_delay=float(_env("SPOTIFY_RETRY_DELAY", default="1.0")),
        retry_on_auth_error=_env_bool("SPOTIFY_RETRY_ON_AUTH_ERROR", default=True),
        timeout=float(_env("SPOTIFY_TIMEOUT", default="30")),
        default_market=_env("SPOTIFY_MARKET", default="US").upper(),
    )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Load and cache the full application configuration."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    settings = _load_settings()
    if not settings.has_credentials:
        logger.warning(
            "Spotify credentials missing. Set SPOTIFY_CLIENT_ID and "
            "SPOTIFY_CLIENT_SECRET in the environment or .env; "
            "API calls will fail until they are configured."
        )

    return Config(settings=settings)
