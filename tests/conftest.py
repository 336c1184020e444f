"""Shared fixtures for the genre-pulse test suite."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from genre_pulse.config import Config, Settings


@pytest.fixture
def fake_settings() -> Settings:
    return Settings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        base_url="https://api.spotify.test/v1",
        token_url="https://accounts.spotify.test/api/token",
        max_retries=3,
        retry_delay=1.0,
        retry_on_auth_error=True,
        timeout=5.0,
        default_market="US",
    )


@pytest.fixture
def fake_config(fake_settings) -> Config:
    return Config(settings=fake_settings)


@pytest.fixture
def mock_auth():
    """MagicMock standing in for TokenManager."""
    auth = MagicMock()
    auth.get_token = AsyncMock(return_value="test-token")
    auth.close = AsyncMock()
    return auth


@pytest.fixture
def mock_client():
    """MagicMock standing in for SpotifyClient."""
    client = MagicMock()
    client.request = AsyncMock()
    client.close = AsyncMock()
    return client


def make_response(status_code=200, json_data=None, text=None, headers=None) -> httpx.Response:
    """Build a real httpx.Response without a request attached."""
    if text is not None:
        return httpx.Response(status_code, text=text, headers=headers)
    return httpx.Response(status_code, json=json_data if json_data is not None else {}, headers=headers)


def make_track(track_id="t1", name="Track", popularity=50, artists=("Artist",)) -> dict:
    return {
        "id": track_id,
        "name": name,
        "popularity": popularity,
        "duration_ms": 245000,
        "artists": [{"id": f"a-{a}", "name": a} for a in artists],
        "album": {"id": "al1", "name": "Album", "images": []},
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }
