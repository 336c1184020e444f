"""Tests for client.py — retry state machine, auth recovery, de-duplication."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, call

import httpx
import pytest

from conftest import make_response
from genre_pulse.client import SpotifyClient
from genre_pulse.exceptions import (
    AuthenticationFailedError,
    ClientError,
    ConfigurationError,
    ProtocolError,
    RateLimitedError,
    RequestExhaustedError,
    UpstreamServerError,
)


@pytest.fixture
def client(fake_config, mock_auth):
    """Client whose HTTP layer and sleeps are mocked."""
    c = SpotifyClient(fake_config, mock_auth, max_retries=3, retry_delay=1.0)
    c._http = MagicMock()
    c._http.get = AsyncMock()
    c._sleep = AsyncMock()
    return c


# ── Request construction ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_bearer_header(client):
    client._http.get.return_value = make_response(200, {})
    await client.request("/search", {"q": "techno"})

    headers = client._http.get.call_args[1]["headers"]
    assert headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
async def test_url_built_from_base_url(client):
    client._http.get.return_value = make_response(200, {})
    await client.request("/tracks/abc")

    assert client._http.get.call_args[0][0] == "https://api.spotify.test/v1/tracks/abc"


@pytest.mark.asyncio
async def test_params_sent_sorted_as_strings(client):
    client._http.get.return_value = make_response(200, {})
    await client.request("/search", {"type": "track", "limit": 50, "q": "house"})

    assert client._http.get.call_args[1]["params"] == [("limit", "50"), ("q", "house"), ("type", "track")]


@pytest.mark.asyncio
async def test_returns_parsed_json(client):
    client._http.get.return_value = make_response(200, {"tracks": {"items": []}})
    assert await client.request("/search", {"q": "x"}) == {"tracks": {"items": []}}


# ── 5xx — backoff and exhaustion ─────────────────────────────────────

@pytest.mark.asyncio
async def test_503_exhausts_after_three_attempts(client):
    client._http.get.return_value = make_response(503)

    with pytest.raises(RequestExhaustedError) as exc_info:
        await client.request("/search", {"q": "techno"})

    assert client._http.get.call_count == 3
    assert client._sleep.await_args_list == [call(1.0), call(2.0)]
    assert exc_info.value.endpoint == "/search"
    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, UpstreamServerError)


@pytest.mark.asyncio
async def test_500_then_success(client):
    client._http.get.side_effect = [make_response(500), make_response(200, {"ok": True})]

    assert await client.request("/search") == {"ok": True}
    client._sleep.assert_awaited_once_with(1.0)


# ── 429 — rate limiting ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_429_waits_retry_after(client):
    client._http.get.side_effect = [
        make_response(429, headers={"Retry-After": "5"}),
        make_response(200, {"ok": True}),
    ]

    assert await client.request("/search") == {"ok": True}
    client._sleep.assert_awaited_once_with(5.0)


@pytest.mark.asyncio
async def test_429_fractional_retry_after_truncated(client):
    client._http.get.side_effect = [
        make_response(429, headers={"Retry-After": "5.5"}),
        make_response(200, {"ok": True}),
    ]

    assert await client.request("/search") == {"ok": True}
    client._sleep.assert_awaited_once_with(5.0)


@pytest.mark.asyncio
async def test_429_without_header_uses_backoff(client):
    client._http.get.side_effect = [
        make_response(429),
        make_response(429),
        make_response(200, {}),
    ]

    await client.request("/search")
    assert client._sleep.await_args_list == [call(1.0), call(2.0)]


@pytest.mark.asyncio
async def test_429_exhausted(client):
    client._http.get.return_value = make_response(429, headers={"Retry-After": "1"})

    with pytest.raises(RequestExhaustedError) as exc_info:
        await client.request("/search")
    assert isinstance(exc_info.value.last_error, RateLimitedError)
    assert client._sleep.await_count == 2


# ── 401 — token renewal ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_401_invalidates_and_retries_immediately(client, mock_auth):
    client._http.get.side_effect = [make_response(401), make_response(200, {"ok": True})]

    assert await client.request("/search") == {"ok": True}
    mock_auth.invalidate.assert_called_once()
    assert mock_auth.get_token.await_count == 2
    assert client._http.get.call_count == 2
    client._sleep.assert_not_called()


@pytest.mark.asyncio
async def test_401_uses_renewed_token(client, mock_auth):
    mock_auth.get_token.side_effect = ["stale", "fresh"]
    client._http.get.side_effect = [make_response(401), make_response(200, {})]

    await client.request("/search")
    headers = client._http.get.call_args_list[1][1]["headers"]
    assert headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_repeated_401_exhausts(client):
    client._http.get.return_value = make_response(401)

    with pytest.raises(RequestExhaustedError):
        await client.request("/search")
    assert client._http.get.call_count == 3
    client._sleep.assert_not_called()


@pytest.mark.asyncio
async def test_401_terminal_when_auth_retry_disabled(client, mock_auth):
    client._http.get.return_value = make_response(401)

    with pytest.raises(ClientError) as exc_info:
        await client.request("/search", retry_on_auth_error=False)
    assert exc_info.value.status == 401
    assert client._http.get.call_count == 1
    mock_auth.invalidate.assert_not_called()


# ── Other 4xx — terminal ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_404_fails_after_one_attempt(client):
    client._http.get.return_value = make_response(404, {"error": {"status": 404, "message": "Non existing id"}})

    with pytest.raises(ClientError) as exc_info:
        await client.request("/tracks/missing")

    assert exc_info.value.status == 404
    assert exc_info.value.endpoint == "/tracks/missing"
    assert client._http.get.call_count == 1
    client._sleep.assert_not_called()


@pytest.mark.asyncio
async def test_400_fails_immediately(client):
    client._http.get.return_value = make_response(400, {"error": {"status": 400, "message": "Invalid limit"}})

    with pytest.raises(ClientError, match="Invalid limit"):
        await client.request("/search", {"limit": 500})
    assert client._http.get.call_count == 1


# ── Malformed success and network errors ─────────────────────────────

@pytest.mark.asyncio
async def test_malformed_json_is_retried(client):
    client._http.get.side_effect = [make_response(200, text="{oops"), make_response(200, {"ok": 1})]

    assert await client.request("/search") == {"ok": 1}
    client._sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_malformed_json_exhausted(client):
    client._http.get.return_value = make_response(200, text="{oops")

    with pytest.raises(RequestExhaustedError) as exc_info:
        await client.request("/search")
    assert isinstance(exc_info.value.last_error, ProtocolError)


@pytest.mark.asyncio
async def test_network_error_retried(client):
    client._http.get.side_effect = [httpx.ConnectError("refused"), make_response(200, {})]

    assert await client.request("/search") == {}
    client._sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_network_error_exhausted(client):
    client._http.get.side_effect = httpx.ConnectError("refused")

    with pytest.raises(RequestExhaustedError, match="failed after 3 attempts"):
        await client.request("/search")


# ── Token failures propagate ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_configuration_error_propagates_without_http(client, mock_auth):
    mock_auth.get_token.side_effect = ConfigurationError("missing")

    with pytest.raises(ConfigurationError):
        await client.request("/search")
    client._http.get.assert_not_called()
    client._sleep.assert_not_called()


@pytest.mark.asyncio
async def test_authentication_failure_propagates(client, mock_auth):
    mock_auth.get_token.side_effect = AuthenticationFailedError(3, RuntimeError("down"))

    with pytest.raises(AuthenticationFailedError):
        await client.request("/search")
    client._http.get.assert_not_called()


# ── De-duplication ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_concurrent_identical_requests_share_one_call(client):
    async def slow_get(*args, **kwargs):
        await asyncio.sleep(0)
        return make_response(200, {"tracks": {"items": []}})

    client._http.get.side_effect = slow_get

    first, second = await asyncio.gather(
        client.request("/search", {"q": "techno", "type": "track"}),
        client.request("/search", {"type": "track", "q": "techno"}),
    )
    assert client._http.get.call_count == 1
    assert first is second


@pytest.mark.asyncio
async def test_concurrent_identical_requests_share_error(client):
    async def not_found(*args, **kwargs):
        await asyncio.sleep(0)
        return make_response(404, {"error": {"message": "gone"}})

    client._http.get.side_effect = not_found

    results = await asyncio.gather(
        client.request("/tracks/x"),
        client.request("/tracks/x"),
        return_exceptions=True,
    )
    assert client._http.get.call_count == 1
    assert isinstance(results[0], ClientError)
    assert results[0] is results[1]


@pytest.mark.asyncio
async def test_sequential_identical_requests_both_hit_network(client):
    client._http.get.return_value = make_response(200, {})

    await client.request("/tracks/x")
    await client.request("/tracks/x")
    assert client._http.get.call_count == 2


# ── clear_auth_cache / close ─────────────────────────────────────────

def test_clear_auth_cache(client, mock_auth):
    client._requests._in_flight["k"] = MagicMock()

    client.clear_auth_cache()
    mock_auth.invalidate.assert_called_once()
    assert client._requests.in_flight == 0


@pytest.mark.asyncio
async def test_close_closes_http_and_auth(client, mock_auth):
    client._http.aclose = AsyncMock()

    async with client:
        pass
    client._http.aclose.assert_awaited_once()
    mock_auth.close.assert_awaited_once()


def test_from_config_uses_settings(fake_settings):
    from genre_pulse.config import Config

    fake_settings.max_retries = 5
    fake_settings.retry_on_auth_error = False
    c = SpotifyClient.from_config(Config(settings=fake_settings))
    assert c._max_retries == 5
    assert c._retry_on_auth_error is False
    assert c.auth._max_attempts == 5
