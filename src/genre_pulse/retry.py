"""Classification of a single request attempt for the retry loop.

Kept free of I/O so the retry schedule can be tested without a client.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from genre_pulse.exceptions import (
    ClientError,
    ProtocolError,
    RateLimitedError,
    SpotifyApiError,
    UpstreamServerError,
)


class Action(str, Enum):
    SUCCESS = "success"
    REAUTH = "reauth"  # drop the token, retry with no wait
    RETRY = "retry"  # wait ``delay`` seconds, then retry
    FAIL = "fail"  # raise ``error`` now


@dataclass(frozen=True)
class RetryDecision:
    action: Action
    delay: float = 0.0
    error: Exception | None = None
    payload: Any = None


def backoff_delay(attempt: int, retry_delay: float = 1.0) -> float:
    """Linear backoff: one ``retry_delay`` per attempt already made."""
    return retry_delay * attempt


def parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header given in seconds, truncating fractions.

    HTTP dates are not supported.
    """
    if value is None:
        return None
    try:
        seconds = int(float(value.strip()))
    except (ValueError, OverflowError):
        return None
    return seconds if seconds >= 0 else None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return response.reason_phrase or f"HTTP {response.status_code}"


def classify_response(
    response: httpx.Response,
    attempt: int,
    *,
    endpoint: str = "",
    retry_on_auth_error: bool = True,
    retry_delay: float = 1.0,
) -> RetryDecision:
    """Decide what the retry loop does with ``response`` from attempt ``attempt``."""
    status = response.status_code

    if response.is_success:
        try:
            return RetryDecision(Action.SUCCESS, payload=response.json())
        except ValueError:
            return RetryDecision(
                Action.RETRY,
                delay=backoff_delay(attempt, retry_delay),
                error=ProtocolError(f"Malformed JSON response from {endpoint}"),
            )

    if status == 401 and retry_on_auth_error:
        return RetryDecision(Action.REAUTH, error=ClientError(401, _error_message(response), endpoint))

    if status == 429:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        delay = float(retry_after) if retry_after is not None else backoff_delay(attempt, retry_delay)
        return RetryDecision(Action.RETRY, delay=delay, error=RateLimitedError(retry_after))

    if 400 <= status < 500:
        return RetryDecision(Action.FAIL, error=ClientError(status, _error_message(response), endpoint))

    if status >= 500:
        return RetryDecision(
            Action.RETRY,
            delay=backoff_delay(attempt, retry_delay),
            error=UpstreamServerError(status),
        )

    # 1xx/3xx should not reach us; httpx does not follow redirects by default
    return RetryDecision(
        Action.FAIL,
        error=SpotifyApiError(f"Unexpected HTTP {status} from {endpoint}"),
    )


def classify_transport_error(error: httpx.HTTPError, attempt: int, retry_delay: float = 1.0) -> RetryDecision:
    """Network failures are retried with the same backoff as server errors."""
    return RetryDecision(Action.RETRY, delay=backoff_delay(attempt, retry_delay), error=error)
