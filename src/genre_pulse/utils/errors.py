"""Structured error reporting for CLI output."""

from __future__ import annotations

import json
import sys

import httpx
from rich.console import Console

from genre_pulse.exceptions import (
    AuthenticationFailedError,
    CatalogError,
    ClientError,
    ConfigurationError,
    InvalidCredentialsError,
    ProtocolError,
    RateLimitedError,
    RequestExhaustedError,
    UpstreamServerError,
)

console = Console(stderr=True)

# Actionable hints keyed by error code
_ERROR_HINTS: dict[str, str] = {
    "CONFIG_ERROR": "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET in your environment or .env",
    "AUTH_ERROR": "Check that your client ID and secret are valid — run `genre-pulse auth login`",
    "RATE_LIMITED": "Rate limited — wait a moment and retry, or lower --limit",
    "NOT_FOUND": "The requested track or playlist does not exist — verify the ID",
    "SERVER_ERROR": "Spotify is having trouble — try again later",
    "CONNECTION_ERROR": "Connection error — check network connectivity",
}


def _root_cause(error: BaseException) -> BaseException:
    """Unwrap context wrappers down to the error that decided the outcome."""
    if isinstance(error, CatalogError) and error.__cause__ is not None:
        error = error.__cause__
    if isinstance(error, (RequestExhaustedError, AuthenticationFailedError)) and error.last_error is not None:
        return error.last_error
    return error


def error_code(error: BaseException) -> str:
    """Map an exception to a stable error code."""
    if isinstance(error, CatalogError) and error.__cause__ is not None:
        error = error.__cause__
    if isinstance(error, ConfigurationError):
        return "CONFIG_ERROR"
    if isinstance(error, (AuthenticationFailedError, InvalidCredentialsError)):
        return "AUTH_ERROR"
    if isinstance(error, ClientError):
        if error.status == 404:
            return "NOT_FOUND"
        if error.status == 401:
            return "AUTH_ERROR"
        return "CLIENT_ERROR"
    if isinstance(error, RequestExhaustedError):
        cause = _root_cause(error)
        if isinstance(cause, RateLimitedError):
            return "RATE_LIMITED"
        if isinstance(cause, httpx.HTTPError):
            return "CONNECTION_ERROR"
        return "RETRIES_EXHAUSTED"
    if isinstance(error, RateLimitedError):
        return "RATE_LIMITED"
    if isinstance(error, UpstreamServerError):
        return "SERVER_ERROR"
    if isinstance(error, ProtocolError):
        return "PROTOCOL_ERROR"
    if isinstance(error, httpx.HTTPError):
        return "CONNECTION_ERROR"
    return "RUNTIME_ERROR"


def _get_hint(error: BaseException, code: str) -> str | None:
    hint = _ERROR_HINTS.get(code)
    if hint is None and code == "RETRIES_EXHAUSTED" and isinstance(_root_cause(error), UpstreamServerError):
        hint = _ERROR_HINTS["SERVER_ERROR"]
    return hint


def handle_error(error: Exception) -> None:
    """Report an error as JSON on stdout and a readable line on stderr.

    stdout receives {"error": true, "code": "...", "message": "...", "hint": "..."}
    for scripts; stderr gets the message for humans.
    """
    message = str(error)
    code = error_code(error)
    hint = _get_hint(error, code)

    error_obj: dict[str, object] = {
        "error": True,
        "code": code,
        "message": message,
    }
    if hint:
        error_obj["hint"] = hint

    json.dump(error_obj, sys.stdout)
    sys.stdout.write("\n")

    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
