"""Shared plumbing for commands that talk to the Spotify API."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer

from genre_pulse.client import SpotifyClient
from genre_pulse.config import get_config
from genre_pulse.exceptions import SpotifyApiError
from genre_pulse.services.catalog import CatalogService
from genre_pulse.utils.errors import handle_error

T = TypeVar("T")


def run_with_catalog(operation: Callable[[CatalogService], Awaitable[T]]) -> T:
    """Run ``operation`` against a fresh client, exiting with status 1 on API errors."""
    config = get_config()

    async def _run() -> T:
        async with SpotifyClient.from_config(config) as client:
            return await operation(CatalogService(client))

    try:
        return asyncio.run(_run())
    except SpotifyApiError as e:
        handle_error(e)
        raise typer.Exit(1)
