"""CLI commands for authentication."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console

from genre_pulse.auth import TokenManager
from genre_pulse.config import get_config
from genre_pulse.exceptions import SpotifyApiError
from genre_pulse.models.auth import TokenStatus
from genre_pulse.utils.errors import handle_error
from genre_pulse.utils.output import OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="auth", help="Check Spotify credentials.")


@app.command()
def login(
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Acquire an access token and display its status."""
    config = get_config()
    auth = TokenManager(config, max_attempts=config.settings.max_retries, retry_delay=config.settings.retry_delay)

    async def _login() -> TokenStatus:
        try:
            await auth.get_token()
            return auth.get_status()
        finally:
            await auth.close()

    console.print("Requesting client-credentials token...", style="yellow")
    try:
        status = asyncio.run(_login())
    except SpotifyApiError as e:
        handle_error(e)
        raise typer.Exit(1)

    result = {
        "status": "authenticated",
        "expires_at": str(status.expires_at),
        "seconds_remaining": status.seconds_remaining,
    }
    print_output([result], output, title="Authentication", raw=result)
