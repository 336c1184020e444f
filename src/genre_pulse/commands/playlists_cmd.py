"""CLI commands for playlists."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from genre_pulse.commands._runner import run_with_catalog
from genre_pulse.utils.output import PLAYLIST_COLUMNS, TRACK_COLUMNS, OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="playlists", help="Search playlists and list their tracks.")


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Search text")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Page size (max 50)")] = 20,
    offset: Annotated[int, typer.Option("--offset", help="Index of the first result")] = 0,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Search playlists by keyword."""
    playlists = run_with_catalog(lambda catalog: catalog.search_playlists(query, limit, offset))
    if not playlists:
        console.print("[dim]No playlists found.[/dim]")
        raise typer.Exit(0)

    print_output(
        [p.to_row() for p in playlists],
        output,
        columns=PLAYLIST_COLUMNS,
        title=f"Playlists matching '{query}'",
        raw=[p.model_dump(mode="json") for p in playlists],
    )


@app.command("tracks")
def tracks(
    playlist_id: Annotated[str, typer.Argument(help="Spotify playlist ID")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of tracks (max 50)")] = 20,
    market: Annotated[str, typer.Option("--market", "-m", help="Spotify market code")] = "US",
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """List the tracks of a playlist."""
    items = run_with_catalog(lambda catalog: catalog.get_playlist_tracks(playlist_id, limit, market.upper()))
    if not items:
        console.print("[dim]Playlist has no playable tracks.[/dim]")
        raise typer.Exit(0)

    print_output(
        [t.to_row() for t in items],
        output,
        columns=TRACK_COLUMNS,
        title=f"Playlist {playlist_id}",
        raw=[t.model_dump(mode="json") for t in items],
    )
