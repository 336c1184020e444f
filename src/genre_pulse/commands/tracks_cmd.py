"""CLI commands for track lookups."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from genre_pulse.commands._runner import run_with_catalog
from genre_pulse.models.tracks import Track
from genre_pulse.services.catalog import MAX_LIMIT
from genre_pulse.utils.output import TRACK_COLUMNS, OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="tracks", help="Search and inspect tracks.")


def _print_tracks(tracks: list[Track], output: OutputFormat, title: str) -> None:
    if not tracks:
        console.print("[dim]No tracks found.[/dim]")
        raise typer.Exit(0)
    print_output(
        [t.to_row() for t in tracks],
        output,
        columns=TRACK_COLUMNS,
        title=title,
        raw=[t.model_dump(mode="json") for t in tracks],
    )


@app.command("genre")
def by_genre(
    genre: Annotated[str, typer.Argument(help="Genre, e.g. techno or psytrance")],
    market: Annotated[str, typer.Option("--market", "-m", help="Spotify market code")] = "US",
    limit: Annotated[int, typer.Option("--limit", "-n", help=f"Number of tracks (max {MAX_LIMIT})")] = MAX_LIMIT,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """List tracks for a genre in a market."""
    tracks = run_with_catalog(lambda catalog: catalog.get_tracks_by_genre_and_market(genre, market.upper(), limit))
    _print_tracks(tracks, output, title=f"{genre} in {market.upper()}")


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Search text")],
    market: Annotated[str, typer.Option("--market", "-m", help="Spotify market code")] = "US",
    limit: Annotated[int, typer.Option("--limit", "-n", help=f"Number of tracks (max {MAX_LIMIT})")] = 20,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Free-text track search."""
    tracks = run_with_catalog(lambda catalog: catalog.search_tracks(query, market.upper(), limit))
    _print_tracks(tracks, output, title=f"Tracks matching '{query}'")


@app.command("get")
def get_track(
    track_id: Annotated[str, typer.Argument(help="Spotify track ID")],
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Show a single track."""
    track = run_with_catalog(lambda catalog: catalog.get_track_details(track_id))
    _print_tracks([track], output, title=track.name)
