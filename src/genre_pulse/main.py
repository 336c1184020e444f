"""genre-pulse CLI — entry point.

Fetches tracks by genre from the Spotify Web API and compares genres
across markets.
"""

from __future__ import annotations

import logging

import typer

from genre_pulse.commands.auth_cmd import app as auth_app
from genre_pulse.commands.compare_cmd import compare
from genre_pulse.commands.playlists_cmd import app as playlists_app
from genre_pulse.commands.tracks_cmd import app as tracks_app

app = typer.Typer(
    name="genre-pulse",
    help="Compare music genres using the Spotify catalog.",
    no_args_is_help=True,
)

app.add_typer(auth_app, name="auth")
app.add_typer(tracks_app, name="tracks")
app.add_typer(playlists_app, name="playlists")
app.command("compare")(compare)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """genre-pulse — tracks, playlists and genre comparisons from Spotify."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


if __name__ == "__main__":
    app()
