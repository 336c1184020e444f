"""Rendering of tracks, playlists and comparisons for the terminal."""

from __future__ import annotations

import csv
import json
import sys
from enum import Enum
from typing import Any

from rich.console import Console
from rich.table import Table

from genre_pulse.models.comparison import GenreComparison

console = Console(stderr=True)

TRACK_COLUMNS = ["name", "artists", "album", "popularity", "duration", "id"]
PLAYLIST_COLUMNS = ["name", "owner", "tracks", "id"]


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def print_output(
    rows: list[dict[str, Any]],
    fmt: OutputFormat = OutputFormat.TABLE,
    columns: list[str] | None = None,
    title: str | None = None,
    raw: Any = None,
) -> None:
    """Print rows in the requested format.

    Args:
        rows: Flattened records, used for table and csv output.
        fmt: Output format (table, json, csv).
        columns: Which columns to show in table/csv mode. None = all.
        title: Optional title for table output.
        raw: What to emit in json mode instead of ``rows`` (e.g. full model dumps).
    """
    if fmt == OutputFormat.JSON:
        print_json(rows if raw is None else raw)
    elif fmt == OutputFormat.CSV:
        print_csv(rows, columns)
    else:
        print_table(rows, columns, title)


def print_json(data: Any) -> None:
    """Print data as indented JSON to stdout."""
    json.dump(data, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def print_table(rows: list[dict[str, Any]], columns: list[str] | None = None, title: str | None = None) -> None:
    """Print rows as a Rich table on stderr."""
    if not rows:
        console.print("[dim]No results.[/dim]")
        return

    columns = columns or list(rows[0].keys())
    table = Table(title=title)
    for col in columns:
        table.add_column(col, overflow="fold", justify="right" if col == "popularity" else "left")
    for row in rows:
        table.add_row(*[str(row.get(col, "")) for col in columns])
    console.print(table)


def print_csv(rows: list[dict[str, Any]], columns: list[str] | None = None) -> None:
    """Print rows as CSV to stdout."""
    if not rows:
        return
    writer = csv.DictWriter(sys.stdout, fieldnames=columns or list(rows[0].keys()), extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)


def print_comparison(comparison: GenreComparison, fmt: OutputFormat = OutputFormat.TABLE) -> None:
    """Print a genre comparison: one summary row per genre, plus top tracks in table mode."""
    rows = [
        {
            "genre": s.genre,
            "tracks": s.track_count,
            "avg_popularity": s.average_popularity,
            "top_track": s.top_tracks[0].name if s.top_tracks else "",
        }
        for s in comparison.genres
    ]

    if fmt != OutputFormat.TABLE:
        print_output(rows, fmt, raw=comparison.model_dump(mode="json"))
        return

    print_table(rows, title=f"Genre comparison ({comparison.market})")
    for summary in comparison.genres:
        print_table(
            [t.to_row() for t in summary.top_tracks],
            columns=TRACK_COLUMNS[:4],
            title=f"Top {summary.genre}",
        )
    leader = comparison.leader()
    if leader is not None:
        console.print(f"[bold]{leader.genre}[/bold] leads in {comparison.market}")
