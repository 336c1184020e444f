"""CLI command for comparing genres in a market."""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from genre_pulse.commands._runner import run_with_catalog
from genre_pulse.config import get_config
from genre_pulse.services.comparison import DEFAULT_GENRES, GenreComparisonService
from genre_pulse.utils.errors import handle_error
from genre_pulse.utils.output import OutputFormat, print_comparison


def compare(
    genres: Annotated[Optional[list[str]], typer.Argument(help="Genres to compare")] = None,
    country: Annotated[str, typer.Option("--country", "-c", help="Dashboard market: GLOBAL, BR, DE, MX")] = "GLOBAL",
    limit: Annotated[int, typer.Option("--limit", "-n", help="Tracks fetched per genre")] = 40,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
) -> None:
    """Compare track popularity of genres in one market."""
    try:
        market = get_config().get_market(country)
    except ValueError as e:
        handle_error(e)
        raise typer.Exit(1)

    selected = tuple(genres) if genres else DEFAULT_GENRES
    comparison = run_with_catalog(
        lambda catalog: GenreComparisonService(catalog).compare(selected, market.code, limit)
    )
    print_comparison(comparison, output)
