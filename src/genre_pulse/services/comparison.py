"""Side-by-side comparison of genres in one market."""

from __future__ import annotations

import asyncio
import logging

from genre_pulse.models.comparison import GenreComparison, GenreSummary
from genre_pulse.models.tracks import Track
from genre_pulse.services.catalog import CatalogService

logger = logging.getLogger(__name__)

DEFAULT_GENRES = ("techno", "psytrance")

# Popularity assumed for a genre with no tracks in the market
EMPTY_POPULARITY = 50.0


def summarize_genre(genre: str, tracks: list[Track], top: int = 5) -> GenreSummary:
    if tracks:
        average = sum(t.popularity for t in tracks) / len(tracks)
    else:
        average = EMPTY_POPULARITY
    ranked = sorted(tracks, key=lambda t: t.popularity, reverse=True)
    return GenreSummary(
        genre=genre,
        track_count=len(tracks),
        average_popularity=round(average, 1),
        top_tracks=ranked[:top],
    )


class GenreComparisonService:
    """Fetches several genres concurrently and summarises them."""

    def __init__(self, catalog: CatalogService) -> None:
        self._catalog = catalog

    async def compare(
        self,
        genres: tuple[str, ...] | list[str] = DEFAULT_GENRES,
        market: str = "US",
        limit: int = 40,
    ) -> GenreComparison:
        results = await asyncio.gather(
            *(self._catalog.get_tracks_by_genre_and_market(g, market, limit) for g in genres)
        )
        summaries = [summarize_genre(g, tracks) for g, tracks in zip(genres, results)]
        logger.info(
            f"Compared {', '.join(genres)} in {market}: "
            + ", ".join(f"{s.genre}={s.average_popularity}" for s in summaries)
        )
        return GenreComparison(market=market, genres=summaries)
