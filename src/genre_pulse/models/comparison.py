"""Genre comparison models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from genre_pulse.models.tracks import Track


class GenreSummary(BaseModel):
    genre: str
    track_count: int
    average_popularity: float
    top_tracks: list[Track] = Field(default_factory=list)


class GenreComparison(BaseModel):
    market: str
    genres: list[GenreSummary]

    def leader(self) -> GenreSummary | None:
        """Genre with the highest average popularity, if any genre was fetched."""
        if not self.genres:
            return None
        return max(self.genres, key=lambda g: g.average_popularity)
