"""Track and playlist lookups against the Spotify catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError

from genre_pulse.client import SpotifyClient
from genre_pulse.exceptions import CatalogError, ConfigurationError, ProtocolError, SpotifyApiError
from genre_pulse.models.tracks import PlaylistSummary, Track

logger = logging.getLogger(__name__)

# Spotify's page size cap for search and playlist items
MAX_LIMIT = 50

# Search keywords per dashboard genre; anything else is searched verbatim
GENRE_SEARCH_TERMS = {
    "techno": "techno melodicTechno",
    "psytrance": "psytrance psytrance",
    "trance": "trance",
    "house": "house",
    "progressive": "progressive house",
}

PLAYLIST_TRACK_FIELDS = (
    "items(track(id,name,artists,album,popularity,duration_ms,preview_url,external_urls))"
)


def search_query_for_genre(genre: str) -> str:
    return GENRE_SEARCH_TERMS.get(genre.lower(), genre)


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_LIMIT))


class CatalogService:
    """Service for fetching tracks and playlists."""

    def __init__(self, client: SpotifyClient) -> None:
        self._client = client

    async def get_tracks_by_genre_and_market(
        self, genre: str, market: str = "US", limit: int = MAX_LIMIT
    ) -> list[Track]:
        """Search tracks for a dashboard genre in one market.

        Raises:
            ConfigurationError: Credentials are missing.
            CatalogError: The search failed; the message names genre and market.
        """
        logger.info(f"Searching '{genre}' tracks in {market}")
        try:
            response = await self._client.request("/search", {
                "q": search_query_for_genre(genre),
                "type": "track",
                "limit": clamp_limit(limit),
                "market": market,
            })
            with _shaping("/search"):
                tracks = _parse_tracks(response["tracks"]["items"] if response.get("tracks") else [])
        except ConfigurationError:
            raise
        except SpotifyApiError as e:
            raise CatalogError(f"Could not fetch {genre} tracks for {market}: {e}") from e

        logger.info(f"Found {len(tracks)} {genre} tracks in {market}")
        return tracks

    async def get_tracks_by_genre(
        self, genre: str, market: str = "US", limit: int = MAX_LIMIT
    ) -> list[Track]:
        """Alias for get_tracks_by_genre_and_market."""
        return await self.get_tracks_by_genre_and_market(genre, market, limit)

    async def search_tracks(self, query: str, market: str = "US", limit: int = MAX_LIMIT) -> list[Track]:
        """Free-text track search."""
        response = await self._client.request("/search", {
            "q": query,
            "type": "track",
            "limit": clamp_limit(limit),
            "market": market,
        })
        with _shaping("/search"):
            return _parse_tracks(response["tracks"]["items"] if response.get("tracks") else [])

    async def search_playlists(self, query: str, limit: int = 20, offset: int = 0) -> list[PlaylistSummary]:
        """Search playlists by keyword."""
        try:
            response = await self._client.request("/search", {
                "q": query,
                "type": "playlist",
                "limit": clamp_limit(limit),
                "offset": max(0, offset),
            })
            with _shaping("/search"):
                items = response["playlists"]["items"] if response.get("playlists") else []
                # Spotify returns null for playlists that vanished between index and fetch
                return [PlaylistSummary.model_validate(item) for item in items if item]
        except ConfigurationError:
            raise
        except SpotifyApiError as e:
            raise CatalogError(f"Could not search playlists for '{query}': {e}") from e

    async def get_track_details(self, track_id: str) -> Track:
        """Fetch a single track."""
        endpoint = f"/tracks/{track_id}"
        response = await self._client.request(endpoint)
        with _shaping(endpoint):
            return Track.model_validate(response)

    async def get_playlist_tracks(self, playlist_id: str, limit: int = 20, market: str = "US") -> list[Track]:
        """Fetch the tracks of a playlist, skipping removed/local entries."""
        endpoint = f"/playlists/{playlist_id}/tracks"
        response = await self._client.request(endpoint, {
            "limit": clamp_limit(limit),
            "fields": PLAYLIST_TRACK_FIELDS,
            "market": market,
        })
        with _shaping(endpoint):
            return _parse_tracks(item.get("track") for item in response.get("items") or [] if item)

    def clear_auth_cache(self) -> None:
        """Reset the token and in-flight request table."""
        self._client.clear_auth_cache()


@contextmanager
def _shaping(endpoint: str) -> Iterator[None]:
    """Turn a response that does not fit the models into a ProtocolError."""
    try:
        yield
    except (ValidationError, AttributeError, KeyError, TypeError) as e:
        raise ProtocolError(f"Malformed response from {endpoint}") from e


def _parse_tracks(items: Iterable[Any]) -> list[Track]:
    return [Track.model_validate(item) for item in items if item]
