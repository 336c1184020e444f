"""Track, album and playlist models shaped from Spotify Web API JSON."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Image(BaseModel):
    url: str
    height: int | None = None
    width: int | None = None


class Artist(BaseModel):
    id: str | None = None
    name: str

    model_config = ConfigDict(extra="ignore")


class Album(BaseModel):
    id: str | None = None
    name: str = ""
    release_date: str | None = None
    images: list[Image] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class Track(BaseModel):
    id: str | None = None
    name: str
    artists: list[Artist] = Field(default_factory=list)
    album: Album | None = None
    popularity: int = 0
    duration_ms: int = 0
    preview_url: str | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)

    def to_row(self) -> dict[str, object]:
        """Flatten for table/csv output."""
        return {
            "id": self.id or "",
            "name": self.name,
            "artists": self.artist_names,
            "album": self.album.name if self.album else "",
            "popularity": self.popularity,
            "duration": _format_duration(self.duration_ms),
            "url": self.external_urls.get("spotify", ""),
        }


class PlaylistOwner(BaseModel):
    id: str | None = None
    display_name: str | None = None

    model_config = ConfigDict(extra="ignore")


class PlaylistTracksRef(BaseModel):
    total: int = 0

    model_config = ConfigDict(extra="ignore")


class PlaylistSummary(BaseModel):
    id: str
    name: str
    description: str | None = None
    owner: PlaylistOwner | None = None
    tracks: PlaylistTracksRef | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    def to_row(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "owner": (self.owner.display_name or self.owner.id or "") if self.owner else "",
            "tracks": self.tracks.total if self.tracks else 0,
            "url": self.external_urls.get("spotify", ""),
        }


def _format_duration(duration_ms: int) -> str:
    minutes, seconds = divmod(duration_ms // 1000, 60)
    return f"{minutes}:{seconds:02d}"
