"""genre-pulse: Spotify genre comparison client and CLI."""

__version__ = "0.1.0"
