"""Local structured store for the movie cache."""

from .database import MoviesDb
from .models import (
    SENTINEL_GENRE_ID,
    ConfigurationRecord,
    GenreRecord,
    MovieGenreRecord,
    MovieRecord,
    NowPlayingRecord,
    UpcomingRecord,
)

__all__ = [
    "MoviesDb",
    "SENTINEL_GENRE_ID",
    "ConfigurationRecord",
    "GenreRecord",
    "MovieGenreRecord",
    "MovieRecord",
    "NowPlayingRecord",
    "UpcomingRecord",
]
