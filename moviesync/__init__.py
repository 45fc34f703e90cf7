"""Local cache and live read models for now-playing and upcoming movies."""

from .config import SyncSettings
from .domain import Category, Configuration, Movie, MoviesDataState, NetworkState, Status
from .repository import MoviesDataRepository

__all__ = [
    "SyncSettings",
    "Category",
    "Configuration",
    "Movie",
    "MoviesDataState",
    "NetworkState",
    "Status",
    "MoviesDataRepository",
]
