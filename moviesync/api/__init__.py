"""Remote catalog client and its response types."""

from .dto import ConfigurationResponse, GenreDto, ImagesDto, MovieDto, MoviesResponse
from .tmdb_client import TMDBClient

__all__ = [
    "ConfigurationResponse",
    "GenreDto",
    "ImagesDto",
    "MovieDto",
    "MoviesResponse",
    "TMDBClient",
]
