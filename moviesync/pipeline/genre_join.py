from typing import AbstractSet, Iterable, List, Optional

from moviesync.api.dto import MovieDto
from moviesync.store.models import SENTINEL_GENRE_ID, MovieGenreRecord


def build_genre_joins(
    movies: Iterable[MovieDto],
    known_genre_ids: Optional[AbstractSet[int]] = None,
) -> List[MovieGenreRecord]:
    """
    One join row per (movie, genre); a movie without usable genre ids gets a
    single row pointing at the sentinel genre.

    With ``known_genre_ids`` given, ids outside the local taxonomy are dropped
    first so every row satisfies the genre foreign key.
    """
    joins: List[MovieGenreRecord] = []
    for movie in movies:
        genre_ids = list(dict.fromkeys(movie.genre_ids or ()))
        if known_genre_ids is not None:
            genre_ids = [g for g in genre_ids if g in known_genre_ids]
        if not genre_ids:
            genre_ids = [SENTINEL_GENRE_ID]
        joins.extend(MovieGenreRecord(movie_id=movie.id, genre_id=g) for g in genre_ids)
    return joins
