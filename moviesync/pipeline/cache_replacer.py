"""
Atomic write of one finished fetch cycle.

Movies, their genre joins and the category listing change in a single
transaction; readers either see the previous cycle or this one, never a mix.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from sqlalchemy import delete, func, select

from moviesync.api.dto import MovieDto
from moviesync.domain import Category
from moviesync.pipeline.genre_join import build_genre_joins
from moviesync.store.database import MoviesDb
from moviesync.store.models import GenreRecord, MovieGenreRecord, MovieRecord
from moviesync.store.queries import listing_record

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaceSummary:
    movies: int
    joins: int
    listed: int


def deduplicate(movies: Sequence[MovieDto]) -> List[MovieDto]:
    """Collapses repeated ids: the latest copy wins, the first position stays."""
    latest: Dict[int, MovieDto] = {}
    for movie in movies:
        latest[movie.id] = movie
    order = dict.fromkeys(movie.id for movie in movies)
    return [latest[movie_id] for movie_id in order]


def to_record(movie: MovieDto) -> MovieRecord:
    return MovieRecord(
        id=movie.id,
        title=movie.title,
        original_title=movie.original_title,
        original_language=movie.original_language,
        overview=movie.overview,
        poster_path=movie.poster_path,
        backdrop_path=movie.backdrop_path,
        release_date=movie.release_date,
        popularity=movie.popularity,
        vote_count=movie.vote_count,
        vote_average=movie.vote_average,
        adult=movie.adult,
        video=movie.video,
    )


class CacheReplacer:
    def __init__(self, db: MoviesDb):
        self._db = db

    def replace(self, category: Category, movies: Sequence[MovieDto], full_refresh: bool = True) -> ReplaceSummary:
        """
        Upserts ``movies``, rebuilds their genre joins and updates the listing.

        A full refresh clears the listing first; otherwise the new ids are
        appended after the existing ones and ids already listed keep their
        place.
        """
        category = Category(category)
        listing = listing_record(category)
        batch = deduplicate(movies)
        ids = [movie.id for movie in batch]

        with self._db.transaction() as session:
            known_genres = set(session.scalars(select(GenreRecord.id)).all())

            for movie in batch:
                session.merge(to_record(movie))
            if ids:
                session.execute(delete(MovieGenreRecord).where(MovieGenreRecord.movie_id.in_(ids)))
            joins = build_genre_joins(batch, known_genres)
            session.add_all(joins)

            if full_refresh:
                session.execute(delete(listing))
                start, already_listed = 0, set()
            else:
                max_position = session.scalar(select(func.max(listing.position)))
                start = 0 if max_position is None else max_position + 1
                already_listed = set(session.scalars(select(listing.movie_id)).all())

            new_ids = [movie_id for movie_id in ids if movie_id not in already_listed]
            session.add_all(
                listing(movie_id=movie_id, position=start + offset)
                for offset, movie_id in enumerate(new_ids)
            )

        LOGGER.info(
            "%s: committed %d movie(s), %d genre join(s), %s listing with %d id(s).",
            category.value, len(batch), len(joins), "replaced" if full_refresh else "appended to", len(new_ids),
        )
        return ReplaceSummary(movies=len(batch), joins=len(joins), listed=len(new_ids))
