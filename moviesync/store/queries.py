"""Read projections over the cache, mapped into the public shapes."""

from collections import defaultdict
from typing import Dict, List, Type, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from moviesync.domain import Category, Configuration, Movie
from moviesync.store.models import (
    CONFIGURATION_ROW_ID,
    SENTINEL_GENRE_ID,
    ConfigurationRecord,
    GenreRecord,
    MovieGenreRecord,
    MovieRecord,
    NowPlayingRecord,
    UpcomingRecord,
)

ListingRecord = Union[Type[NowPlayingRecord], Type[UpcomingRecord]]

LISTING_TABLES: Dict[Category, ListingRecord] = {
    Category.NOW_PLAYING: NowPlayingRecord,
    Category.COMING_SOON: UpcomingRecord,
}


def listing_record(category: Category) -> ListingRecord:
    return LISTING_TABLES[Category(category)]


def watched_tables(category: Category) -> List[str]:
    """Tables whose changes can alter ``movies_for``'s result."""
    return [
        listing_record(category).__tablename__,
        MovieRecord.__tablename__,
        MovieGenreRecord.__tablename__,
        GenreRecord.__tablename__,
    ]


def to_movie(record: MovieRecord, genres: List[str]) -> Movie:
    return Movie(
        id=record.id,
        title=record.title or "",
        original_title=record.original_title or "",
        original_language=record.original_language or "",
        overview=record.overview or "",
        poster_path=record.poster_path or "",
        backdrop_path=record.backdrop_path or "",
        release_date=record.release_date or "",
        popularity=record.popularity or 0.0,
        vote_count=record.vote_count or 0,
        vote_average=record.vote_average or 0.0,
        adult=bool(record.adult),
        video=bool(record.video),
        genres=tuple(genres),
    )


def movies_for(session: Session, category: Category) -> List[Movie]:
    """The category's listing joined with its movies, in listing order."""
    listing = listing_record(category)
    records = session.scalars(
        select(MovieRecord)
        .join(listing, listing.movie_id == MovieRecord.id)
        .order_by(listing.position)
    ).all()
    if not records:
        return []

    ids = [record.id for record in records]
    genre_rows = session.execute(
        select(MovieGenreRecord.movie_id, GenreRecord.name)
        .join(GenreRecord, GenreRecord.id == MovieGenreRecord.genre_id)
        .where(MovieGenreRecord.movie_id.in_(ids))
        .where(GenreRecord.id != SENTINEL_GENRE_ID)
        .order_by(MovieGenreRecord.movie_id, GenreRecord.name)
    ).all()
    names: Dict[int, List[str]] = defaultdict(list)
    for movie_id, name in genre_rows:
        names[movie_id].append(name)

    return [to_movie(record, names.get(record.id, [])) for record in records]


def listing_ids(session: Session, category: Category) -> List[int]:
    listing = listing_record(category)
    return list(session.scalars(select(listing.movie_id).order_by(listing.position)).all())


def configuration(session: Session) -> Configuration:
    """The stored configuration, or an empty one before the first load."""
    record = session.get(ConfigurationRecord, CONFIGURATION_ROW_ID)
    if record is None:
        return Configuration()
    return Configuration(
        base_url=record.base_url or "",
        poster_sizes=tuple(record.poster_sizes or []),
        backdrop_sizes=tuple(record.backdrop_sizes or []),
    )
