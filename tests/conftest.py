import threading
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

import pytest
from sqlalchemy import select

from moviesync.api.dto import ConfigurationResponse, GenreDto, ImagesDto, MovieDto, MoviesResponse
from moviesync.config import SyncSettings
from moviesync.domain import Category
from moviesync.repository import MoviesDataRepository
from moviesync.store.database import MoviesDb
from moviesync.store.models import GenreRecord, MovieGenreRecord, MovieRecord, NowPlayingRecord, UpcomingRecord

TODAY = date(2023, 6, 15)

GENRES = [GenreDto(28, "Action"), GenreDto(35, "Comedy"), GenreDto(18, "Drama")]


def make_movie(movie_id: int, release_date: str = "2023-06-10", genre_ids: Sequence[int] = (28,), **extra) -> MovieDto:
    return MovieDto(
        id=movie_id,
        title=extra.pop("title", f"Movie {movie_id}"),
        release_date=release_date,
        genre_ids=tuple(genre_ids),
        **extra,
    )


def make_page(page: int, total_pages: int, movies: Sequence[MovieDto]) -> MoviesResponse:
    return MoviesResponse(page=page, total_pages=total_pages, results=tuple(movies))


PageScript = Union[MoviesResponse, Exception]


class FakeCatalogApi:
    """Scripted stand-in for TMDBClient; records every page request."""

    def __init__(self):
        self.genres: Optional[List[GenreDto]] = list(GENRES)
        self.configuration = ConfigurationResponse(
            images=ImagesDto("https://image.tmdb.org/t/p/", ("w92", "w185"), ("w300", "original"))
        )
        self.pages: Dict[Category, Dict[int, PageScript]] = {c: {} for c in Category}
        self.calls: List[tuple] = []
        self.gates: Dict[tuple, threading.Event] = {}
        self.entered: Dict[tuple, threading.Event] = {}
        self._lock = threading.Lock()

    def script(self, category: Category, *responses: PageScript) -> None:
        """Replaces the category's pages with ``responses`` as pages 1..n."""
        self.pages[category] = {i: r for i, r in enumerate(responses, start=1)}

    def gate(self, category: Category, page: int) -> threading.Event:
        """Blocks the next request for ``page`` until the returned event is set."""
        key = (category, page)
        self.gates[key] = threading.Event()
        self.entered[key] = threading.Event()
        return self.gates[key]

    def _answer(self, category: Category, page: int) -> MoviesResponse:
        key = (category, page)
        with self._lock:
            self.calls.append(key)
            response = self.pages[category].get(page)
            gate = self.gates.pop(key, None)
            entered = self.entered.pop(key, None)
        if gate is not None:
            entered.set()
            assert gate.wait(5), "gate was never released"
        if isinstance(response, Exception):
            raise response
        if response is None:
            return make_page(page, page, [])
        return response

    def get_genres(self):
        return self.genres

    def get_configuration(self):
        return self.configuration

    def get_now_playing(self, page: int = 1) -> MoviesResponse:
        return self._answer(Category.NOW_PLAYING, page)

    def get_upcoming(self, page: int = 1) -> MoviesResponse:
        return self._answer(Category.COMING_SOON, page)


def assert_referential_integrity(db: MoviesDb) -> None:
    def check(session):
        movie_ids = set(session.scalars(select(MovieRecord.id)).all())
        genre_ids = set(session.scalars(select(GenreRecord.id)).all())
        for listing in (NowPlayingRecord, UpcomingRecord):
            assert set(session.scalars(select(listing.movie_id)).all()) <= movie_ids
        for join in session.scalars(select(MovieGenreRecord)).all():
            assert join.movie_id in movie_ids
            assert join.genre_id in genre_ids

    db.read(check)


@pytest.fixture
def db():
    database = MoviesDb("sqlite://")
    yield database
    database.dispose()


@pytest.fixture
def api():
    return FakeCatalogApi()


@pytest.fixture
def settings():
    return SyncSettings(api_key="test-key", max_pages=10, workers=4, http_retries=0)


@pytest.fixture
def repository(db, api, settings):
    repo = MoviesDataRepository(db, api, settings, clock=lambda: TODAY)
    repo.initialize().result(timeout=5)
    yield repo
    repo.close()
