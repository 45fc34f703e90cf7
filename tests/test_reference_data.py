from sqlalchemy import func, select

from moviesync.api.dto import ConfigurationResponse, GenreDto, ImagesDto
from moviesync.domain import Configuration
from moviesync.reference_data import ReferenceDataLoader
from moviesync.store import queries
from moviesync.store.models import SENTINEL_GENRE_ID, ConfigurationRecord, GenreRecord


def _genres(db):
    return db.read(lambda s: {g.id: g.name for g in s.scalars(select(GenreRecord)).all()})


def test_load_stores_genres_and_sentinel(db, api):
    summary = ReferenceDataLoader(db, api).load()

    genres = _genres(db)
    assert summary.genres == 3
    assert summary.configuration_loaded
    assert genres[28] == "Action"
    assert genres[SENTINEL_GENRE_ID] == ""


def test_configuration_is_replaced_not_merged(db, api):
    loader = ReferenceDataLoader(db, api)
    loader.load_configuration()

    api.configuration = ConfigurationResponse(images=ImagesDto("https://cdn.example/", ("w500",), ()))
    loader.load_configuration()

    assert db.read(queries.configuration) == Configuration("https://cdn.example/", ("w500",), ())
    assert db.read(lambda s: s.scalar(select(func.count()).select_from(ConfigurationRecord))) == 1


def test_configuration_defaults_to_empty_before_first_load(db):
    assert db.read(queries.configuration) == Configuration("", (), ())


def test_missing_image_block_keeps_cached_configuration(db, api):
    loader = ReferenceDataLoader(db, api)
    loader.load_configuration()
    api.configuration = ConfigurationResponse(images=None)

    assert loader.load_configuration() is False
    assert db.read(queries.configuration).poster_sizes == ("w92", "w185")


def test_missing_genre_list_keeps_taxonomy(db, api):
    loader = ReferenceDataLoader(db, api)
    loader.load_genres()
    api.genres = None

    assert loader.load_genres() == 0
    assert 35 in _genres(db)


def test_genre_names_are_updated_in_place(db, api):
    loader = ReferenceDataLoader(db, api)
    loader.load_genres()
    api.genres = [GenreDto(28, "Action & Adventure")]

    loader.load_genres()

    genres = _genres(db)
    assert genres[28] == "Action & Adventure"
    assert genres[35] == "Comedy"
