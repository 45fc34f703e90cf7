"""
Genre taxonomy and image configuration, loaded once before the first fetch.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete

from moviesync.store.database import MoviesDb
from moviesync.store.models import (
    CONFIGURATION_ROW_ID,
    SENTINEL_GENRE_ID,
    SENTINEL_GENRE_NAME,
    ConfigurationRecord,
    GenreRecord,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceDataSummary:
    genres: int
    configuration_loaded: bool


class ReferenceDataLoader:
    def __init__(self, db: MoviesDb, api):
        self._db = db
        self._api = api

    def load_genres(self) -> int:
        """
        Upserts the genre taxonomy plus the sentinel genre. Returns the number
        of genres received; a body without a genre list leaves the table as is.
        """
        genres = self._api.get_genres()
        if genres is None:
            LOGGER.warning("Genre response carried no genre list; keeping cached taxonomy.")
            return 0

        with self._db.transaction() as session:
            for genre in genres:
                if genre.id == SENTINEL_GENRE_ID:
                    continue
                session.merge(GenreRecord(id=genre.id, name=genre.name))
            session.merge(GenreRecord(id=SENTINEL_GENRE_ID, name=SENTINEL_GENRE_NAME))
        LOGGER.info("Loaded %d genre(s).", len(genres))
        return len(genres)

    def load_configuration(self) -> bool:
        """Replaces the configuration row wholesale (delete, then insert)."""
        response = self._api.get_configuration()
        images = response.images
        if images is None:
            LOGGER.warning("Configuration response carried no image settings; keeping cached row.")
            return False

        with self._db.transaction() as session:
            session.execute(delete(ConfigurationRecord))
            session.add(
                ConfigurationRecord(
                    id=CONFIGURATION_ROW_ID,
                    base_url=images.secure_base_url,
                    poster_sizes=list(images.poster_sizes),
                    backdrop_sizes=list(images.backdrop_sizes),
                )
            )
        LOGGER.info(
            "Loaded image configuration (%d poster size(s), %d backdrop size(s)).",
            len(images.poster_sizes), len(images.backdrop_sizes),
        )
        return True

    def load(self) -> ReferenceDataSummary:
        """Genres first: movie joins reference them."""
        genres = self.load_genres()
        configuration_loaded = self.load_configuration()
        return ReferenceDataSummary(genres=genres, configuration_loaded=configuration_loaded)
