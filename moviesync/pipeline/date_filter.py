"""
Release-date windows per category.

The reference date is fixed when the filter is built so that every page of a
multi-page cycle is judged against the same day.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

import pandas as pd

from moviesync.api.dto import MovieDto
from moviesync.domain import Category

LOGGER = logging.getLogger(__name__)

RELEASE_DATE_FORMAT = "%Y-%m-%d"


def parse_release_date(value: str) -> Optional[date]:
    try:
        return datetime.strptime(value, RELEASE_DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


def release_offsets(movies: Sequence[MovieDto], current_date: date) -> pd.Series:
    """
    Days from ``current_date`` to each release date (negative = already out).

    Unparseable or missing dates come back as NaN. Dates are parsed as plain
    calendar days, so years beyond the nanosecond Timestamp range still count.
    """
    released = [parse_release_date(m.release_date) for m in movies]
    return pd.Series(
        [(day - current_date).days if day is not None else None for day in released],
        dtype="float64",
    )


class DateWindowFilter:
    def __init__(self, current_date: date, now_playing_days: int = 30):
        self.current_date = current_date
        self.now_playing_days = now_playing_days

    @classmethod
    def from_clock(cls, clock: Callable[[], date], now_playing_days: int = 30) -> "DateWindowFilter":
        return cls(clock(), now_playing_days)

    def _mask(self, category: Category, offsets: pd.Series) -> pd.Series:
        if Category(category) is Category.NOW_PLAYING:
            return (offsets > -(self.now_playing_days + 1)) & (offsets <= 0)
        return offsets >= 0

    def apply(self, category: Category, movies: Sequence[MovieDto]) -> List[MovieDto]:
        """Keeps the movies whose release date falls in the category's window."""
        if not movies:
            return []

        offsets = release_offsets(movies, self.current_date)
        unparseable = int(offsets.isna().sum())
        if unparseable:
            LOGGER.warning(
                "%s: excluding %d movie(s) with unparseable release dates.",
                Category(category).value, unparseable,
            )

        mask = self._mask(category, offsets).fillna(False).astype(bool)
        return [movie for movie, keep in zip(movies, mask.tolist()) if keep]

    def includes(self, category: Category, movie: MovieDto) -> bool:
        return bool(self.apply(category, [movie]))
