from datetime import date

import pytest

from conftest import make_movie
from moviesync.domain import Category
from moviesync.pipeline.date_filter import DateWindowFilter, release_offsets

CURRENT = date(2023, 6, 15)


@pytest.fixture
def window():
    return DateWindowFilter(CURRENT, now_playing_days=30)


@pytest.mark.parametrize(
    "release_date, included",
    [
        ("2023-05-20", True),   # 26 days ago
        ("2023-04-01", False),  # 75 days ago
        ("2023-06-20", False),  # future
        ("2023-06-15", True),   # today
        ("2023-05-16", True),   # exactly 30 days ago
        ("2023-05-15", False),  # 31 days ago
    ],
)
def test_now_playing_window(window, release_date, included):
    assert window.includes(Category.NOW_PLAYING, make_movie(1, release_date)) is included


@pytest.mark.parametrize(
    "release_date, included",
    [
        ("2023-06-15", True),
        ("2023-06-16", True),
        ("2024-01-01", True),
        ("2023-06-14", False),
        ("2023-06-01", False),
    ],
)
def test_coming_soon_window(window, release_date, included):
    assert window.includes(Category.COMING_SOON, make_movie(1, release_date)) is included


def test_unparseable_dates_are_excluded_without_failing_the_batch(window, caplog):
    movies = [
        make_movie(1, "2023-06-10"),
        make_movie(2, "not-a-date"),
        make_movie(3, ""),
        make_movie(4, "2023-13-45"),
        make_movie(5, "2023-06-01"),
    ]

    kept = window.apply(Category.NOW_PLAYING, movies)

    assert [m.id for m in kept] == [1, 5]
    assert "3 movie(s) with unparseable release dates" in caplog.text


def test_order_is_preserved(window):
    movies = [make_movie(i, "2023-06-%02d" % (20 + i)) for i in range(5)]

    kept = window.apply(Category.COMING_SOON, movies)

    assert [m.id for m in kept] == [0, 1, 2, 3, 4]


def test_empty_batch(window):
    assert window.apply(Category.NOW_PLAYING, []) == []


def test_from_clock_reads_the_clock_once():
    calls = []

    def clock():
        calls.append(1)
        return CURRENT

    window = DateWindowFilter.from_clock(clock)
    window.apply(Category.NOW_PLAYING, [make_movie(1, "2023-06-01")])
    window.apply(Category.COMING_SOON, [make_movie(2, "2023-07-01")])

    assert window.current_date == CURRENT
    assert len(calls) == 1


def test_release_offsets_are_days_relative_to_today():
    offsets = release_offsets([make_movie(1, "2023-06-10"), make_movie(2, "2023-06-25")], CURRENT)

    assert offsets.tolist() == [-5, 10]


def test_far_future_release_dates_are_coming_soon(window, caplog):
    movies = [make_movie(1, "2262-04-12"), make_movie(2, "9999-12-31")]

    kept = window.apply(Category.COMING_SOON, movies)

    assert [m.id for m in kept] == [1, 2]
    assert "unparseable" not in caplog.text
