"""Fetch, filter, join and persist stages of a fetch cycle."""

from .cache_replacer import CacheReplacer, ReplaceSummary
from .date_filter import DateWindowFilter
from .genre_join import build_genre_joins
from .pagination import DEFAULT_START_PAGE, FetchCancelled, FetchResult, PaginatedFetcher

__all__ = [
    "CacheReplacer",
    "ReplaceSummary",
    "DateWindowFilter",
    "build_genre_joins",
    "DEFAULT_START_PAGE",
    "FetchCancelled",
    "FetchResult",
    "PaginatedFetcher",
]
