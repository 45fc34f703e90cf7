"""
Sequential walk over a paginated listing endpoint.

Pages are requested one at a time because the total is only known once the
first page has answered, and because the remote side rate-limits.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from moviesync.api.dto import MovieDto, MoviesResponse
from moviesync.errors import SyncError

LOGGER = logging.getLogger(__name__)

DEFAULT_START_PAGE = 1


class FetchCancelled(SyncError):
    """A newer cycle for the same category superseded this one."""


@dataclass(frozen=True)
class FetchResult:
    movies: List[MovieDto]
    start_page: int
    last_page: int
    pages_fetched: int
    capped: bool = False


class PaginatedFetcher:
    """
    Accumulates the results of consecutive pages until the server reports the
    last page, a page comes back empty, or ``max_pages`` requests were made.

    ``TransportFailure`` and ``ApiError`` from ``fetch_page`` propagate
    unchanged and abort the walk; nothing accumulated so far is returned.
    """

    def __init__(
        self,
        fetch_page: Callable[[int], MoviesResponse],
        max_pages: int,
        is_cancelled: Optional[Callable[[], bool]] = None,
        on_page: Optional[Callable[[MoviesResponse], None]] = None,
        label: str = "",
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1.")
        self._fetch_page = fetch_page
        self._max_pages = max_pages
        self._is_cancelled = is_cancelled or (lambda: False)
        self._on_page = on_page
        self._label = label

    def _check_cancelled(self) -> None:
        if self._is_cancelled():
            raise FetchCancelled(f"{self._label or 'fetch'} cycle cancelled")

    def fetch(self, start_page: int = DEFAULT_START_PAGE, accumulated: Iterable[MovieDto] = ()) -> FetchResult:
        movies = list(accumulated)
        page = start_page
        pages_fetched = 0

        while True:
            self._check_cancelled()
            response = self._fetch_page(page)
            pages_fetched += 1
            movies.extend(response.results)
            LOGGER.debug(
                "%s page %s/%s: %d result(s)",
                self._label, response.page, response.total_pages, len(response.results),
            )
            if self._on_page is not None:
                self._on_page(response)

            current = max(page, response.page)
            if current >= response.total_pages or not response.results:
                return FetchResult(movies, start_page, current, pages_fetched)
            if pages_fetched >= self._max_pages:
                LOGGER.warning(
                    "%s: stopping at page %s of %s reported pages (page cap %d).",
                    self._label, current, response.total_pages, self._max_pages,
                )
                return FetchResult(movies, start_page, current, pages_fetched, capped=True)
            page = current + 1
