"""
Entry point for the presentation layer.

``MoviesDataRepository`` hands out live read handles immediately and runs fetch
cycles on a background executor. At most one cycle per category is current:
starting a new one cancels the previous one, and a cancelled cycle never
commits.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import date
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from moviesync.api.dto import MoviesResponse
from moviesync.config import SyncSettings
from moviesync.domain import Category, Configuration, Movie, MoviesDataState, NetworkState
from moviesync.errors import ApiError, TransportFailure
from moviesync.live import LiveQuery, LiveValue, MutableLiveValue
from moviesync.metrics import CYCLE_SECONDS, CYCLES, MOVIES_PERSISTED, PAGES_FETCHED
from moviesync.network_state import NetworkStateTracker
from moviesync.pipeline.cache_replacer import CacheReplacer, ReplaceSummary
from moviesync.pipeline.date_filter import DateWindowFilter
from moviesync.pipeline.pagination import DEFAULT_START_PAGE, FetchCancelled, PaginatedFetcher
from moviesync.reference_data import ReferenceDataLoader, ReferenceDataSummary
from moviesync.store import queries
from moviesync.store.database import MoviesDb
from moviesync.store.models import ConfigurationRecord

LOGGER = logging.getLogger(__name__)

CANCELLED_MESSAGE = "fetch cancelled"


class FetchCycle:
    """Bookkeeping for one walk of a category's pages."""

    def __init__(
        self,
        category: Category,
        state: MutableLiveValue[NetworkState],
        start_page: int,
        full_refresh: bool,
    ):
        self.category = category
        self.state = state
        self.start_page = start_page
        self.full_refresh = full_refresh
        self.future: Optional[Future] = None
        self._cancelled = threading.Event()
        self._guard = threading.Lock()
        self._committing = False

    def cancel(self) -> bool:
        """
        Marks the cycle stale. Returns False when it is already committing;
        that commit is allowed to finish and the cycle ends as loaded.
        """
        with self._guard:
            if self._committing:
                return False
            self._cancelled.set()
        self.state.set(NetworkState.error(CANCELLED_MESSAGE))
        return True

    def begin_commit(self) -> bool:
        """Claims the right to commit; False once the cycle has been cancelled."""
        with self._guard:
            if self._cancelled.is_set():
                return False
            self._committing = True
            return True

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()


class MoviesDataRepository:
    def __init__(
        self,
        db: MoviesDb,
        api,
        settings: Optional[SyncSettings] = None,
        clock: Callable[[], date] = date.today,
        executor: Optional[Executor] = None,
    ):
        self._db = db
        self._api = api
        self._settings = settings or SyncSettings.from_env()
        self.current_date = clock()
        self._date_filter = DateWindowFilter(self.current_date, self._settings.now_playing_days)
        self._replacer = CacheReplacer(db)
        self._reference = ReferenceDataLoader(db, api)
        self._tracker = NetworkStateTracker()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._settings.workers, thread_name_prefix="moviesync"
        )

        self._lock = threading.Lock()
        self._cycles: Dict[Category, FetchCycle] = {}
        self._commit_locks = {category: threading.Lock() for category in Category}
        self._movie_queries: Dict[Category, LiveQuery[List[Movie]]] = {}
        self._configuration: Optional[LiveQuery[Configuration]] = None

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def initialize(self) -> "Future[ReferenceDataSummary]":
        """Loads genres and image configuration; failures surface via ``result()``."""
        return self._executor.submit(self._reference.load)

    # ------------------------------------------------------------------
    # Live read handles (no side effects)
    # ------------------------------------------------------------------

    def configuration(self) -> LiveValue[Configuration]:
        with self._lock:
            if self._configuration is None:
                self._configuration = LiveQuery(
                    self._db, [ConfigurationRecord.__tablename__], queries.configuration
                )
            return self._configuration

    def movies(self, category: Category) -> LiveValue[List[Movie]]:
        category = Category(category)
        with self._lock:
            live = self._movie_queries.get(category)
            if live is None:
                live = LiveQuery(
                    self._db,
                    queries.watched_tables(category),
                    lambda session: queries.movies_for(session, category),
                )
                self._movie_queries[category] = live
            return live

    # ------------------------------------------------------------------
    # Fetch cycles
    # ------------------------------------------------------------------

    def now_playing(self, start_page: int = DEFAULT_START_PAGE, full_refresh: Optional[bool] = None) -> MoviesDataState:
        return self.refresh(Category.NOW_PLAYING, start_page, full_refresh)

    def coming_soon(self, start_page: int = DEFAULT_START_PAGE, full_refresh: Optional[bool] = None) -> MoviesDataState:
        return self.refresh(Category.COMING_SOON, start_page, full_refresh)

    def refresh(
        self,
        category: Category,
        start_page: int = DEFAULT_START_PAGE,
        full_refresh: Optional[bool] = None,
    ) -> MoviesDataState:
        """
        Starts a fetch cycle and returns the live list plus this cycle's status.

        ``full_refresh`` defaults to True when starting from the first page;
        an incremental refresh appends to the cached listing instead of
        replacing it.
        """
        category = Category(category)
        if full_refresh is None:
            full_refresh = start_page == DEFAULT_START_PAGE
        live = self.movies(category)
        cycle = self._start_cycle(category, start_page, full_refresh)
        return MoviesDataState(movies=live, network_state=cycle.state, completion=cycle.future)

    def _start_cycle(self, category: Category, start_page: int, full_refresh: bool) -> FetchCycle:
        cycle = FetchCycle(category, self._tracker.start(category), start_page, full_refresh)
        with self._lock:
            previous = self._cycles.get(category)
            self._cycles[category] = cycle
        if previous is not None and not previous.state.value.is_terminal:
            if previous.cancel():
                LOGGER.info("%s: cancelled the in-flight cycle in favour of a new one.", category.value)
            else:
                LOGGER.info("%s: in-flight cycle is already committing; the new one follows it.", category.value)

        try:
            cycle.future = self._executor.submit(self._run_cycle, cycle)
        except RuntimeError as exc:
            LOGGER.error("%s: could not schedule fetch cycle: %s", category.value, exc)
            cycle.state.set(NetworkState.error(str(exc)))
            self._forget(cycle)
        return cycle

    def _page_source(self, category: Category) -> Callable[[int], MoviesResponse]:
        if category is Category.NOW_PLAYING:
            return self._api.get_now_playing
        return self._api.get_upcoming

    def _run_cycle(self, cycle: FetchCycle) -> Optional[ReplaceSummary]:
        label = cycle.category.value
        started = time.perf_counter()
        LOGGER.info("%s: fetch cycle starting at page %d.", label, cycle.start_page)

        fetcher = PaginatedFetcher(
            self._page_source(cycle.category),
            max_pages=self._settings.max_pages,
            is_cancelled=cycle.is_cancelled,
            on_page=lambda response: PAGES_FETCHED.labels(label).inc(),
            label=label,
        )
        try:
            result = fetcher.fetch(cycle.start_page)
            movies = self._date_filter.apply(cycle.category, result.movies)
            with self._commit_locks[cycle.category]:
                if not cycle.begin_commit():
                    raise FetchCancelled(f"{label} cycle cancelled")
                summary = self._replacer.replace(cycle.category, movies, full_refresh=cycle.full_refresh)
        except FetchCancelled:
            LOGGER.info("%s: stale fetch cycle dropped without committing.", label)
            CYCLES.labels(label, "cancelled").inc()
            cycle.state.set(NetworkState.error(CANCELLED_MESSAGE))
            return None
        except (TransportFailure, ApiError) as exc:
            LOGGER.warning("%s: fetch cycle aborted: %s", label, exc.message)
            CYCLES.labels(label, "error").inc()
            cycle.state.set(NetworkState.error(exc.message))
            return None
        except SQLAlchemyError as exc:
            LOGGER.exception("%s: commit failed, cache left unchanged.", label)
            CYCLES.labels(label, "error").inc()
            cycle.state.set(NetworkState.error(str(exc)))
            return None
        except Exception as exc:
            cycle.state.set(NetworkState.error(str(exc)))
            raise
        finally:
            CYCLE_SECONDS.labels(label).observe(time.perf_counter() - started)
            self._forget(cycle)

        LOGGER.info(
            "%s: fetch cycle done, %d page(s) fetched, %d of %d movie(s) kept.",
            label, result.pages_fetched, summary.movies, len(result.movies),
        )
        CYCLES.labels(label, "loaded").inc()
        MOVIES_PERSISTED.labels(label).inc(summary.movies)
        cycle.state.set(NetworkState.LOADED)
        return summary

    def _forget(self, cycle: FetchCycle) -> None:
        with self._lock:
            if self._cycles.get(cycle.category) is cycle:
                del self._cycles[cycle.category]

    def in_flight(self, category: Category) -> bool:
        with self._lock:
            return Category(category) in self._cycles

    def close(self, wait: bool = True) -> None:
        with self._lock:
            cycles = list(self._cycles.values())
            live_queries = list(self._movie_queries.values())
            if self._configuration is not None:
                live_queries.append(self._configuration)
        for cycle in cycles:
            cycle.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        for live in live_queries:
            live.close()
