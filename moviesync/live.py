"""
Observable values for the presentation layer.

``LiveValue`` is the read-only handle callers receive. ``MutableLiveValue`` is
the writable slot behind a status signal, and ``LiveQuery`` re-runs a store
query whenever a commit touches one of its tables.
"""

import logging
import threading
from typing import Callable, Dict, Generic, Iterable, TypeVar

from sqlalchemy.orm import Session

from moviesync.store.database import MoviesDb

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Observer = Callable[[T], None]


class LiveValue(Generic[T]):
    """Holds the latest value and pushes every change to its observers."""

    def __init__(self, initial: T):
        self._value = initial
        self._lock = threading.RLock()
        self._observers: Dict[int, Observer] = {}
        self._next_id = 0

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Registers ``observer``, calls it with the current value, returns an unsubscribe hook."""
        with self._lock:
            observer_id = self._next_id
            self._next_id += 1
            self._observers[observer_id] = observer
            current = self._value
        observer(current)

        def unsubscribe() -> None:
            with self._lock:
                self._observers.pop(observer_id, None)

        return unsubscribe

    def _publish(self, value: T) -> None:
        with self._lock:
            if value == self._value:
                return
            self._value = value
            observers = list(self._observers.values())
        for observer in observers:
            try:
                observer(value)
            except Exception:
                LOGGER.exception("Observer raised while handling %r", type(value).__name__)


class MutableLiveValue(LiveValue[T]):
    def set(self, value: T) -> None:
        self._publish(value)


class LiveQuery(LiveValue[T]):
    """
    A query result that stays current.

    ``query`` runs once on construction and again after every commit that
    touches one of ``tables``; observers are only called when the mapped
    result actually changed.
    """

    def __init__(self, db: MoviesDb, tables: Iterable[str], query: Callable[[Session], T]):
        self._db = db
        self._query = query
        self._refresh_lock = threading.Lock()
        super().__init__(db.read(query))
        self._unsubscribe = db.subscribe(tables, self._on_tables_changed)
        # Catch commits that landed between the first read and the subscription.
        self.refresh()

    def _on_tables_changed(self, touched) -> None:
        self.refresh()

    def refresh(self) -> None:
        with self._refresh_lock:
            self._publish(self._db.read(self._query))

    def close(self) -> None:
        self._unsubscribe()
