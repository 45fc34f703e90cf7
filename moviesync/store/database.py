"""
Transactional access to the local cache plus table-level change notification.

Every write goes through ``MoviesDb.transaction()``. The tables a transaction
touched are collected from SQLAlchemy session events and published to
listeners only after the commit succeeded, so observers never see a
half-applied write.
"""

import logging
import threading
from contextlib import contextmanager
from itertools import chain
from typing import Callable, Dict, Iterable, Iterator, Set, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from moviesync.store.models import SENTINEL_GENRE_ID, SENTINEL_GENRE_NAME, Base, GenreRecord

LOGGER = logging.getLogger(__name__)

TOUCHED_TABLES = "touched_tables"

T = TypeVar("T")
TableListener = Callable[[Set[str]], None]


def _build_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees its own empty database.
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def _touch(session: Session, table_name: str) -> None:
    session.info.setdefault(TOUCHED_TABLES, set()).add(table_name)


class MoviesDb:
    """Owns the engine, the session factory and the table listeners."""

    def __init__(self, url: str):
        self.url = url
        self.engine = _build_engine(url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._lock = threading.RLock()
        self._listeners: Dict[int, tuple] = {}
        self._next_listener_id = 0

        event.listen(self._session_factory, "after_flush", self._record_flush)
        event.listen(self._session_factory, "do_orm_execute", self._record_bulk_statement)

        Base.metadata.create_all(self.engine)
        with self.transaction() as session:
            session.merge(GenreRecord(id=SENTINEL_GENRE_ID, name=SENTINEL_GENRE_NAME))

    @staticmethod
    def _record_flush(session: Session, flush_context) -> None:
        for instance in chain(session.new, session.dirty, session.deleted):
            _touch(session, instance.__table__.name)

    @staticmethod
    def _record_bulk_statement(orm_execute_state) -> None:
        if orm_execute_state.is_insert or orm_execute_state.is_update or orm_execute_state.is_delete:
            _touch(orm_execute_state.session, orm_execute_state.statement.table.name)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """All-or-nothing unit of work; listeners hear about it only on commit."""
        with self._lock:
            session = self._session_factory()
            try:
                with session.begin():
                    yield session
                touched = set(session.info.get(TOUCHED_TABLES, ()))
            finally:
                session.close()
        if touched:
            self._notify(touched)

    def read(self, query: Callable[[Session], T]) -> T:
        with self._lock:
            session = self._session_factory()
            try:
                return query(session)
            finally:
                session.close()

    def subscribe(self, tables: Iterable[str], listener: TableListener) -> Callable[[], None]:
        """Registers ``listener`` for commits touching any of ``tables``."""
        watched = frozenset(tables)
        with self._lock:
            listener_id = self._next_listener_id
            self._next_listener_id += 1
            self._listeners[listener_id] = (watched, listener)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(listener_id, None)

        return unsubscribe

    def _notify(self, touched: Set[str]) -> None:
        with self._lock:
            targets = [listener for watched, listener in self._listeners.values() if watched & touched]
        for listener in targets:
            try:
                listener(touched)
            except Exception:
                # Commit is already durable; remaining listeners still run.
                LOGGER.exception("Table listener failed for %s", sorted(touched))

    def dispose(self) -> None:
        self.engine.dispose()
