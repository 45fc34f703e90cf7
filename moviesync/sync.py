"""
One-shot sync of the local movie cache.

Loads reference data, then runs a fetch cycle for each requested category
and waits for it. Run with ``python -m moviesync.sync --help``.
"""

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from moviesync.api.tmdb_client import TMDBClient
from moviesync.config import SyncSettings, configure_logging
from moviesync.domain import Category, Status
from moviesync.errors import SyncError
from moviesync.repository import MoviesDataRepository
from moviesync.store.database import MoviesDb

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh the local now-playing / coming-soon cache.")
    parser.add_argument("--config", default=None, help="JSON settings file (overrides environment)")
    parser.add_argument("--db", default=None, help="SQLAlchemy database URL")
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in Category],
        help="Category to refresh; repeatable (default: all)",
    )
    parser.add_argument("--max-pages", type=int, default=None, help="Safety cap on pages per cycle")
    parser.add_argument("--start-page", type=int, default=1, help="First page to request")
    parser.add_argument(
        "--append",
        action="store_true",
        help="Append to the cached listing instead of replacing it",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
    return parser


def load_settings(args: argparse.Namespace) -> SyncSettings:
    settings = SyncSettings.from_json_file(args.config) if args.config else SyncSettings.from_env()
    overrides = {}
    if args.db:
        overrides["db_url"] = args.db
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    return settings.replace(**overrides) if overrides else settings


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    settings = load_settings(args)
    categories = [Category(c) for c in (args.category or [c.value for c in Category])]

    db = MoviesDb(settings.db_url)
    api = TMDBClient(settings)
    repository = MoviesDataRepository(db, api, settings)
    failures = 0
    try:
        try:
            summary = repository.initialize().result()
            print(f"Reference data: {summary.genres} genres, configuration loaded: {summary.configuration_loaded}")
        except (SyncError, SQLAlchemyError) as exc:
            LOGGER.error("Reference data load failed: %s", exc)
            return 1

        for category in categories:
            state = repository.refresh(category, start_page=args.start_page, full_refresh=not args.append)
            if state.completion is not None:
                state.completion.result()
            network_state = state.network_state.value
            if network_state.status is Status.ERROR:
                failures += 1
                print(f"{category.value}: error: {network_state.message}")
            else:
                print(f"{category.value}: {len(state.movies.value)} movies cached")
    finally:
        repository.close()
        api.close()
        db.dispose()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
