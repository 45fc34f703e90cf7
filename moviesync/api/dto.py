"""
Typed views over the catalog API's JSON bodies.

Parsing is lenient about missing optional fields and strict about types: a
movie without an integer id, or with a text or flag field of the wrong type,
cannot be cached, so it raises ``DataError``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from moviesync.errors import DataError

LOGGER = logging.getLogger(__name__)

TEXT_FIELDS = (
    "title",
    "original_title",
    "original_language",
    "overview",
    "poster_path",
    "backdrop_path",
    "release_date",
)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _as_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise DataError(f"{name} is not a string: {value!r}")


def _as_bool(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise DataError(f"{name} is not a boolean: {value!r}")


@dataclass(frozen=True)
class GenreDto:
    id: int
    name: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GenreDto":
        genre_id = _as_int(payload.get("id")) if isinstance(payload, dict) else None
        if genre_id is None:
            raise DataError(f"Genre without integer id: {payload!r}")
        return cls(id=genre_id, name=str(payload.get("name") or ""))


@dataclass(frozen=True)
class ImagesDto:
    secure_base_url: str
    poster_sizes: Tuple[str, ...]
    backdrop_sizes: Tuple[str, ...]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ImagesDto":
        return cls(
            secure_base_url=str(payload.get("secure_base_url") or ""),
            poster_sizes=tuple(str(s) for s in payload.get("poster_sizes") or []),
            backdrop_sizes=tuple(str(s) for s in payload.get("backdrop_sizes") or []),
        )


@dataclass(frozen=True)
class ConfigurationResponse:
    images: Optional[ImagesDto]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ConfigurationResponse":
        images = payload.get("images")
        return cls(images=ImagesDto.from_dict(images) if isinstance(images, dict) else None)


@dataclass(frozen=True)
class MovieDto:
    """A single movie as returned by the listing endpoints."""

    id: int
    title: str = ""
    original_title: str = ""
    original_language: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    release_date: str = ""
    popularity: float = 0.0
    vote_count: int = 0
    vote_average: float = 0.0
    adult: bool = False
    video: bool = False
    genre_ids: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "MovieDto":
        if not isinstance(payload, dict):
            raise DataError(f"Movie record is not an object: {payload!r}")

        movie_id = _as_int(payload.get("id"))
        if movie_id is None:
            raise DataError(f"Movie without integer id: {payload.get('id')!r}")

        raw_genres = payload.get("genre_ids")
        if raw_genres is None:
            raw_genres = []
        if not isinstance(raw_genres, list):
            raise DataError(f"Movie {movie_id} has non-list genre_ids: {raw_genres!r}")

        try:
            text = {name: _as_str(payload.get(name), name) for name in TEXT_FIELDS}
            return cls(
                id=movie_id,
                popularity=float(payload.get("popularity") or 0.0),
                vote_count=int(payload.get("vote_count") or 0),
                vote_average=float(payload.get("vote_average") or 0.0),
                adult=_as_bool(payload.get("adult"), "adult"),
                video=_as_bool(payload.get("video"), "video"),
                genre_ids=tuple(g for g in (_as_int(g) for g in raw_genres) if g is not None),
                **text,
            )
        except (TypeError, ValueError, DataError) as exc:
            raise DataError(f"Movie {movie_id} has malformed fields: {exc}") from exc


@dataclass(frozen=True)
class MoviesResponse:
    page: int
    total_pages: int
    results: Tuple[MovieDto, ...]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any], requested_page: int = 1) -> "MoviesResponse":
        """
        Missing ``page`` falls back to the page that was asked for; missing
        ``total_pages`` is treated as "this is the last page".
        """
        page = _as_int(payload.get("page"))
        if page is None:
            page = requested_page
        total_pages = _as_int(payload.get("total_pages"))
        if total_pages is None:
            total_pages = page

        results: List[MovieDto] = []
        dropped = 0
        for raw in payload.get("results") or []:
            try:
                results.append(MovieDto.from_dict(raw))
            except DataError as exc:
                dropped += 1
                LOGGER.warning("Dropping malformed movie on page %s: %s", page, exc)
        if dropped:
            LOGGER.warning("Page %s: dropped %d malformed movie record(s).", page, dropped)

        return cls(page=page, total_pages=total_pages, results=tuple(results))


def parse_genres(payload: Dict[str, Any]) -> Optional[List[GenreDto]]:
    """Returns None when the body carries no ``genres`` list at all."""
    raw = payload.get("genres")
    if not isinstance(raw, list):
        return None

    genres = []
    for item in raw:
        try:
            genres.append(GenreDto.from_dict(item))
        except DataError as exc:
            LOGGER.warning("Dropping malformed genre: %s", exc)
    return genres
