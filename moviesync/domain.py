"""Public shapes handed to the presentation layer."""

import enum
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from moviesync.errors import UNKNOWN_ERROR

if TYPE_CHECKING:
    from moviesync.live import LiveValue


class Category(str, enum.Enum):
    NOW_PLAYING = "now_playing"
    COMING_SOON = "coming_soon"


@dataclass(frozen=True)
class Movie:
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
    genres: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Configuration:
    base_url: str = ""
    poster_sizes: Tuple[str, ...] = field(default_factory=tuple)
    backdrop_sizes: Tuple[str, ...] = field(default_factory=tuple)


class Status(str, enum.Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class NetworkState:
    """Tagged status of one fetch cycle; ``message`` is set only for errors."""

    status: Status
    message: Optional[str] = None

    @classmethod
    def error(cls, message: Optional[str]) -> "NetworkState":
        return cls(Status.ERROR, message or UNKNOWN_ERROR)

    @property
    def is_terminal(self) -> bool:
        return self.status is not Status.LOADING


NetworkState.LOADING = NetworkState(Status.LOADING)
NetworkState.LOADED = NetworkState(Status.LOADED)


@dataclass
class MoviesDataState:
    """Live movie list plus the status slot of the cycle that refreshes it."""

    movies: "LiveValue[List[Movie]]"
    network_state: "LiveValue[NetworkState]"
    completion: Optional[Future] = None
