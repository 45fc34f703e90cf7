"""
SQLAlchemy records backing the local movie cache.

Listing tables (``now_playing``, ``upcoming``) hold only ordered movie ids; the
movie rows themselves are shared between categories.
"""

import uuid
from typing import List

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Placeholder genre for movies that arrive without genre ids (32-bit INT_MIN).
SENTINEL_GENRE_ID = -(2 ** 31)
SENTINEL_GENRE_NAME = ""

CONFIGURATION_ROW_ID = 1


class Base(DeclarativeBase):
    pass


class MovieRecord(Base):
    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(500), default="")
    original_title: Mapped[str] = mapped_column(String(500), default="")
    original_language: Mapped[str] = mapped_column(String(16), default="")
    overview: Mapped[str] = mapped_column(Text, default="")
    poster_path: Mapped[str] = mapped_column(String(255), default="")
    backdrop_path: Mapped[str] = mapped_column(String(255), default="")
    release_date: Mapped[str] = mapped_column(String(10), default="")
    popularity: Mapped[float] = mapped_column(Float, default=0.0)
    vote_count: Mapped[int] = mapped_column(Integer, default=0)
    vote_average: Mapped[float] = mapped_column(Float, default=0.0)
    adult: Mapped[bool] = mapped_column(Boolean, default=False)
    video: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<MovieRecord(id={self.id}, title='{self.title}')>"


class GenreRecord(Base):
    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), default="")

    def __repr__(self) -> str:
        return f"<GenreRecord(id={self.id}, name='{self.name}')>"


class MovieGenreRecord(Base):
    """Links a movie to a genre; at least one row exists per cached movie."""

    __tablename__ = "movie_genres"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    movie_id: Mapped[int] = mapped_column(ForeignKey("movies.id", onupdate="CASCADE"), index=True)
    genre_id: Mapped[int] = mapped_column(ForeignKey("genres.id", onupdate="CASCADE"), index=True)

    def __repr__(self) -> str:
        return f"<MovieGenreRecord(movie_id={self.movie_id}, genre_id={self.genre_id})>"


class ConfigurationRecord(Base):
    __tablename__ = "configuration"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    base_url: Mapped[str] = mapped_column(String(255), default="")
    poster_sizes: Mapped[List[str]] = mapped_column(JSON, default=list)
    backdrop_sizes: Mapped[List[str]] = mapped_column(JSON, default=list)


class NowPlayingRecord(Base):
    __tablename__ = "now_playing"

    movie_id: Mapped[int] = mapped_column(ForeignKey("movies.id"), primary_key=True, autoincrement=False)
    position: Mapped[int] = mapped_column(Integer, index=True)


class UpcomingRecord(Base):
    __tablename__ = "upcoming"

    movie_id: Mapped[int] = mapped_column(ForeignKey("movies.id"), primary_key=True, autoincrement=False)
    position: Mapped[int] = mapped_column(Integer, index=True)
