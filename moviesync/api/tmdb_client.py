"""TMDB API client for the four endpoints the sync layer consumes."""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from moviesync.api.dto import ConfigurationResponse, GenreDto, MoviesResponse, parse_genres
from moviesync.config import SyncSettings
from moviesync.errors import UNKNOWN_ERROR, ApiError, TransportFailure

LOGGER = logging.getLogger(__name__)

RETRY_SLEEP = 0.2


def extract_error_message(response: requests.Response) -> str:
    """
    TMDB error bodies look like ``{"status_code": 7, "status_message": "..."}``.
    Anything else is reported verbatim; an empty body becomes "unknown error".
    """
    text = (response.text or "").strip()
    if not text:
        return UNKNOWN_ERROR
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if isinstance(body, dict) and body.get("status_message"):
        return str(body["status_message"])
    return text


class TMDBClient:
    """Client for The Movie Database (TMDB) API."""

    def __init__(self, settings: Optional[SyncSettings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or SyncSettings.from_env()
        self.session = session or requests.Session()
        if not self.settings.api_key:
            LOGGER.warning("TMDB_API_KEY not set")

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET an endpoint and return its JSON object body.

        Transport failures are retried ``http_retries`` times; API errors are
        raised immediately.
        """
        url = f"{self.settings.api_base.rstrip('/')}{endpoint}"
        query = dict(params or {})
        query["api_key"] = self.settings.api_key
        if self.settings.language:
            query["language"] = self.settings.language

        tries = 0
        while True:
            try:
                response = self.session.get(url, params=query, timeout=self.settings.http_timeout)
                break
            except requests.RequestException as exc:
                tries += 1
                if tries > self.settings.http_retries:
                    LOGGER.error("TMDB transport error on %s: %s", endpoint, exc)
                    raise TransportFailure(str(exc)) from exc
                LOGGER.info("TMDB transport error on %s (attempt %d), retrying: %s", endpoint, tries, exc)
                time.sleep(RETRY_SLEEP)

        if not response.ok:
            message = extract_error_message(response)
            LOGGER.error("TMDB API error on %s: %s %s", endpoint, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError(f"malformed response body from {endpoint}", status_code=response.status_code) from exc

        if not isinstance(body, dict):
            raise ApiError(f"unexpected response body from {endpoint}", status_code=response.status_code)
        # TMDB sometimes answers 200 with {"success": false, "status_message": ...}
        if body.get("success") is False:
            raise ApiError(body.get("status_message") or UNKNOWN_ERROR, status_code=response.status_code)
        return body

    def _listing_params(self, page: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page}
        if self.settings.region:
            params["region"] = self.settings.region
        return params

    def get_genres(self) -> Optional[List[GenreDto]]:
        """Genre taxonomy; None when the body has no ``genres`` list."""
        return parse_genres(self._get("/genre/movie/list"))

    def get_configuration(self) -> ConfigurationResponse:
        return ConfigurationResponse.from_dict(self._get("/configuration"))

    def get_now_playing(self, page: int = 1) -> MoviesResponse:
        body = self._get("/movie/now_playing", params=self._listing_params(page))
        return MoviesResponse.from_dict(body, requested_page=page)

    def get_upcoming(self, page: int = 1) -> MoviesResponse:
        body = self._get("/movie/upcoming", params=self._listing_params(page))
        return MoviesResponse.from_dict(body, requested_page=page)

    def close(self) -> None:
        self.session.close()
