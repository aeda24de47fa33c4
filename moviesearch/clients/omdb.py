"""
MovieSearch — OMDb Client

Alternative catalog provider built on the Open Movie Database API.

Design patterns:
  - Adapter: normalizes OMDb's capitalized fields and "N/A" sentinels
    into the shared Movie shape
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Optional, Tuple

import httpx

from moviesearch.clients.base import HTTPCatalogClient
from moviesearch.config import Settings
from moviesearch.errors import CatalogUnavailable, DetailNotFound
from moviesearch.models import CatalogPage, Movie, MovieDetail

logger = logging.getLogger(__name__)

_PAGE_SIZE = 10  # OMDb returns 10 results per search page
_NOT_FOUND = "Movie not found!"
_RUNTIME_RE = re.compile(r"(\d+)")


class OMDbClient(HTTPCatalogClient):
    name = "OMDb"

    def __init__(
        self,
        cfg: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            cfg.omdb_base_url,
            default_params={"apikey": cfg.omdb_api_key},
            timeout=cfg.catalog_timeout_seconds,
            max_retries=cfg.catalog_max_retries,
            cache_ttl=cfg.catalog_cache_ttl_seconds,
            transport=transport,
        )

    def _is_cacheable(self, data: Dict[str, Any]) -> bool:
        return data.get("Response") != "False" or data.get("Error") == _NOT_FOUND

    # ── Public API ────────────────────────────────────────

    async def search_movies(self, query: str, page: int = 1) -> CatalogPage:
        params = {"s": query, "page": page, "type": "movie"}
        data = await self._get_json("/", params)
        if data.get("Response") == "False":
            if data.get("Error") == _NOT_FOUND:
                return CatalogPage()
            raise CatalogUnavailable(f"OMDb search failed: {data.get('Error', 'unknown error')}")

        items = data.get("Search")
        if not isinstance(items, list):
            raise CatalogUnavailable("OMDb search payload has no Search list")
        try:
            total_results = int(data.get("totalResults", 0))
        except (TypeError, ValueError):
            total_results = len(items)
        with self._translating("/", params):
            movies = [_to_movie(i) for i in items if isinstance(i, dict) and i.get("imdbID")]
        return CatalogPage(results=movies, total_pages=math.ceil(total_results / _PAGE_SIZE))

    async def get_movie_detail(self, movie_id: str) -> Movie:
        params = {"i": movie_id, "plot": "full"}
        data = await self._get_json("/", params, not_found_id=movie_id)
        if data.get("Response") == "False":
            raise DetailNotFound(movie_id, data.get("Error"))
        if not data.get("imdbID"):
            raise CatalogUnavailable(f"OMDb detail payload for {movie_id} has no imdbID")
        with self._translating("/", params):
            return _to_movie(data, with_detail=True)


# ── Translation ───────────────────────────────────────────


def _value(data: Dict[str, Any], field: str) -> Optional[str]:
    """Return the field, treating OMDb's "N/A" sentinel as missing."""
    raw = data.get(field)
    if raw is None:
        return None
    raw = str(raw).strip()
    return raw if raw and raw != "N/A" else None


def _split(data: Dict[str, Any], field: str) -> Tuple[str, ...]:
    raw = _value(data, field)
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _rating(data: Dict[str, Any]) -> Optional[float]:
    raw = _value(data, "imdbRating")
    try:
        return float(raw) if raw else None
    except ValueError:
        return None


def _runtime(data: Dict[str, Any]) -> Optional[int]:
    raw = _value(data, "Runtime")
    match = _RUNTIME_RE.search(raw) if raw else None
    return int(match.group(1)) if match else None


def _to_movie(data: Dict[str, Any], *, with_detail: bool = False) -> Movie:
    imdb_id = data["imdbID"]
    detail = None
    if with_detail:
        detail = MovieDetail(
            overview=_value(data, "Plot"),
            runtime=_runtime(data),
            cast=_split(data, "Actors"),
            directors=_split(data, "Director"),
            genres=_split(data, "Genre"),
            countries=_split(data, "Country"),
            languages=_split(data, "Language"),
            external_url=f"https://www.imdb.com/title/{imdb_id}",
        )
    return Movie(
        id=imdb_id,
        title=_value(data, "Title") or "Untitled",
        release_date=_value(data, "Year"),
        poster_url=_value(data, "Poster"),
        rating=_rating(data),
        detail=detail,
    )
