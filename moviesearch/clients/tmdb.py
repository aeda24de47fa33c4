"""
MovieSearch — TMDB Client

Canonical catalog provider. Translates TMDB v3 payloads into the
shared Movie shape; no TMDB field name leaks past this module.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from moviesearch.clients.base import HTTPCatalogClient
from moviesearch.config import Settings
from moviesearch.errors import CatalogUnavailable
from moviesearch.models import CatalogPage, Movie, MovieDetail

logger = logging.getLogger(__name__)

_MAX_CAST = 10


class TMDBClient(HTTPCatalogClient):
    name = "TMDB"

    def __init__(
        self,
        cfg: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        params: Dict[str, Any] = {"language": cfg.tmdb_language}
        if cfg.tmdb_api_key and not cfg.tmdb_api_read_token:
            params["api_key"] = cfg.tmdb_api_key
        super().__init__(
            cfg.tmdb_base_url,
            headers=cfg.tmdb_headers,
            default_params=params,
            timeout=cfg.catalog_timeout_seconds,
            max_retries=cfg.catalog_max_retries,
            cache_ttl=cfg.catalog_cache_ttl_seconds,
            transport=transport,
        )
        self._image_base = cfg.tmdb_image_base

    # ── Public API ────────────────────────────────────────

    async def search_movies(self, query: str, page: int = 1) -> CatalogPage:
        """Execute /search/movie."""
        params = {"query": query, "page": page}
        data = await self._get_json("/search/movie", params)
        results = data.get("results")
        if not isinstance(results, list):
            raise CatalogUnavailable("TMDB search payload has no results list")
        with self._translating("/search/movie", params):
            movies = [self._to_movie(item) for item in results if isinstance(item, dict) and "id" in item]
            total = int(data.get("total_pages") or 0)
        logger.debug("TMDB search %r page %d: %d results / %d pages", query, page, len(movies), total)
        return CatalogPage(results=movies, total_pages=total)

    async def get_movie_detail(self, movie_id: str) -> Movie:
        """Fetch full details plus credits for a single movie."""
        path, params = f"/movie/{movie_id}", {"append_to_response": "credits"}
        data = await self._get_json(path, params, not_found_id=movie_id)
        if "id" not in data:
            raise CatalogUnavailable(f"TMDB detail payload for {movie_id} has no id")
        with self._translating(path, params):
            return self._to_movie(data, with_detail=True)

    # ── Translation ───────────────────────────────────────

    def _poster_url(self, path: Optional[str]) -> Optional[str]:
        return f"{self._image_base}{path}" if path else None

    def _to_movie(self, item: Dict[str, Any], *, with_detail: bool = False) -> Movie:
        detail = _to_detail(item) if with_detail else None
        rating = item.get("vote_average")
        return Movie(
            id=str(item["id"]),
            title=item.get("title") or item.get("original_title") or "Untitled",
            release_date=item.get("release_date") or None,
            poster_url=self._poster_url(item.get("poster_path")),
            rating=float(rating) if rating else None,
            detail=detail,
        )


def _names(items: Any, field: str = "name") -> List[str]:
    if not isinstance(items, list):
        return []
    return [i[field] for i in items if isinstance(i, dict) and i.get(field)]


def _to_detail(item: Dict[str, Any]) -> MovieDetail:
    credits = item.get("credits") or {}
    crew = credits.get("crew") or []
    directors = [c["name"] for c in crew if isinstance(c, dict) and c.get("job") == "Director" and c.get("name")]
    imdb_id = item.get("imdb_id")
    return MovieDetail(
        overview=item.get("overview") or None,
        runtime=item.get("runtime") or None,
        cast=tuple(_names(credits.get("cast"))[:_MAX_CAST]),
        directors=tuple(directors),
        genres=tuple(_names(item.get("genres"))),
        countries=tuple(_names(item.get("production_countries"))),
        languages=tuple(_names(item.get("spoken_languages"), "english_name") or _names(item.get("spoken_languages"))),
        external_url=f"https://www.imdb.com/title/{imdb_id}" if imdb_id else None,
    )
