"""
MovieSearch — Catalog client base

Design patterns:
  - Repository: abstracts the remote catalog behind search / detail calls
  - Cache Aside: in-memory TTL cache to avoid redundant API calls
  - Template Method: subclasses supply the provider-specific translation,
    the base class owns transport, caching and error mapping
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

import httpx
from pydantic import ValidationError

from moviesearch.errors import CatalogUnavailable, DetailNotFound
from moviesearch.models import CatalogPage, Movie

logger = logging.getLogger(__name__)


class CatalogClient(ABC):
    """Stateless request/response wrapper around a remote movie catalog."""

    @abstractmethod
    async def search_movies(self, query: str, page: int = 1) -> CatalogPage:
        ...

    @abstractmethod
    async def get_movie_detail(self, movie_id: str) -> Movie:
        ...

    async def aclose(self) -> None:
        return None


class HTTPCatalogClient(CatalogClient):
    """Shared httpx plumbing: pooled client, TTL cache, 429 backoff."""

    name = "catalog"

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        default_params: Optional[Dict[str, Any]] = None,
        timeout: float = 15.0,
        max_retries: int = 1,
        cache_ttl: float = 900,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._headers = headers or {}
        self._default_params = default_params or {}
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._cache_ttl = cache_ttl
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._cache: Dict[str, Tuple[float, Any]] = {}

    # ── Cache ─────────────────────────────────────────────

    @staticmethod
    def _cache_key(path: str, params: dict) -> str:
        raw = f"{path}:{json.dumps(params, sort_keys=True)}"
        return hashlib.md5(raw.encode()).hexdigest()

    def _get_cached(self, key: str) -> Optional[Any]:
        if key in self._cache:
            ts, val = self._cache[key]
            if time.time() - ts < self._cache_ttl:
                return val
            del self._cache[key]
        return None

    def _set_cached(self, key: str, val: Any) -> None:
        self._cache[key] = (time.time(), val)

    # ── Shared client ─────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 10.0)),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # ── Request ───────────────────────────────────────────

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        not_found_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        GET `path` and return the decoded JSON object.

        Raises DetailNotFound on 404 when `not_found_id` is given,
        CatalogUnavailable on anything else that is not a 2xx JSON object.
        """
        params = {**self._default_params, **(params or {})}
        ckey = self._cache_key(path, params)
        cached = self._get_cached(ckey)
        if cached is not None:
            logger.debug("%s cache HIT: %s", self.name, path)
            return cached

        client = self._get_client()
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await client.get(path, params=params)
            except httpx.HTTPError as exc:
                if attempt >= self._max_retries:
                    raise CatalogUnavailable(f"{self.name} request failed: {exc}") from exc
                wait = 2 ** attempt
                logger.warning(
                    "%s request error (attempt %d/%d): %s – retrying in %ds",
                    self.name, attempt, self._max_retries, exc, wait,
                )
                await asyncio.sleep(wait)
                continue

            if resp.status_code == 429 and attempt < self._max_retries:
                wait = float(resp.headers.get("Retry-After", 2 ** attempt))
                logger.warning("%s rate-limited, waiting %.1fs", self.name, wait)
                await asyncio.sleep(wait)
                continue
            break

        if resp.status_code == 404 and not_found_id is not None:
            raise DetailNotFound(not_found_id)
        if not resp.is_success:
            raise CatalogUnavailable(f"{self.name} returned HTTP {resp.status_code} for {path}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise CatalogUnavailable(f"{self.name} returned malformed JSON for {path}") from exc
        if not isinstance(data, dict):
            raise CatalogUnavailable(f"{self.name} returned unexpected payload for {path}")

        if self._is_cacheable(data):
            self._set_cached(ckey, data)
        return data

    def _is_cacheable(self, data: Dict[str, Any]) -> bool:
        return True

    def _forget(self, path: str, params: Optional[Dict[str, Any]] = None) -> None:
        params = {**self._default_params, **(params or {})}
        self._cache.pop(self._cache_key(path, params), None)

    @contextmanager
    def _translating(self, path: str, params: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        """
        Guard payload translation: a field of the wrong type or shape
        becomes CatalogUnavailable, and the bad payload leaves the cache.
        """
        try:
            yield
        except (ValidationError, TypeError, ValueError, KeyError, AttributeError) as exc:
            self._forget(path, params)
            logger.warning("%s returned a malformed payload for %s: %s", self.name, path, exc)
            raise CatalogUnavailable(f"{self.name} returned malformed payload for {path}") from exc
