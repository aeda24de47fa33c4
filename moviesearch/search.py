"""
MovieSearch — Search Session

Owns query text, active sort / year filter, the current result page and
the total page count. Every transition replaces the immutable
SearchState wholesale.

Design patterns:
  - State Machine: empty → searched (with results or empty) → cleared
  - Strategy: sort keys map to stable sort functions
  - Memento: SearchState doubles as the navigation snapshot
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from moviesearch.clients import CatalogClient
from moviesearch.errors import CatalogError, SearchUnavailable
from moviesearch.models import Movie, PageWindow, SearchState, SortKey, normalize_year

logger = logging.getLogger(__name__)

_MAX_VISIBLE_PAGES = 5
_FIRST_YEAR = 1900


# ── Filtering and sorting (pure) ─────────────────────────


def filter_by_year(movies: Iterable[Movie], year: Optional[str]) -> List[Movie]:
    """Keep movies whose release-date year prefix equals `year`."""
    if not year:
        return list(movies)
    return [m for m in movies if m.release_year == year]


def _year_value(movie: Movie) -> int:
    try:
        return int(movie.release_year or 0)
    except ValueError:
        return 0


def sort_movies(movies: Iterable[Movie], key: SortKey) -> List[Movie]:
    """
    Stable client-side sort of one page of results.

    Titles compare case-insensitively; a missing year counts as 0, so it
    sorts last for year-newest and first for year-oldest.
    """
    items = list(movies)
    if key is SortKey.TITLE_ASC:
        return sorted(items, key=lambda m: m.title.casefold())
    if key is SortKey.TITLE_DESC:
        return sorted(items, key=lambda m: m.title.casefold(), reverse=True)
    if key is SortKey.YEAR_NEWEST:
        return sorted(items, key=_year_value, reverse=True)
    if key is SortKey.YEAR_OLDEST:
        return sorted(items, key=_year_value)
    return items


def page_window(current: int, total: int, max_visible: int = _MAX_VISIBLE_PAGES) -> PageWindow:
    """Page buttons centred on `current`; no controls at all for a single page."""
    if total <= 1:
        return PageWindow(current=current)
    start = max(1, current - max_visible // 2)
    end = min(total, start + max_visible - 1)
    if end - start + 1 < max_visible:
        start = max(1, end - max_visible + 1)
    return PageWindow(
        pages=list(range(start, end + 1)),
        current=current,
        has_previous=current > 1,
        has_next=current < total,
    )


def year_options(current_year: Optional[int] = None) -> List[int]:
    """Year selector values, newest first, down to 1900."""
    current_year = current_year or date.today().year
    return list(range(current_year, _FIRST_YEAR - 1, -1))


# ── Session ──────────────────────────────────────────────


class SearchSession:
    """
    One user's search interaction.

    Overlapping searches resolve last-issued-wins when
    `discard_stale=True`: a response for a request older than the latest
    one is dropped. With `discard_stale=False` the last response to
    arrive wins.
    """

    def __init__(self, catalog: CatalogClient, *, discard_stale: bool = True) -> None:
        self._catalog = catalog
        self._discard_stale = discard_stale
        self._state = SearchState()
        self._seq = 0
        self._in_flight = 0
        self.error: Optional[str] = None

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    # ── Core lookup ───────────────────────────────────────

    async def search(self, query: str, page: int = 1) -> SearchState:
        """
        Look up `query` at `page`, apply the active year filter and sort,
        and replace the session state with the outcome.

        A blank query is a no-op. On catalog failure the previous state
        is kept and SearchUnavailable is raised; nothing is retried.
        """
        if not query or not query.strip():
            return self._state
        return await self._lookup(query, page, sort=self._state.sort, year=self._state.year)

    async def _lookup(self, query: str, page: int, *, sort: SortKey, year: Optional[str]) -> SearchState:
        self._seq += 1
        seq = self._seq
        self._in_flight += 1
        self.error = None
        logger.info("Search %r page=%d sort=%s year=%s", query, page, sort.value, year or "all")

        try:
            result = await self._catalog.search_movies(query, page)
        except CatalogError as exc:
            if self._is_stale(seq):
                logger.debug("Ignoring failure of superseded search #%d", seq)
                return self._state
            logger.warning("Search %r page=%d failed: %s", query, page, exc)
            self.error = SearchUnavailable.message
            raise SearchUnavailable(query, page) from exc
        finally:
            self._in_flight -= 1

        if self._is_stale(seq):
            logger.debug("Discarding stale response for search #%d", seq)
            return self._state

        if not result.results:
            new_state = SearchState(
                query=query, page=1, total_pages=0, sort=sort, year=year, has_searched=True,
            )
        else:
            movies = sort_movies(filter_by_year(result.results, year), sort)
            total = max(result.total_pages, 1)
            new_state = SearchState(
                query=query,
                results=tuple(movies),
                page=min(max(page, 1), total),
                total_pages=total,
                sort=sort,
                year=year,
                has_searched=True,
            )

        self._state = new_state
        logger.info("Search %r page=%d → %d results, %d pages", query, page, len(new_state.results), new_state.total_pages)
        return new_state

    def _is_stale(self, seq: int) -> bool:
        return self._discard_stale and seq != self._seq

    # ── Filters and pagination ────────────────────────────

    async def set_sort(self, key: SortKey) -> SearchState:
        return await self._refilter(sort=key, year=self._state.year)

    async def set_year_filter(self, year: Optional[str]) -> SearchState:
        return await self._refilter(sort=self._state.sort, year=normalize_year(year))

    async def clear_filters(self) -> SearchState:
        return await self._refilter(sort=SortKey.NONE, year=None, force=True)

    async def change_page(self, page: int) -> SearchState:
        """Fetch another page; the caller keeps `page` within range."""
        return await self.search(self._state.query, page)

    async def _refilter(self, *, sort: SortKey, year: Optional[str], force: bool = False) -> SearchState:
        """
        Switch sort / year and re-run the same query at page 1.

        The new selection is published together with the results it
        produced, so a failed lookup leaves sort, year and results as
        they were.
        """
        staged = self._state.model_copy(update={"sort": sort, "year": year})
        if not staged.query or not (staged.has_searched or force):
            self._state = staged
            return staged
        return await self._lookup(staged.query, 1, sort=sort, year=year)

    # ── External input ────────────────────────────────────

    async def apply_external_query(self, query: str) -> SearchState:
        """Global search bar input: search page 1, or clear on empty."""
        if not query or not query.strip():
            return self.clear()
        return await self.search(query, 1)

    def clear(self) -> SearchState:
        """Empty the session without a network call. Sort and year stay."""
        self._seq += 1
        self.error = None
        self._state = self._state.model_copy(
            update={"query": "", "results": (), "page": 1, "total_pages": 0, "has_searched": False},
        )
        return self._state

    # ── Snapshots ─────────────────────────────────────────

    def snapshot(self) -> SearchState:
        return self._state.model_copy(update={"has_searched": True})

    def restore(self, snapshot: SearchState) -> SearchState:
        """Replace the live state with a snapshot verbatim."""
        self._seq += 1
        self.error = None
        self._state = snapshot
        logger.info("Restored search %r page=%d (%d results)", snapshot.query, snapshot.page, len(snapshot.results))
        return self._state
