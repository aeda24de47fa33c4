"""
Shared fixtures: an in-memory catalog and store.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from moviesearch.clients import CatalogClient
from moviesearch.errors import CatalogUnavailable, DetailNotFound
from moviesearch.models import CatalogPage, Movie, MovieDetail
from moviesearch.storage import MemoryStore


def make_movie(movie_id: str, title: str, release_date: Optional[str] = None) -> Movie:
    return Movie(id=movie_id, title=title, release_date=release_date)


class FakeCatalog(CatalogClient):
    """Serves canned pages; a query of "boom" fails like a dead network."""

    def __init__(self, pages: Optional[Dict[Tuple[str, int], CatalogPage]] = None) -> None:
        self.pages = pages or {}
        self.calls: List[Tuple[str, int]] = []
        self.gates: Dict[Tuple[str, int], asyncio.Event] = {}
        self.closed = False

    async def search_movies(self, query: str, page: int = 1) -> CatalogPage:
        self.calls.append((query, page))
        gate = self.gates.get((query, page))
        if gate is not None:
            await gate.wait()
        if query == "boom":
            raise CatalogUnavailable("connection refused")
        return self.pages.get((query, page), CatalogPage())

    async def get_movie_detail(self, movie_id: str) -> Movie:
        for page in self.pages.values():
            for movie in page.results:
                if movie.id == movie_id:
                    return movie.model_copy(update={"detail": MovieDetail(overview=f"About {movie.title}")})
        raise DetailNotFound(movie_id)

    async def aclose(self) -> None:
        self.closed = True


HEAT = make_movie("807", "Heat", "1995-12-15")
RONIN = make_movie("8195", "Ronin", "1998-09-12")
THIEF = make_movie("11524", "Thief", "1981-03-27")
UNDATED = make_movie("1", "Heist Untitled")


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog({
        ("heist", 1): CatalogPage(results=[HEAT, RONIN, THIEF, UNDATED], total_pages=3),
        ("heist", 2): CatalogPage(results=[make_movie("500", "Inside Man", "2006-03-17")], total_pages=3),
        ("years", 1): CatalogPage(
            results=[
                make_movie("a", "Alpha", "2020-01-01"),
                make_movie("b", "Beta", "2019-05-05"),
                make_movie("c", "Gamma"),
            ],
            total_pages=1,
        ),
    })


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
