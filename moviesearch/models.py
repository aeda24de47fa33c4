"""
MovieSearch — Pydantic Models

Shared data models used across the catalog clients, accounts, search
session and HTTP surface.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_YEAR_RE = re.compile(r"^\d{4}$")


# ── Catalog: canonical movie shape ───────────────────────


class MovieDetail(BaseModel):
    """Detail payload fetched lazily for the detail view."""

    model_config = ConfigDict(frozen=True)

    overview: Optional[str] = None
    runtime: Optional[int] = Field(default=None, description="Minutes")
    cast: Tuple[str, ...] = ()
    directors: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    countries: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    external_url: Optional[str] = None


class Movie(BaseModel):
    """A catalog movie. Identity is the catalog key."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    release_date: Optional[str] = Field(default=None, description="ISO date or bare year")
    poster_url: Optional[str] = None
    rating: Optional[float] = None
    detail: Optional[MovieDetail] = None

    @property
    def release_year(self) -> Optional[str]:
        """4-character year prefix of the release date, if any."""
        if self.release_date and len(self.release_date) >= 4:
            return self.release_date[:4]
        return None


class CatalogPage(BaseModel):
    """One page of catalog search results."""

    results: List[Movie] = Field(default_factory=list)
    total_pages: int = 0


# ── Search session ───────────────────────────────────────


class SortKey(str, Enum):
    NONE = "none"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    YEAR_NEWEST = "year-newest"
    YEAR_OLDEST = "year-oldest"


def normalize_year(value: Optional[str]) -> Optional[str]:
    """Map "", "none" and None to no filter; anything else must be a 4-digit year."""
    if value is None or value == "" or value == "none":
        return None
    if not _YEAR_RE.match(value):
        raise ValueError("year filter must be a 4-digit year")
    return value


class SearchState(BaseModel):
    """
    Immutable search-session state.

    Replaced wholesale on every transition, so any instance can double
    as a navigation snapshot.
    """

    model_config = ConfigDict(frozen=True)

    query: str = ""
    results: Tuple[Movie, ...] = ()
    page: int = 1
    total_pages: int = 0
    sort: SortKey = SortKey.NONE
    year: Optional[str] = None
    has_searched: bool = False

    @field_validator("year")
    @classmethod
    def _valid_year(cls, v: Optional[str]) -> Optional[str]:
        return normalize_year(v)


class PageWindow(BaseModel):
    """Pagination controls for the results view."""

    pages: List[int] = Field(default_factory=list)
    current: int = 1
    has_previous: bool = False
    has_next: bool = False


# ── Accounts ─────────────────────────────────────────────


class UserIdentity(BaseModel):
    """The authenticated principal. Never carries the credential."""

    id: str
    name: str
    email: str


class RegistryEntry(UserIdentity):
    """Persisted record used only for login matching."""

    credential: str

    def public(self) -> UserIdentity:
        return UserIdentity(id=self.id, name=self.name, email=self.email)


# ── API Contract ─────────────────────────────────────────


class SearchRequest(BaseModel):
    query: str = Field(..., max_length=500)
    page: int = Field(default=1, ge=1)


class GlobalSearchRequest(BaseModel):
    query: str = Field(default="", max_length=500)


class SortRequest(BaseModel):
    sort: SortKey = SortKey.NONE


class YearFilterRequest(BaseModel):
    year: Optional[str] = None

    @field_validator("year")
    @classmethod
    def _valid_year(cls, v: Optional[str]) -> Optional[str]:
        return normalize_year(v)


class PageRequest(BaseModel):
    page: int = Field(..., ge=1)


class SearchStateResponse(BaseModel):
    state: SearchState
    pagination: PageWindow
    is_loading: bool = False
    error: Optional[str] = None
    restored: bool = False


class DetailRouteResponse(BaseModel):
    movie_id: str
    snapshot_token: str


class MovieDetailResponse(BaseModel):
    movie: Movie
    is_favorite: bool = False
    snapshot_token: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class FavoritesResponse(BaseModel):
    user: UserIdentity
    favorites: List[Movie]
    count: int


class FavoriteToggleResponse(BaseModel):
    movie_id: str
    changed: bool
    is_favorite: bool
