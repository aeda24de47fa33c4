"""
MovieSearch — Error taxonomy

All errors are recoverable at the UI boundary by retrying the
triggering action; none is fatal to the process.
"""

from __future__ import annotations

from typing import Optional


class MovieSearchError(Exception):
    """Base class for every error raised by this package."""


# ── Catalog ──────────────────────────────────────────────


class CatalogError(MovieSearchError):
    pass


class CatalogUnavailable(CatalogError):
    """Transport failure, non-2xx status or malformed payload."""


class DetailNotFound(CatalogError):
    def __init__(self, movie_id: str, reason: Optional[str] = None) -> None:
        self.movie_id = movie_id
        super().__init__(reason or f"Movie {movie_id!r} not found")


# ── Search session ───────────────────────────────────────


class SearchUnavailable(MovieSearchError):
    """A lookup failed; the session kept its previous state."""

    message = "Failed to search movies. Please try again."

    def __init__(self, query: str, page: int) -> None:
        self.query = query
        self.page = page
        super().__init__(self.message)


# ── Accounts ─────────────────────────────────────────────


class AuthError(MovieSearchError):
    pass


class DuplicateEmail(AuthError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("User with this email already exists")


class InvalidCredentials(AuthError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class NotAuthenticated(AuthError):
    def __init__(self) -> None:
        super().__init__("Login required")
