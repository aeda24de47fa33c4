"""
MovieSearch — Navigation Bridge

Carries search-session snapshots across a results → detail → results
round trip, and routes global search-bar input to the session as a
plain command message.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from moviesearch.models import SearchState
from moviesearch.search import SearchSession

logger = logging.getLogger(__name__)

_MAX_PENDING = 32


class SearchCommand(BaseModel):
    """'Perform search' message emitted by the global search bar."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(default="", max_length=500)


class DetailRoute(BaseModel):
    """The navigation event produced when leaving the results view."""

    model_config = ConfigDict(frozen=True)

    movie_id: str
    snapshot_token: str


class NavigationBridge:
    def __init__(self, session: SearchSession) -> None:
        self._session = session
        self._pending: Dict[str, SearchState] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ── Results ⇄ detail ─────────────────────────────────

    def open_detail(self, movie_id: str) -> DetailRoute:
        """Snapshot the session and attach it to a detail navigation."""
        token = uuid.uuid4().hex
        self._pending[token] = self._session.snapshot()
        # drop the oldest tokens from abandoned detail views
        while len(self._pending) > _MAX_PENDING:
            self._pending.pop(next(iter(self._pending)))
        logger.debug("Captured snapshot %s for movie %s", token, movie_id)
        return DetailRoute(movie_id=movie_id, snapshot_token=token)

    def has_snapshot(self, token: Optional[str]) -> bool:
        return bool(token) and token in self._pending

    def return_to_results(self, token: Optional[str]) -> bool:
        """
        Restore the snapshot carried by `token`, exactly once.

        A missing, unknown or already-used token (deep link, repeated
        back) arrives at a fresh results view: the session is cleared
        and False is returned.
        """
        snapshot = self._pending.pop(token, None) if token else None
        if snapshot is None:
            logger.debug("No pending snapshot for token %s; clearing results", token)
            self._session.clear()
            return False
        self._session.restore(snapshot)
        return True

    # ── Global search bar ────────────────────────────────

    async def dispatch(self, command: SearchCommand) -> SearchState:
        return await self._session.apply_external_query(command.query.strip())

    async def go_home(self) -> SearchState:
        """Brand / home link: an empty global query clears the session."""
        return await self.dispatch(SearchCommand(query=""))
