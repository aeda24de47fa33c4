"""
MovieSearch — Identity Manager and Favorites Ledger

Credentials are compared in plaintext; this is a demonstration account
layer, not a hardened one.

Design patterns:
  - Observer: the ledger subscribes to identity changes to load or
    clear the in-memory favorites set
  - Write-through: every mutation persists immediately to the LocalStore
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from moviesearch.errors import DuplicateEmail, InvalidCredentials
from moviesearch.models import Movie, RegistryEntry, UserIdentity
from moviesearch.storage import LocalStore

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user"
REGISTRY_KEY = "users"
FAVORITES_KEY = "favorites"

_registry_adapter = TypeAdapter(List[RegistryEntry])
_favorites_adapter = TypeAdapter(List[Movie])

IdentityListener = Callable[[Optional[UserIdentity]], None]


# ── Identity Manager ─────────────────────────────────────


class IdentityManager:
    """Owns the current identity and the persisted user registry."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._current: Optional[UserIdentity] = None
        self._listeners: List[IdentityListener] = []

    @property
    def current(self) -> Optional[UserIdentity]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    def rehydrate(self) -> Optional[UserIdentity]:
        """Restore the identity persisted by a previous run."""
        raw = self._store.get(CURRENT_USER_KEY)
        identity = None
        if raw:
            try:
                identity = UserIdentity.model_validate_json(raw)
            except ValidationError as exc:
                logger.warning("Discarding unreadable stored identity: %s", exc)
                self._store.remove(CURRENT_USER_KEY)
        self._set_current(identity, persist=False)
        if identity:
            logger.info("Rehydrated identity %s", identity.id)
        return identity

    # ── Registry ──────────────────────────────────────────

    def _load_registry(self) -> List[RegistryEntry]:
        raw = self._store.get(REGISTRY_KEY)
        if not raw:
            return []
        try:
            return _registry_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("User registry is unreadable, treating as empty: %s", exc)
            return []

    def _save_registry(self, entries: List[RegistryEntry]) -> None:
        self._store.set(REGISTRY_KEY, _registry_adapter.dump_json(entries).decode())

    # ── Operations ────────────────────────────────────────

    def register(self, name: str, email: str, credential: str) -> UserIdentity:
        """Create a registry entry and log it in. Emails match case-sensitively."""
        entries = self._load_registry()
        if any(e.email == email for e in entries):
            logger.info("Registration rejected: duplicate email")
            raise DuplicateEmail(email)

        entry = RegistryEntry(id=uuid.uuid4().hex, name=name, email=email, credential=credential)
        entries.append(entry)
        self._save_registry(entries)
        logger.info("Registered identity %s", entry.id)

        identity = entry.public()
        self._set_current(identity)
        return identity

    def login(self, email: str, credential: str) -> UserIdentity:
        for entry in self._load_registry():
            if entry.email == email and entry.credential == credential:
                identity = entry.public()
                self._set_current(identity)
                logger.info("Logged in identity %s", identity.id)
                return identity
        logger.info("Login rejected: invalid credentials")
        raise InvalidCredentials()

    def logout(self) -> None:
        if self._current:
            logger.info("Logged out identity %s", self._current.id)
        self._set_current(None)

    def _set_current(self, identity: Optional[UserIdentity], *, persist: bool = True) -> None:
        self._current = identity
        if persist:
            if identity:
                self._store.set(CURRENT_USER_KEY, identity.model_dump_json())
            else:
                self._store.remove(CURRENT_USER_KEY)
        for listener in self._listeners:
            listener(identity)


# ── Favorites Ledger ─────────────────────────────────────


class FavoritesLedger:
    """
    The current identity's favorite movies, keyed by movie id.

    With scope "identity" each user has their own storage key; with
    scope "shared" every identity on the device reads and writes one
    slot.
    """

    def __init__(self, identity: IdentityManager, store: LocalStore, *, scope: str = "identity") -> None:
        self._identity = identity
        self._store = store
        self._scope = scope
        self._favorites: Dict[str, Movie] = {}
        identity.subscribe(self._on_identity_changed)
        self._on_identity_changed(identity.current)

    def _storage_key(self, user: UserIdentity) -> str:
        if self._scope == "shared":
            return FAVORITES_KEY
        return f"{FAVORITES_KEY}:{user.id}"

    def _on_identity_changed(self, user: Optional[UserIdentity]) -> None:
        if user is None:
            # In-memory only; persisted favorites survive until next login.
            self._favorites = {}
            return
        self._favorites = self._load(user)
        logger.debug("Loaded %d favorites for %s", len(self._favorites), user.id)

    def _load(self, user: UserIdentity) -> Dict[str, Movie]:
        raw = self._store.get(self._storage_key(user))
        if not raw:
            return {}
        try:
            movies = _favorites_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Favorites for %s are unreadable, treating as empty: %s", user.id, exc)
            return {}
        return {m.id: m for m in movies}

    def _persist(self, user: UserIdentity) -> None:
        payload = _favorites_adapter.dump_json(list(self._favorites.values())).decode()
        self._store.set(self._storage_key(user), payload)

    # ── Operations ────────────────────────────────────────

    def add(self, movie: Movie) -> bool:
        """Add a movie. False when logged out or already present."""
        user = self._identity.current
        if user is None or movie.id in self._favorites:
            return False
        self._favorites[movie.id] = movie
        self._persist(user)
        return True

    def remove(self, movie_id: str) -> bool:
        """Ensure the movie is absent. False only when logged out."""
        user = self._identity.current
        if user is None:
            return False
        if self._favorites.pop(movie_id, None) is not None:
            self._persist(user)
        return True

    def is_favorite(self, movie_id: str) -> bool:
        if self._identity.current is None:
            return False
        return movie_id in self._favorites

    def list(self) -> List[Movie]:
        """Favorites in insertion order."""
        if self._identity.current is None:
            return []
        return list(self._favorites.values())

    @property
    def count(self) -> int:
        return len(self.list())
