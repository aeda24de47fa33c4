"""
MovieSearch — Application context

One explicitly constructed object holding every stateful component of
the single active client session. Handed to whatever needs it; there is
no ambient singleton for user state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from moviesearch.accounts import FavoritesLedger, IdentityManager
from moviesearch.clients import CatalogClient, create_catalog_client
from moviesearch.config import Settings
from moviesearch.navigation import NavigationBridge
from moviesearch.search import SearchSession
from moviesearch.storage import LocalStore, create_store

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    store: LocalStore
    catalog: CatalogClient
    identity: IdentityManager
    favorites: FavoritesLedger
    session: SearchSession
    bridge: NavigationBridge

    async def aclose(self) -> None:
        await self.catalog.aclose()


def build_context(
    cfg: Settings,
    *,
    store: Optional[LocalStore] = None,
    catalog: Optional[CatalogClient] = None,
) -> AppContext:
    """Wire the components; the identity is rehydrated before favorites load."""
    store = store if store is not None else create_store(cfg)
    catalog = catalog if catalog is not None else create_catalog_client(cfg)

    identity = IdentityManager(store)
    identity.rehydrate()
    favorites = FavoritesLedger(identity, store, scope=cfg.favorites_scope)

    session = SearchSession(catalog, discard_stale=cfg.discard_stale_responses)
    bridge = NavigationBridge(session)
    return AppContext(
        store=store,
        catalog=catalog,
        identity=identity,
        favorites=favorites,
        session=session,
        bridge=bridge,
    )
