"""
MovieSearch — Catalog clients

Factory pattern: create_catalog_client() builds the configured provider.
Every provider returns the canonical Movie / CatalogPage models.
"""

from __future__ import annotations

import logging

from moviesearch.clients.base import CatalogClient, HTTPCatalogClient
from moviesearch.clients.omdb import OMDbClient
from moviesearch.clients.tmdb import TMDBClient
from moviesearch.config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogClient",
    "HTTPCatalogClient",
    "OMDbClient",
    "TMDBClient",
    "create_catalog_client",
]


def create_catalog_client(cfg: Settings) -> CatalogClient:
    """Factory: build the catalog client selected by `catalog_provider`."""
    if cfg.catalog_provider == "omdb":
        if not cfg.omdb_api_key:
            logger.warning("OMDB_API_KEY is not set; catalog requests will fail")
        return OMDbClient(cfg)
    if not (cfg.tmdb_api_read_token or cfg.tmdb_api_key):
        logger.warning("TMDB credentials are not set; catalog requests will fail")
    return TMDBClient(cfg)
