"""Application wiring for catalog browsing and administration."""
from __future__ import annotations

from functools import lru_cache

from ..catalog import CatalogService, PostgresCatalogRepository


@lru_cache(maxsize=1)
def get_catalog_repository() -> PostgresCatalogRepository:
    return PostgresCatalogRepository()


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    return CatalogService(repository=get_catalog_repository())


__all__ = ["get_catalog_repository", "get_catalog_service"]
