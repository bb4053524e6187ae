"""FastAPI dependency providers for the draft session store and collaborators.

Each provider is cached so the app shares one instance per process. Tests
swap them out through ``app.dependency_overrides``.
"""

from functools import lru_cache

from tripcore.app.adapters.availability_cache import SessionAvailabilityCaches
from tripcore.app.adapters.catalog import CatalogClient, catalog_client_from_settings
from tripcore.app.adapters.generation import GenerationClient, generation_client_from_settings
from tripcore.app.adapters.persistence import PersistenceClient, persistence_client_from_settings
from tripcore.app.db.inmemory import InMemoryDraftRepository


@lru_cache
def get_draft_repository() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@lru_cache
def get_catalog_client() -> CatalogClient:
    return catalog_client_from_settings()


@lru_cache
def get_availability_caches() -> SessionAvailabilityCaches:
    """Availability caches keyed by draft id, backed by the catalog client."""
    return SessionAvailabilityCaches(get_catalog_client())


@lru_cache
def get_generation_client() -> GenerationClient:
    return generation_client_from_settings()


@lru_cache
def get_persistence_client() -> PersistenceClient:
    return persistence_client_from_settings()
