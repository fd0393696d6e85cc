from __future__ import annotations

import logging

from ..importer.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ..importer.csv_import import import_file
from .store import CatalogStore

logger = logging.getLogger(__name__)

_store: CatalogStore | None = None


def _load(config: ImportConfig = DEFAULT_IMPORT_CONFIG) -> CatalogStore:
    store = CatalogStore()
    for table, filename in config.seed_files:
        path = config.seed_dir / filename
        if not path.exists():
            logger.warning("Seed file %s missing, %s starts empty", path, table)
            continue
        import_file(store, table, path, config)
    return store


def get_store() -> CatalogStore:
    """Return the in-memory catalog, seeding it on first call."""
    global _store
    if _store is None:
        _store = _load()
    return _store


def reset_store() -> CatalogStore:
    """Drop all catalog changes and reload the packaged seed data."""
    global _store
    _store = _load()
    return _store
