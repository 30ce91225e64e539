"""Catalog sources: where raw vendor SKU lines come from."""

from costwright.catalog.store import (
    CATALOG_FILES,
    Catalog,
    FileCatalog,
    InMemoryCatalog,
    load_catalog_file,
)

__all__ = [
    "CATALOG_FILES",
    "Catalog",
    "FileCatalog",
    "InMemoryCatalog",
    "load_catalog_file",
]
