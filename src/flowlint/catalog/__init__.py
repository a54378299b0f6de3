"""Capability catalog loading and search."""

from flowlint.catalog.registry import (
    Catalog,
    CatalogError,
    builtin_catalog,
    load_catalog,
)
from flowlint.catalog.search import parse_signature, search_catalog

__all__ = [
    "Catalog",
    "CatalogError",
    "builtin_catalog",
    "load_catalog",
    "parse_signature",
    "search_catalog",
]
