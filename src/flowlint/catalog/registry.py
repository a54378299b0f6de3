"""Capability catalog consumed by the validator.

The catalog is a read-only ``category -> module -> function`` tree describing
every capability a workflow step may invoke. flowlint never builds or refreshes
it; it only loads a snapshot (the bundled one or a user-supplied file) and
answers lookups against it.

Catalog File Format (YAML or JSON):
    categories:
      - name: utilities
        modules:
          - name: math
            functions:
              - name: sum
                description: Add a list of numbers
                signature: "sum(values)"
"""

import json
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML

from flowlint.types import (
    CapabilityDescriptor,
    CatalogCategory,
    CatalogFunction,
    CatalogModule,
)

logger = structlog.get_logger(__name__)

BUILTIN_CATALOG_PATH = Path(__file__).parent / "builtin_catalog.yaml"


class CatalogError(Exception):
    """Raised when a catalog snapshot is missing or structurally invalid."""

    pass


class Catalog:
    """Immutable capability catalog with path lookups.

    Lookup tables are built once at construction; the instance is safe to
    share across concurrent validation calls.
    """

    def __init__(self, categories: list[CatalogCategory]):
        """Index the category tree.

        Args:
            categories: Catalog categories in display order

        Raises:
            CatalogError: If category or module names are duplicated
        """
        self._categories = tuple(categories)
        self._by_category: dict[str, CatalogCategory] = {}
        self._modules: dict[tuple[str, str], CatalogModule] = {}
        self._functions: dict[str, CatalogFunction] = {}

        for category in self._categories:
            if category.name in self._by_category:
                raise CatalogError(f"Duplicate catalog category: {category.name}")
            self._by_category[category.name] = category
            for module in category.modules:
                key = (category.name, module.name)
                if key in self._modules:
                    raise CatalogError(f"Duplicate catalog module: {category.name}.{module.name}")
                self._modules[key] = module
                for fn in module.functions:
                    self._functions[f"{category.name}.{module.name}.{fn.name}"] = fn

        self._paths = frozenset(self._functions)

    @classmethod
    def from_mapping(cls, data: Any) -> "Catalog":
        """Build a catalog from parsed YAML/JSON data.

        Accepts either ``{"categories": [...]}`` or a bare list of categories.

        Raises:
            CatalogError: If the data does not describe a catalog tree
        """
        raw = data.get("categories") if isinstance(data, dict) else data
        if not isinstance(raw, list):
            raise CatalogError("Catalog must be a list of categories or have a 'categories' list")
        try:
            categories = [CatalogCategory.model_validate(item) for item in raw]
        except PydanticValidationError as e:
            raise CatalogError(f"Invalid catalog structure: {e}") from e
        return cls(categories)

    @property
    def categories(self) -> tuple[CatalogCategory, ...]:
        return self._categories

    def paths(self) -> frozenset[str]:
        """All fully-qualified ``category.module.function`` paths."""
        return self._paths

    def category(self, name: str) -> CatalogCategory | None:
        return self._by_category.get(name)

    def module(self, category: str, name: str) -> CatalogModule | None:
        return self._modules.get((category, name))

    def function(self, path: str) -> CatalogFunction | None:
        return self._functions.get(path)

    def describe(self, path: str) -> CapabilityDescriptor | None:
        """Return the descriptor for a full path, or None if absent."""
        fn = self._functions.get(path)
        if fn is None:
            return None
        return CapabilityDescriptor(path=path, description=fn.description, signature=fn.signature)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[CapabilityDescriptor]:
        for category in self._categories:
            for module in category.modules:
                for fn in module.functions:
                    yield CapabilityDescriptor(
                        path=f"{category.name}.{module.name}.{fn.name}",
                        description=fn.description,
                        signature=fn.signature,
                    )

    def __len__(self) -> int:
        return len(self._paths)


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog snapshot from a YAML or JSON file.

    Args:
        path: Catalog file (.yaml, .yml or .json)

    Returns:
        Loaded Catalog

    Raises:
        CatalogError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            yaml = YAML(typ="safe", pure=True)
            data = yaml.load(content)
    except Exception as e:
        raise CatalogError(f"Failed to parse catalog {path}: {e}") from e

    catalog = Catalog.from_mapping(data)
    logger.debug("catalog_loaded", path=str(path), capabilities=len(catalog))
    return catalog


_builtin: Catalog | None = None
_builtin_lock = threading.Lock()


def builtin_catalog() -> Catalog:
    """Return the bundled catalog snapshot, loading it once per process."""
    global _builtin
    if _builtin is None:
        with _builtin_lock:
            if _builtin is None:
                _builtin = load_catalog(BUILTIN_CATALOG_PATH)
    return _builtin
