"""Implementation loaders for deep capability verification.

A loader maps ``(category, module)`` to the unit implementing that catalog
module, or raises when the unit cannot be loaded. Two strategies exist:

    ImportlibLoader: imports ``<package>.<category>.<module>`` on demand
    RegistryLoader: looks the unit up in an explicit, statically known table
"""

import importlib
import inspect
import re
from collections.abc import Callable, Mapping
from typing import Any, Protocol

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class ImplementationLoader(Protocol):
    """Resolves a catalog module to its implementation unit."""

    def load(self, category: str, module: str) -> Any:
        """Return the unit, or raise if it cannot be loaded."""
        ...


def to_identifier(segment: str) -> str:
    """Turn a catalog segment (``control-flow``) into a Python identifier (``control_flow``)."""
    return segment.replace("-", "_")


def to_snake_case(name: str) -> str:
    """Convert a camelCase function name to snake_case (``hashSHA256`` -> ``hash_sha256``)."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class ImportlibLoader:
    """Import implementation units from a Python package tree.

    Catalog module ``utilities.control-flow`` lives in
    ``<package>.utilities.control_flow``.
    """

    def __init__(self, package: str):
        self.package = package

    def module_name(self, category: str, module: str) -> str:
        return f"{self.package}.{to_identifier(category)}.{to_identifier(module)}"

    def load(self, category: str, module: str) -> Any:
        return importlib.import_module(self.module_name(category, module))


class RegistryLoader:
    """Serve implementation units from an explicit ``"category.module" -> unit`` table."""

    def __init__(self, units: Mapping[str, Any]):
        self._units = dict(units)

    def load(self, category: str, module: str) -> Any:
        key = f"{category}.{module}"
        try:
            return self._units[key]
        except KeyError:
            raise ModuleNotFoundError(f"No implementation registered for {key}") from None


def exported_callables(unit: Any) -> list[str]:
    """List the public callables a unit exports, sorted by name.

    Honors ``__all__`` when present. Otherwise, for modules, only callables
    defined in the module itself count (re-exported imports are skipped).
    Classes are not counted as functions.
    """
    names = getattr(unit, "__all__", None)
    defined_here = inspect.ismodule(unit) and names is None
    if names is None:
        names = [name for name in dir(unit) if not name.startswith("_")]

    exported = []
    for name in names:
        obj = getattr(unit, name, None)
        if obj is None or inspect.isclass(obj) or not callable(obj):
            continue
        if defined_here and getattr(obj, "__module__", unit.__name__) != unit.__name__:
            continue
        exported.append(name)
    return sorted(exported)


def resolve_function(unit: Any, name: str) -> Callable[..., Any] | None:
    """Find the callable backing a catalog function name.

    Tries the catalog name verbatim, then its snake_case form.
    """
    for candidate in (name, to_snake_case(name)):
        obj = getattr(unit, candidate, None)
        if obj is not None and callable(obj) and not inspect.isclass(obj):
            return obj
    return None
