"""Capability path resolution and implementation verification."""

from flowlint.capability.loaders import (
    ImplementationLoader,
    ImportlibLoader,
    RegistryLoader,
)
from flowlint.capability.resolver import suggest_for_path, validate_capability_paths
from flowlint.capability.verifier import (
    verify_capability_implementations,
    verify_capability_implementations_sync,
)

__all__ = [
    "ImplementationLoader",
    "ImportlibLoader",
    "RegistryLoader",
    "suggest_for_path",
    "validate_capability_paths",
    "verify_capability_implementations",
    "verify_capability_implementations_sync",
]
