"""Capability path resolution against the catalog.

Every step's ``category.module.function`` path must exist in the catalog.
When it does not, the suggestion is narrowed to the first segment that fails
to resolve so a caller (often an automated fixer) can correct exactly that
segment:

    unknown category -> list all categories
    unknown module   -> list modules of that category
    unknown function -> list functions of that module

Signature compatibility is not checked here. Catalog signature strings are
advisory metadata; implementation checks live in the deep verification pass
(flowlint.capability.verifier).
"""

import difflib
from collections.abc import Sequence

import structlog

from flowlint.catalog.registry import Catalog
from flowlint.types import Diagnostic, DiagnosticKind, Step, ValidationResult

logger = structlog.get_logger(__name__)

FORMAT_HINT = "Check capability path format: category.module.function"


def _did_you_mean(name: str, candidates: Sequence[str]) -> str:
    matches = difflib.get_close_matches(name, candidates, n=3, cutoff=0.6)
    if not matches:
        return ""
    return f" Did you mean: {', '.join(repr(m) for m in matches)}?"


def _suggest_category(catalog: Catalog, category: str) -> str | None:
    if catalog.category(category) is not None:
        return None
    names = [c.name for c in catalog.categories]
    return (
        f'Category "{category}" not found. Available: {", ".join(names)}.'
        + _did_you_mean(category, names)
    )


def _suggest_module(catalog: Catalog, category: str, module: str) -> str | None:
    found = catalog.category(category)
    if found is None or catalog.module(category, module) is not None:
        return None
    names = [m.name for m in found.modules]
    return (
        f'Module "{module}" not found in category "{category}". Available: {", ".join(names)}.'
        + _did_you_mean(module, names)
    )


def _suggest_function(catalog: Catalog, category: str, module: str, function: str) -> str | None:
    found = catalog.module(category, module)
    if found is None:
        return None
    names = [fn.name for fn in found.functions]
    return (
        f'Function "{function}" not found in {category}.{module}. Available: {", ".join(names)}.'
        + _did_you_mean(function, names)
    )


def suggest_for_path(path: str, catalog: Catalog) -> str:
    """Build the most specific suggestion for an unresolved capability path.

    Args:
        path: The step's capability path
        catalog: Catalog the path was looked up in

    Returns:
        Suggestion naming the first segment that does not resolve
    """
    parts = path.split(".")
    if len(parts) != 3:
        return FORMAT_HINT
    category, module, function = parts
    return (
        _suggest_category(catalog, category)
        or _suggest_module(catalog, category, module)
        or _suggest_function(catalog, category, module, function)
        or FORMAT_HINT
    )


def validate_capability_paths(steps: Sequence[Step], catalog: Catalog) -> ValidationResult:
    """Check that every step's capability path exists in the catalog.

    Args:
        steps: Steps in declaration order
        catalog: Capability catalog snapshot

    Returns:
        ValidationResult with one capability-not-found diagnostic per
        unresolved step, addressed by step id
    """
    known = catalog.paths()
    diagnostics = []

    for step in steps:
        if step.capability_path in known:
            continue

        suggestion = suggest_for_path(step.capability_path, catalog)
        logger.debug(
            "capability_not_found",
            step_id=step.id,
            capability_path=step.capability_path,
        )
        diagnostics.append(
            Diagnostic(
                location=f"/steps/{step.id}/capabilityPath",
                message=f'Capability path "{step.capability_path}" not found in catalog',
                kind=DiagnosticKind.CAPABILITY_NOT_FOUND,
                suggestion=suggestion,
            )
        )

    return ValidationResult.from_diagnostics(diagnostics)
