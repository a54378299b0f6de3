"""Variable reference checking across the step sequence.

Steps are walked top to bottom with a growing set of bound names, seeded with
the built-ins. A ``{{name...}}`` reference in a step's inputs must name a
built-in or the ``outputAs`` of an earlier step. A step's own binding only
becomes visible to the steps after it.

Scope is flat: once bound, a name stays visible for the rest of the sequence,
even if the binding step sits in a branch that may not run. That can miss a
reference to a conditionally produced value; it never flags a correct one.
"""

import difflib
import re
from collections.abc import Iterator, Sequence
from typing import Any

import structlog

from flowlint.types import (
    BUILTIN_VARIABLES,
    Diagnostic,
    DiagnosticKind,
    Step,
    ValidationResult,
)

logger = structlog.get_logger(__name__)

# {{name}}, {{name.field}}, {{name[0]}}, {{name.items[2].id}}
TEMPLATE_REFERENCE = re.compile(r"\{\{([A-Za-z_]\w*)(?:\.\w+|\[\d+\])*\}\}")


def _strings(value: Any) -> Iterator[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from _strings(key)
            yield from _strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _strings(item)


def extract_references(value: Any) -> list[str]:
    """Return root identifiers of all template references in a value.

    Walks nested dicts (keys and values) and lists in order. Duplicates are
    kept; callers decide how to report them.

    Examples:
        >>> extract_references({"to": "{{user.email}}", "rows": ["{{data[0].id}}"]})
        ['user', 'data']
    """
    return [
        match.group(1)
        for text in _strings(value)
        for match in TEMPLATE_REFERENCE.finditer(text)
    ]


def _unbound(name: str, location: str, context: str, bound: set[str]) -> Diagnostic:
    suggestion = f'Declare "{name}" in a previous step using "outputAs", or check for typos'
    close = difflib.get_close_matches(name, sorted(bound), n=1, cutoff=0.7)
    if close:
        suggestion += f". Did you mean '{close[0]}'?"
    return Diagnostic(
        location=location,
        message=f"Reference to undeclared variable: {name} ({context})",
        kind=DiagnosticKind.UNBOUND_VARIABLE,
        suggestion=suggestion,
    )


def validate_variable_references(steps: Sequence[Step]) -> ValidationResult:
    """Check that every template reference is bound before use.

    Each unbound name is reported once per step, in first-occurrence order.

    Args:
        steps: Steps in declaration order

    Returns:
        ValidationResult with unbound-variable diagnostics addressed to
        /steps/<index>/inputs
    """
    bound = set(BUILTIN_VARIABLES)
    diagnostics = []

    for index, step in enumerate(steps):
        # One diagnostic per unbound name per step, not per occurrence
        reported: set[str] = set()
        for name in extract_references(step.inputs):
            if name in bound or name in reported:
                continue
            reported.add(name)
            logger.debug("unbound_variable", step_id=step.id, variable=name)
            diagnostics.append(
                _unbound(name, f"/steps/{index}/inputs", f'step "{step.id}"', bound)
            )

        if step.output_as:
            bound.add(step.output_as)

    return ValidationResult.from_diagnostics(diagnostics)


def validate_return_value(return_value: str | None, steps: Sequence[Step]) -> ValidationResult:
    """Check that a workflow's returnValue references a bound name.

    The return value is evaluated after the last step, so every binding in
    the sequence is visible.
    """
    if not return_value:
        return ValidationResult(valid=True)

    bound = set(BUILTIN_VARIABLES) | {step.output_as for step in steps if step.output_as}
    diagnostics = []
    for name in dict.fromkeys(extract_references(return_value)):
        if name not in bound:
            diagnostics.append(_unbound(name, "/returnValue", "returnValue", bound))

    return ValidationResult.from_diagnostics(diagnostics)
