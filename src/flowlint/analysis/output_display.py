"""Output display compatibility checks.

Two independent checks against the declared ``outputDisplay`` and the last
step:

    structural: a table display must declare at least one column
    heuristic:  a table display fed by a step whose path names a known
                scalar-producing function is probably a shape mismatch

The heuristic is lexical. It can fire on a path that happens to contain a
fragment (``count`` in ``accountList``) and miss scalar producers it does not
know about, which is why it has its own advisory diagnostic kind.
"""

import structlog

from flowlint.types import (
    Diagnostic,
    DiagnosticKind,
    HeuristicPolicy,
    OutputDisplay,
    Step,
    ValidationResult,
)

logger = structlog.get_logger(__name__)

# Function name fragments whose results are single values, not arrays
SCALAR_FUNCTION_FRAGMENTS = (
    "average",
    "sum",
    "count",
    "min",
    "max",
    "hashSHA256",
    "generateUUID",
    "now",
    "toISO",
)

ARRAY_DISPLAY_TYPES = frozenset({"table"})


def validate_output_display(
    output_display: OutputDisplay | None,
    last_step: Step | None,
    policy: HeuristicPolicy = HeuristicPolicy.ERROR,
) -> ValidationResult:
    """Check the output display against the final step.

    Args:
        output_display: Declared display, if any
        last_step: Final step of the sequence, if any
        policy: Severity policy for the lexical heuristic

    Returns:
        ValidationResult (always valid when either argument is absent)
    """
    if output_display is None or last_step is None:
        return ValidationResult(valid=True)

    diagnostics = []
    is_array_display = output_display.type in ARRAY_DISPLAY_TYPES

    if is_array_display and not output_display.columns:
        diagnostics.append(
            Diagnostic(
                location="/outputDisplay/columns",
                message="Table display requires columns array",
                kind=DiagnosticKind.OUTPUT_SHAPE_ERROR,
                suggestion='Add a columns array with at least one {"key", "label"} entry',
            )
        )

    if is_array_display and policy is not HeuristicPolicy.OFF:
        fragment = next(
            (f for f in SCALAR_FUNCTION_FRAGMENTS if f in last_step.capability_path), None
        )
        if fragment is not None:
            logger.debug(
                "output_shape_heuristic_fired",
                step_id=last_step.id,
                capability_path=last_step.capability_path,
                fragment=fragment,
            )
            diagnostics.append(
                Diagnostic(
                    location="/outputDisplay/type",
                    message=(
                        f'Last step "{last_step.id}" ({last_step.capability_path}) likely returns '
                        f'a single value, but output display is "{output_display.type}" '
                        "(expects array)"
                    ),
                    kind=DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING,
                    suggestion=(
                        'Change outputDisplay.type to "text" or "json", '
                        "or ensure the last step returns an array"
                    ),
                )
            )

    return ValidationResult.from_diagnostics(
        diagnostics, advisory_blocks=policy is HeuristicPolicy.ERROR
    )
