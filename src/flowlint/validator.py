"""End-to-end workflow definition validation.

Validation Flow:
    1. Structural schema (hard gate: later passes assume a well-typed skeleton)
    2. Capability paths against the catalog
    3. Variable references in step order, then returnValue
    4. Output display compatibility with the last step

Passes 2-4 always all run once the gate is passed, and their diagnostics are
concatenated in that order, so one call reports every defect it can find.
Deep implementation verification is separate (flowlint.capability.verifier)
because it performs I/O.
"""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flowlint.analysis.dataflow import validate_return_value, validate_variable_references
from flowlint.analysis.output_display import validate_output_display
from flowlint.capability.resolver import validate_capability_paths
from flowlint.catalog.registry import Catalog, builtin_catalog
from flowlint.schema.validator import to_pointer, validate_structure
from flowlint.types import (
    Diagnostic,
    DiagnosticKind,
    HeuristicPolicy,
    ValidationResult,
    WorkflowDefinition,
)

logger = structlog.get_logger(__name__)


def _model_diagnostics(error: PydanticValidationError) -> list[Diagnostic]:
    return [
        Diagnostic(
            location=to_pointer([p for p in detail["loc"] if p != "[key]"]),
            message=detail["msg"],
            kind=DiagnosticKind.SCHEMA_VIOLATION,
        )
        for detail in error.errors()
    ]


class WorkflowValidator:
    """Validates workflow documents against one catalog snapshot and policy.

    Holds no per-call state; one instance can serve concurrent callers.
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        policy: HeuristicPolicy = HeuristicPolicy.ERROR,
    ):
        """Bind the validator to its collaborators.

        Args:
            catalog: Capability catalog (bundled snapshot when None)
            policy: How output-shape heuristic findings affect validity
        """
        self.catalog = catalog if catalog is not None else builtin_catalog()
        self.policy = policy

    def validate(self, document: Any) -> ValidationResult:
        """Run all static passes over a parsed document.

        Args:
            document: Parsed YAML/JSON value

        Returns:
            ValidationResult; schema violations alone if the gate fails
        """
        structure = validate_structure(document)
        if not structure.valid:
            logger.debug("validation_gated", schema_errors=len(structure.diagnostics))
            return structure

        try:
            workflow = WorkflowDefinition.model_validate(document)
        except PydanticValidationError as e:
            logger.debug("model_conversion_failed", error_count=e.error_count())
            return ValidationResult.from_diagnostics(_model_diagnostics(e))

        diagnostics = []
        diagnostics.extend(validate_capability_paths(workflow.steps, self.catalog).diagnostics)
        diagnostics.extend(validate_variable_references(workflow.steps).diagnostics)
        diagnostics.extend(validate_return_value(workflow.return_value, workflow.steps).diagnostics)
        diagnostics.extend(
            validate_output_display(
                workflow.output_display, workflow.last_step, self.policy
            ).diagnostics
        )

        result = ValidationResult.from_diagnostics(
            diagnostics, advisory_blocks=self.policy is HeuristicPolicy.ERROR
        )
        logger.debug(
            "validation_complete",
            workflow=workflow.name,
            valid=result.valid,
            diagnostics=len(result.diagnostics),
        )
        return result


def validate_complete(
    document: Any,
    catalog: Catalog | None = None,
    policy: HeuristicPolicy = HeuristicPolicy.ERROR,
) -> ValidationResult:
    """Validate a parsed workflow document with every static pass.

    Never raises for malformed content; only the caller's own I/O and
    parsing errors happen before this point.

    Args:
        document: Parsed YAML/JSON value
        catalog: Capability catalog (bundled snapshot when None)
        policy: How output-shape heuristic findings affect validity

    Returns:
        ValidationResult with ``valid`` and ordered diagnostics
    """
    return WorkflowValidator(catalog, policy).validate(document)
