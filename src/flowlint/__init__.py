"""flowlint - Static validator for declarative workflow definitions."""

from flowlint.report import diagnostics_to_json, format_diagnostics
from flowlint.types import Diagnostic, DiagnosticKind, ValidationResult
from flowlint.validator import WorkflowValidator, validate_complete

# Version (managed in pyproject.toml)
__version__ = "0.3.0"

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "ValidationResult",
    "WorkflowValidator",
    "__version__",
    "diagnostics_to_json",
    "format_diagnostics",
    "validate_complete",
]
