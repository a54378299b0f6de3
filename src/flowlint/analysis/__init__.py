"""Static analysis passes over a schema-valid workflow definition."""

from flowlint.analysis.dataflow import (
    TEMPLATE_REFERENCE,
    extract_references,
    validate_return_value,
    validate_variable_references,
)
from flowlint.analysis.output_display import (
    SCALAR_FUNCTION_FRAGMENTS,
    validate_output_display,
)

__all__ = [
    "SCALAR_FUNCTION_FRAGMENTS",
    "TEMPLATE_REFERENCE",
    "extract_references",
    "validate_output_display",
    "validate_return_value",
    "validate_variable_references",
]
