"""Schema validation module for workflow definitions."""

from flowlint.schema.validator import (
    get_schema,
    validate_structure,
    validate_trigger,
)

__all__ = ["get_schema", "validate_structure", "validate_trigger"]
