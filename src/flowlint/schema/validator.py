"""Schema validation for workflow definitions.

Validates workflow documents against the JSON Schema Draft 2020-12 schema and
the trigger-type-specific config sub-schemas. Every violation becomes a
Diagnostic addressed by JSONPointer, so a caller sees all structural defects in
one pass instead of the first one only.

Validation Architecture:
    - Schemas compiled lazily, once per process, under a lock
    - Draft202012Validator.iter_errors used to collect every violation
    - Trigger config checked against the sub-schema selected by trigger.type
    - Step id uniqueness checked here (no JSON Schema keyword covers it)
    - Non-string mapping keys from YAML reported as violations

Schema Location:
    flowlint/schema/workflow.schema.json
    flowlint/schema/triggers/<trigger-type>.schema.json
"""

import json
import re
import threading
from pathlib import Path
from typing import Any

import structlog
from jsonschema import Draft202012Validator, ValidationError

from flowlint.types import (
    Diagnostic,
    DiagnosticKind,
    SchemaReason,
    TriggerType,
    ValidationResult,
)

logger = structlog.get_logger(__name__)

SCHEMA_DIR = Path(__file__).parent

# Patterns that carry a templated fix-it hint; must stay in sync with workflow.schema.json
CAPABILITY_PATH_PATTERN = r"^[a-z-]+\.[a-z-]+\.[a-zA-Z]+$"
TEMPLATE_REFERENCE_PATTERN = r"^\{\{[^}]+\}\}$"

KNOWN_PATTERN_HINTS = {
    CAPABILITY_PATH_PATTERN: (
        'Use format: category.module.function (e.g., "ai.openai.generateText")'
    ),
    TEMPLATE_REFERENCE_PATTERN: 'Use format: {{variableName}} (e.g., "{{result}}")',
}

# Sub-schema file per trigger type; None means no extra constraints
TRIGGER_SCHEMAS: dict[TriggerType, str | None] = {
    TriggerType.MANUAL: None,
    TriggerType.WEBHOOK: None,
    TriggerType.CRON: "cron",
    TriggerType.CHAT: "chat",
    TriggerType.CHAT_INPUT: "chat-input",
    TriggerType.MESSAGING_PLATFORM: "messaging-platform",
    TriggerType.MAILBOX_POLL: "mailbox-poll",
}

WORKFLOW_SCHEMA = "workflow"

_REQUIRED_MESSAGE = re.compile(r"^'(?P<name>.+)' is a required property$")

_JSON_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
    type(None): "null",
}

_validators: dict[str, Draft202012Validator] = {}
_validators_lock = threading.Lock()


def _schema_path(name: str) -> Path:
    if name == WORKFLOW_SCHEMA:
        return SCHEMA_DIR / "workflow.schema.json"
    return SCHEMA_DIR / "triggers" / f"{name}.schema.json"


def _load_schema(name: str) -> dict[str, Any]:
    """Load a bundled schema file.

    Args:
        name: "workflow" or a trigger sub-schema name

    Returns:
        Parsed schema as a dictionary

    Raises:
        FileNotFoundError: If schema file is missing
        json.JSONDecodeError: If schema JSON is malformed
    """
    with _schema_path(name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _get_validator(name: str) -> Draft202012Validator:
    """Return the compiled validator for a schema, compiling it on first use.

    Compilation happens at most once per process; the lock only guards the
    first construction, later lookups read the cache without locking.
    """
    validator = _validators.get(name)
    if validator is not None:
        return validator

    with _validators_lock:
        validator = _validators.get(name)
        if validator is None:
            schema = _load_schema(name)
            Draft202012Validator.check_schema(schema)
            validator = Draft202012Validator(schema)
            _validators[name] = validator
            logger.debug("schema_compiled", schema=name)
    return validator


def _escape(token: Any) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")


def to_pointer(path: list[Any]) -> str:
    """Render a path as a JSONPointer, "(root)" for the empty path."""
    if not path:
        return "(root)"
    return "/" + "/".join(_escape(p) for p in path)


def _json_type(value: Any) -> str:
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def _missing_property(error: ValidationError) -> str:
    match = _REQUIRED_MESSAGE.match(error.message)
    if match:
        return match.group("name")
    instance = error.instance if isinstance(error.instance, dict) else {}
    missing = [name for name in error.validator_value if name not in instance]
    return missing[0] if missing else str(error.validator_value)


def _describe(error: ValidationError) -> tuple[SchemaReason, str, str | None]:  # noqa: C901
    """Map a jsonschema error onto (reason, message, suggestion)."""
    keyword = error.validator
    value = error.validator_value

    if keyword == "required":
        name = _missing_property(error)
        return (
            SchemaReason.MISSING_REQUIRED,
            f"Missing required field: {name}",
            f'Add "{name}" to the object',
        )
    if keyword == "type":
        expected = " or ".join(value) if isinstance(value, list) else str(value)
        return (
            SchemaReason.WRONG_TYPE,
            f'Expected type "{expected}" but got "{_json_type(error.instance)}"',
            f"Change value to type {expected}",
        )
    if keyword == "enum":
        allowed = ", ".join(str(v) for v in value)
        return (
            SchemaReason.NOT_IN_ENUM,
            f"Value must be one of: {allowed}",
            "Use one of the allowed values",
        )
    if keyword == "pattern":
        return (
            SchemaReason.PATTERN_MISMATCH,
            f"Value does not match pattern: {value}",
            KNOWN_PATTERN_HINTS.get(value),
        )
    if keyword == "minItems":
        return (
            SchemaReason.LENGTH_BOUND,
            f"Array must have at least {value} items",
            "Add more items to the array",
        )
    if keyword == "maxItems":
        return (
            SchemaReason.LENGTH_BOUND,
            f"Array must have at most {value} items",
            "Remove items from the array",
        )
    if keyword == "minLength":
        return (
            SchemaReason.LENGTH_BOUND,
            f"String must be at least {value} characters",
            "Use a longer string",
        )
    if keyword == "maxLength":
        return (
            SchemaReason.LENGTH_BOUND,
            f"String must be at most {value} characters",
            "Use a shorter string",
        )
    if keyword == "const":
        return (
            SchemaReason.CONST_MISMATCH,
            f"Value must be exactly: {value}",
            f'Change to "{value}"',
        )
    if keyword == "additionalProperties":
        allowed = set(error.schema.get("properties", {}))
        instance = error.instance if isinstance(error.instance, dict) else {}
        extras = ", ".join(sorted(str(k) for k in instance if k not in allowed))
        return (
            SchemaReason.UNEXPECTED_PROPERTY,
            f"Unexpected field(s): {extras}",
            "Remove the unexpected field(s) or check for typos",
        )
    return SchemaReason.OTHER, error.message, None


def _to_diagnostic(error: ValidationError, prefix: list[Any]) -> Diagnostic:
    path = prefix + list(error.absolute_path)
    reason, message, suggestion = _describe(error)
    if reason is SchemaReason.MISSING_REQUIRED:
        # Address the missing field itself, not its parent object
        path.append(_missing_property(error))

    logger.debug("schema_violation", pointer=to_pointer(path), reason=reason.value)
    return Diagnostic(
        location=to_pointer(path),
        message=message,
        kind=DiagnosticKind.SCHEMA_VIOLATION,
        suggestion=suggestion,
    )


def _check_unique_step_ids(document: Any) -> list[Diagnostic]:
    if not isinstance(document, dict) or not isinstance(document.get("steps"), list):
        return []

    first_seen: dict[str, int] = {}
    diagnostics = []
    for index, step in enumerate(document["steps"]):
        if not isinstance(step, dict) or not isinstance(step.get("id"), str):
            continue
        step_id = step["id"]
        if step_id in first_seen:
            diagnostics.append(
                Diagnostic(
                    location=f"/steps/{index}/id",
                    message=(
                        f'Duplicate step id "{step_id}" '
                        f"(first declared at /steps/{first_seen[step_id]})"
                    ),
                    kind=DiagnosticKind.SCHEMA_VIOLATION,
                    suggestion="Give each step a unique id",
                )
            )
        else:
            first_seen[step_id] = index
    return diagnostics


def _check_key_types(value: Any, path: list[Any]) -> list[Diagnostic]:
    """Report mapping keys that are not strings (YAML allows ``1:`` or ``true:``)."""
    diagnostics = []
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                diagnostics.append(
                    Diagnostic(
                        location=to_pointer(path + [key]),
                        message=f'Field name must be a string but got "{_json_type(key)}"',
                        kind=DiagnosticKind.SCHEMA_VIOLATION,
                        suggestion=f'Quote the field name: "{key}"',
                    )
                )
            diagnostics.extend(_check_key_types(item, path + [key]))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            diagnostics.extend(_check_key_types(item, path + [index]))
    return diagnostics


def validate_trigger(trigger: Any) -> ValidationResult:
    """Validate a trigger's config against its type-specific sub-schema.

    Unknown or config-free trigger types are accepted as-is; a missing config
    is checked as an empty object so required fields are still reported.

    Args:
        trigger: The raw ``trigger`` object from the document

    Returns:
        ValidationResult with diagnostics addressed under /trigger/config
    """
    if not isinstance(trigger, dict):
        return ValidationResult(valid=True)

    try:
        trigger_type = TriggerType(trigger.get("type"))
    except ValueError:
        return ValidationResult(valid=True)

    schema_name = TRIGGER_SCHEMAS[trigger_type]
    config = trigger.get("config", {})
    if schema_name is None or not isinstance(config, dict):
        return ValidationResult(valid=True)

    validator = _get_validator(schema_name)
    diagnostics = [
        _to_diagnostic(error, ["trigger", "config"]) for error in validator.iter_errors(config)
    ]
    return ValidationResult.from_diagnostics(diagnostics)


def validate_structure(document: Any) -> ValidationResult:
    """Validate a parsed workflow document against the structural schemas.

    This is the first validation gate: later passes assume a schema-valid
    skeleton and are skipped when this one fails. All violations are
    collected rather than stopping at the first.

    Args:
        document: Parsed YAML/JSON value (any type; non-objects are reported)

    Returns:
        ValidationResult; ``valid`` is True only with no diagnostics
    """
    validator = _get_validator(WORKFLOW_SCHEMA)
    diagnostics = [_to_diagnostic(error, []) for error in validator.iter_errors(document)]
    diagnostics.extend(_check_unique_step_ids(document))
    diagnostics.extend(_check_key_types(document, []))

    if isinstance(document, dict):
        diagnostics.extend(validate_trigger(document.get("trigger")).diagnostics)

    if diagnostics:
        logger.debug("schema_validation_failed", error_count=len(diagnostics))
    return ValidationResult.from_diagnostics(diagnostics)


def get_schema() -> dict[str, Any]:
    """Get the workflow document schema.

    Returns:
        The workflow.schema.json as a dict (fresh copy, safe to mutate)
    """
    return _load_schema(WORKFLOW_SCHEMA)
