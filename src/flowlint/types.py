"""Type definitions for flowlint.

Workflow definitions, catalog entries and diagnostics are Pydantic v2 models;
closed variant sets (trigger types, diagnostic kinds, policies) are str Enums
so callers match on members instead of raw strings.

Key Models:
    WorkflowDefinition: Typed view of a schema-valid workflow document
    Step: One capability invocation with templated inputs
    Trigger: Tagged trigger configuration
    OutputDisplay: How the final value is rendered
    CatalogCategory / CatalogModule / CatalogFunction: Capability catalog tree
    Diagnostic: One validation defect
    ValidationResult: Aggregate outcome of a validation pass
    VerificationReport: Outcome of deep implementation verification
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Binding names visible before the first step runs
BUILTIN_VARIABLES = frozenset({"user", "trigger"})


class TriggerType(str, Enum):
    """Supported workflow triggers.

    Each member owns its own required-field set for ``trigger.config``;
    members without a sub-schema accept any config object.
    """

    MANUAL = "manual"  # Started by hand, no config
    WEBHOOK = "webhook"  # Inbound HTTP call, no config
    CRON = "cron"  # Requires schedule
    CHAT = "chat"  # Requires inputVariable
    CHAT_INPUT = "chat-input"  # Requires fields
    MESSAGING_PLATFORM = "messaging-platform"  # Requires platform
    MAILBOX_POLL = "mailbox-poll"  # Requires pollInterval, optional filters


class DiagnosticKind(str, Enum):
    """Closed taxonomy of validation defects."""

    SCHEMA_VIOLATION = "schema-violation"
    CAPABILITY_NOT_FOUND = "capability-not-found"
    UNBOUND_VARIABLE = "unbound-variable"
    OUTPUT_SHAPE_ERROR = "output-shape-error"
    OUTPUT_SHAPE_HEURISTIC_WARNING = "output-shape-heuristic-warning"
    MODULE_LOAD_FAILED = "module-load-failed"
    FUNCTION_NOT_FOUND = "function-not-found"

    @property
    def is_advisory(self) -> bool:
        """True for best-effort findings that callers may treat as warnings."""
        return self is DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING


class SchemaReason(str, Enum):
    """Constraint kind behind a schema violation."""

    MISSING_REQUIRED = "missing-required"
    WRONG_TYPE = "wrong-type"
    NOT_IN_ENUM = "not-in-enum"
    PATTERN_MISMATCH = "pattern-mismatch"
    LENGTH_BOUND = "length-bound"
    CONST_MISMATCH = "const-mismatch"
    UNEXPECTED_PROPERTY = "unexpected-property"
    DUPLICATE_ID = "duplicate-id"
    OTHER = "other"


class HeuristicPolicy(str, Enum):
    """How output-shape heuristic findings are treated.

    ERROR keeps them blocking (they count against ``valid``), WARNING reports
    them without failing validation, OFF suppresses the heuristic entirely.
    """

    ERROR = "error"
    WARNING = "warning"
    OFF = "off"


# ===== Diagnostics =====


class Diagnostic(BaseModel):
    """A single validation defect.

    Attributes:
        location: JSONPointer-style path into the definition
        message: Human-readable description of the defect
        kind: Defect category
        suggestion: Concrete corrective edit, when one is known
    """

    model_config = ConfigDict(frozen=True)

    location: str
    message: str
    kind: DiagnosticKind
    suggestion: str | None = None

    def to_record(self) -> dict[str, str]:
        """Return the stable wire record ``{location, message, kind, suggestion?}``."""
        record = {
            "location": self.location,
            "message": self.message,
            "kind": self.kind.value,
        }
        if self.suggestion is not None:
            record["suggestion"] = self.suggestion
        return record


class ValidationResult(BaseModel):
    """Outcome of one or more validation passes."""

    valid: bool
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @classmethod
    def from_diagnostics(
        cls, diagnostics: list[Diagnostic], advisory_blocks: bool = True
    ) -> "ValidationResult":
        """Build a result whose validity is derived from its diagnostics.

        Args:
            diagnostics: Diagnostics produced by the pass(es)
            advisory_blocks: When False, advisory diagnostics do not make the
                result invalid

        Returns:
            ValidationResult with ``valid`` computed from the diagnostics
        """
        blocking = [d for d in diagnostics if advisory_blocks or not d.kind.is_advisory]
        return cls(valid=not blocking, diagnostics=list(diagnostics))

    @property
    def blocking(self) -> list[Diagnostic]:
        """Diagnostics that are not advisory."""
        return [d for d in self.diagnostics if not d.kind.is_advisory]


class VerificationReport(BaseModel):
    """Result of deep implementation verification.

    Attributes:
        diagnostics: module-load-failed / function-not-found findings
        verified: Step IDs whose implementation was checked
        unverified: Step IDs not checked before timeout or cancellation
    """

    diagnostics: list[Diagnostic] = Field(default_factory=list)
    verified: list[str] = Field(default_factory=list)
    unverified: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every step was checked and no defect was found."""
        return not self.diagnostics and not self.unverified


# ===== Workflow definition =====


class Trigger(BaseModel):
    """Trigger block. ``config`` is checked against the type's sub-schema."""

    type: TriggerType
    config: dict[str, Any] = Field(default_factory=dict)


class Step(BaseModel):
    """One capability invocation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    capability_path: str = Field(alias="capabilityPath")  # category.module.function
    inputs: dict[str, Any] = Field(default_factory=dict)
    output_as: str | None = Field(default=None, alias="outputAs")

    @property
    def segments(self) -> tuple[str, str, str] | None:
        """Split capability path into (category, module, function), or None if malformed."""
        parts = self.capability_path.split(".")
        if len(parts) != 3:
            return None
        return parts[0], parts[1], parts[2]


class OutputColumn(BaseModel):
    """Table column declaration."""

    key: str
    label: str


class OutputDisplay(BaseModel):
    """Declared display shape for the workflow's final value."""

    type: str
    columns: list[OutputColumn] | None = None


class WorkflowMetadata(BaseModel):
    """Free-form metadata shown in summaries."""

    model_config = ConfigDict(populate_by_name=True)

    author: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    requires_credentials: list[str] = Field(default_factory=list, alias="requiresCredentials")


class WorkflowDefinition(BaseModel):
    """Typed view of a workflow document.

    Only constructed after the schema pass succeeds, so field presence and
    types are already guaranteed.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str
    name: str
    description: str
    trigger: Trigger | None = None
    steps: list[Step]
    output_display: OutputDisplay | None = Field(default=None, alias="outputDisplay")
    return_value: str | None = Field(default=None, alias="returnValue")
    metadata: WorkflowMetadata | None = None

    @property
    def last_step(self) -> Step | None:
        """Final step in declaration order."""
        return self.steps[-1] if self.steps else None


# ===== Capability catalog =====


class CatalogFunction(BaseModel):
    """A single callable capability."""

    name: str
    description: str = ""
    signature: str = ""


class CatalogModule(BaseModel):
    """Group of functions implemented by one unit."""

    name: str
    functions: list[CatalogFunction] = Field(default_factory=list)


class CatalogCategory(BaseModel):
    """Top-level catalog grouping."""

    name: str
    modules: list[CatalogModule] = Field(default_factory=list)


class CapabilityDescriptor(BaseModel):
    """Flattened catalog entry addressed by its full path."""

    path: str
    description: str
    signature: str


class SignatureParam(BaseModel):
    """Parameter parsed from a catalog signature string."""

    name: str
    required: bool


class CapabilityMatch(BaseModel):
    """Catalog search hit."""

    path: str
    description: str
    signature: str
    params: list[SignatureParam] = Field(default_factory=list)
