"""Render validation diagnostics for people and for programs.

Report Formats:
    - Text: numbered, indented entries separated by blank lines
    - Records/JSON: the stable ``{location, message, kind, suggestion?}`` shape

Both forms carry exactly the same fields, so an automated consumer loses
nothing by reading the JSON and a person loses nothing by reading the text.
"""

import hashlib
import json
from collections.abc import Sequence
from typing import Any

from flowlint.types import Diagnostic, ValidationResult

TEXT_HEADER = "Validation Errors:"


def format_diagnostics(diagnostics: Sequence[Diagnostic]) -> str:
    """Render diagnostics as a numbered text report.

    Example output::

        Validation Errors:

        1. /steps/fetch/capabilityPath
           Capability path "data.htp.get" not found in catalog
           Kind: capability-not-found
           Suggestion: Module "htp" not found in category "data". ...

    Args:
        diagnostics: Diagnostics in report order

    Returns:
        Report text, or an empty string when there is nothing to report
    """
    if not diagnostics:
        return ""

    lines = [TEXT_HEADER, ""]
    for i, diagnostic in enumerate(diagnostics, 1):
        lines.append(f"{i}. {diagnostic.location}")
        lines.append(f"   {diagnostic.message}")
        lines.append(f"   Kind: {diagnostic.kind.value}")
        if diagnostic.suggestion:
            lines.append(f"   Suggestion: {diagnostic.suggestion}")
        lines.append("")

    return "\n".join(lines) + "\n"


def diagnostics_to_records(diagnostics: Sequence[Diagnostic]) -> list[dict[str, str]]:
    """Convert diagnostics to their JSON-serializable record form."""
    return [diagnostic.to_record() for diagnostic in diagnostics]


def diagnostics_to_json(diagnostics: Sequence[Diagnostic]) -> str:
    """Serialize diagnostics as a JSON array of records."""
    return json.dumps(diagnostics_to_records(diagnostics), indent=2)


def fingerprint(content: str) -> str:
    """Short SHA-256 fingerprint of a source document, for tracking reports."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def generate_json_report(
    source: str,
    content: str,
    result: ValidationResult,
    extra: dict[str, Any] | None = None,
) -> str:
    """Generate a JSON report envelope for a validation run.

    Args:
        source: Where the document came from (file path or "<stdin>")
        content: Raw document text (for fingerprinting)
        result: Validation outcome
        extra: Additional top-level fields (e.g. unverified step ids)

    Returns:
        JSON-formatted report
    """
    report_data: dict[str, Any] = {
        "source": source,
        "fingerprint": fingerprint(content),
        "valid": result.valid,
        "diagnostics_count": len(result.diagnostics),
        "diagnostics": diagnostics_to_records(result.diagnostics),
    }
    if extra:
        report_data.update(extra)

    return json.dumps(report_data, indent=2)
