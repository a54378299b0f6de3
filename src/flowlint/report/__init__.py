"""Diagnostic rendering (text and JSON)."""

from flowlint.report.formatter import (
    diagnostics_to_json,
    diagnostics_to_records,
    fingerprint,
    format_diagnostics,
    generate_json_report,
)

__all__ = [
    "diagnostics_to_json",
    "diagnostics_to_records",
    "fingerprint",
    "format_diagnostics",
    "generate_json_report",
]
