"""Exit codes for the flowlint CLI.

Automated callers (CI jobs, agents applying fixes) only need to tell a clean
definition from a defective one, so the validate command collapses every
failure mode onto a single non-zero status.

Usage:
    Always use named constants instead of raw integers:

    from flowlint.exit_codes import EX_INVALID, EX_OK
    sys.exit(EX_INVALID)  # GOOD
    sys.exit(1)  # BAD - unclear meaning

Exit Code Categories:
    0: Success
    1: Definition invalid, unreadable, or unexpected failure
    2: Command-line usage error
"""

# Success
EX_OK = 0
"""All requested validation passes succeeded."""

# Validation / input errors
EX_INVALID = 1
"""Validation failed.

Returned when any pass reports a blocking diagnostic (schema, capability path,
variable reference, output display, or deep verification when requested), and
also when the document cannot be read or parsed at all. Diagnostics are
printed to stderr.
"""

# User errors
EX_USAGE = 2
"""Command-line usage error (no input given, --deep without implementations, etc.)."""
