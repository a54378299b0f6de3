"""Main entry point for the flowlint CLI.

This module provides the Typer-based command-line interface for validating
workflow definitions before they are imported or executed, and for searching
the capability catalog while writing them.

Commands:
    validate: Run every static pass (and optionally deep verification)
    search: Find capability paths and their parameters in the catalog
    version: Show CLI version

Key Design:
    - Diagnostics go to stderr, summaries and machine output to stdout
    - Exit 0 only when every requested pass succeeds, 1 otherwise
    - JSON output carries the same fields as the text report
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from flowlint import __version__
from flowlint.capability import ImportlibLoader, verify_capability_implementations_sync
from flowlint.catalog import Catalog, CatalogError, builtin_catalog, load_catalog, search_catalog
from flowlint.config import FlowlintConfig
from flowlint.exit_codes import EX_INVALID, EX_OK, EX_USAGE
from flowlint.loader import LoadedDocument, LoadError, load_document, read_stdin
from flowlint.report import format_diagnostics, generate_json_report
from flowlint.types import (
    HeuristicPolicy,
    TriggerType,
    ValidationResult,
    VerificationReport,
    WorkflowDefinition,
)
from flowlint.validator import WorkflowValidator

config = FlowlintConfig()

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
min_level = _LEVELS.get(config.log_level.upper(), logging.WARNING)


def filter_by_level_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Filter log events by level."""
    event_level = _LEVELS.get(event_dict.get("level", "info").upper(), logging.INFO)
    if event_level < min_level:
        raise structlog.DropEvent
    return event_dict


renderer = (
    structlog.processors.JSONRenderer()
    if config.log_format == "json"
    else structlog.dev.ConsoleRenderer(colors=False)
)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        filter_by_level_processor,  # type: ignore[list-item]
        renderer,
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger(__name__)


class OutputFormat(str, Enum):
    """Report output formats."""

    TEXT = "text"
    JSON = "json"


app = typer.Typer(
    name="flowlint",
    help="Validate declarative workflow definitions before they run",
    add_completion=False,
    pretty_exceptions_enable=False,
)
console = Console()
err_console = Console(stderr=True)


def _load_catalog(catalog_path: Path | None) -> Catalog:
    """Load the requested catalog, exiting with EX_INVALID on failure."""
    path = catalog_path or config.catalog_path
    try:
        return load_catalog(path) if path else builtin_catalog()
    except CatalogError as e:
        err_console.print(f"[red]Catalog error:[/red] {escape(str(e))}")
        sys.exit(EX_INVALID)


def _read_input(workflow_file: str | None, stdin: bool) -> LoadedDocument:
    """Read the document from a file or stdin, exiting on usage/load errors."""
    if stdin == bool(workflow_file):
        err_console.print("[red]Error:[/red] Provide a workflow file path or --stdin (not both)")
        sys.exit(EX_USAGE)

    try:
        return read_stdin() if stdin else load_document(workflow_file)  # type: ignore[arg-type]
    except LoadError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(EX_INVALID)


def _print_summary(workflow: WorkflowDefinition) -> None:
    """Print the workflow summary shown after a successful validation."""
    console.print(f"[green]OK Workflow is valid:[/green] {escape(workflow.name)}")
    console.print(f"  Description: {escape(workflow.description)}")
    console.print(f"  Steps: {len(workflow.steps)}")
    console.print(f"  Version: {escape(workflow.version)}")
    if workflow.trigger:
        console.print(f"  Trigger: {workflow.trigger.type.value}")

    metadata = workflow.metadata
    if metadata and metadata.category:
        console.print(f"  Category: {escape(metadata.category)}")
    if metadata and metadata.tags:
        console.print(f"  Tags: {escape(', '.join(metadata.tags))}")
    if metadata and metadata.requires_credentials:
        console.print(f"  Required credentials: {escape(', '.join(metadata.requires_credentials))}")


def _print_return_value_hint(workflow: WorkflowDefinition) -> None:
    """Recommend an explicit returnValue when the workflow relies on auto-detection."""
    if workflow.return_value or (workflow.trigger and workflow.trigger.type is TriggerType.CHAT):
        return

    last_step = workflow.last_step
    target = last_step.output_as if last_step and last_step.output_as else "yourVariableName"
    console.print("\n[yellow]Note:[/yellow] No returnValue set; the result will be auto-detected.")
    console.print(f'  Recommended: "returnValue": "{{{{{target}}}}}"', markup=False)


def _emit_failure(
    document: LoadedDocument,
    result: ValidationResult,
    verification: VerificationReport | None,
    output_format: OutputFormat,
) -> None:
    if output_format is OutputFormat.JSON:
        extra = {"unverified": verification.unverified} if verification else None
        typer.echo(generate_json_report(document.source, document.content, result, extra), err=True)
        return

    err_console.print(f"[red]Validation failed:[/red] {escape(document.source)}\n")
    if result.diagnostics:
        typer.echo(format_diagnostics(result.diagnostics), err=True, nl=False)
    if verification and verification.unverified:
        typer.echo(
            f"Not verified before timeout: {', '.join(verification.unverified)}", err=True
        )


@app.command()
def version() -> None:
    """Show the version of flowlint."""
    console.print(f"flowlint version {__version__}")


@app.command()
def validate(  # noqa: C901 - Complexity acceptable for main CLI command orchestration
    workflow_file: Annotated[
        str | None, typer.Argument(help="Path to workflow YAML/JSON file")
    ] = None,
    stdin: Annotated[bool, typer.Option("--stdin", help="Read the workflow from stdin")] = False,
    catalog_path: Annotated[
        Path | None, typer.Option("--catalog", help="Capability catalog YAML/JSON file")
    ] = None,
    deep: Annotated[
        bool, typer.Option("--deep", help="Load implementations and verify functions exist")
    ] = False,
    implementations: Annotated[
        str | None,
        typer.Option("--implementations", help="Import package holding implementation units"),
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Seconds to wait for --deep loads")
    ] = None,
    heuristics: Annotated[
        HeuristicPolicy | None,
        typer.Option("--heuristics", help="Treat output-shape heuristics as error, warning or off"),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Report format")
    ] = OutputFormat.TEXT,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """Validate a workflow definition.

    Runs the structural schema check first; when it passes, checks capability
    paths, variable references and the output display. With --deep, also
    loads each step's implementation and confirms the function exists.

    Exit Codes:
        EX_OK (0): Every requested pass succeeded
        EX_INVALID (1): Any diagnostic, unreadable input, or unexpected error
        EX_USAGE (2): Bad combination of arguments
    """
    package = implementations or config.implementations_package
    if deep and not package:
        err_console.print(
            "[red]Error:[/red] --deep needs --implementations or FLOWLINT_IMPLEMENTATIONS_PACKAGE"
        )
        sys.exit(EX_USAGE)

    document = _read_input(workflow_file, stdin)
    catalog = _load_catalog(catalog_path)
    policy = heuristics or config.heuristic_policy

    if verbose:
        err_console.print(f"[dim]Validating: {escape(document.source)} ({document.format})[/dim]")
        err_console.print(
            f"[dim]Catalog: {len(catalog)} capabilities, heuristics: {policy.value}[/dim]"
        )

    try:
        result = WorkflowValidator(catalog, policy).validate(document.data)

        verification = None
        workflow = None
        if result.valid:
            workflow = WorkflowDefinition.model_validate(document.data)
            if deep:
                if verbose:
                    err_console.print(f"[dim]Verifying implementations in: {escape(package)}[/dim]")
                verification = verify_capability_implementations_sync(
                    workflow.steps,
                    ImportlibLoader(package),  # type: ignore[arg-type]
                    timeout=timeout if timeout is not None else config.verify_timeout,
                )
                result = ValidationResult(
                    valid=verification.ok,
                    diagnostics=result.diagnostics + verification.diagnostics,
                )
    except Exception as e:
        logger.error("validation_crashed", error=str(e), error_type=type(e).__name__)
        err_console.print(f"\n[red]Unexpected error:[/red] {escape(str(e))}")
        if verbose:
            import traceback

            err_console.print(escape(traceback.format_exc()))
        sys.exit(EX_INVALID)

    if not result.valid or workflow is None:
        _emit_failure(document, result, verification, output_format)
        sys.exit(EX_INVALID)

    if output_format is OutputFormat.JSON:
        extra = {"unverified": verification.unverified} if verification else None
        typer.echo(generate_json_report(document.source, document.content, result, extra))
        sys.exit(EX_OK)

    if result.diagnostics:
        # Only advisory findings reach here (heuristics set to warning)
        err_console.print("[yellow]Warnings:[/yellow]")
        typer.echo(format_diagnostics(result.diagnostics), err=True, nl=False)

    _print_summary(workflow)
    if deep:
        console.print("[green]OK All functions verified in implementation units[/green]")
    _print_return_value_hint(workflow)
    sys.exit(EX_OK)


@app.command()
def search(
    query: Annotated[str | None, typer.Argument(help="Keyword to search for")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Restrict to one category")
    ] = None,
    function: Annotated[
        str | None, typer.Option("--function", help="Exact function name")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Maximum results")] = 10,
    catalog_path: Annotated[
        Path | None, typer.Option("--catalog", help="Capability catalog YAML/JSON file")
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Search the capability catalog.

    Prints matching capability paths with their required and optional
    parameters, ready to paste into a step's capabilityPath.
    """
    catalog = _load_catalog(catalog_path)
    matches = search_catalog(catalog, query, category=category, function=function, limit=limit)

    if output_format is OutputFormat.JSON:
        import json

        typer.echo(json.dumps([m.model_dump() for m in matches], indent=2))
        sys.exit(EX_OK)

    if not matches:
        console.print("[yellow]No capabilities found[/yellow]")
        sys.exit(EX_OK)

    lines = [f"Found {len(matches)} capability(ies):", ""]
    for i, match in enumerate(matches, 1):
        lines.append(f"{i}. {match.path}")
        lines.append(f"   {match.description}")
        required = [p.name for p in match.params if p.required]
        optional = [p.name for p in match.params if not p.required]
        if required:
            lines.append(f"   Required: {', '.join(required)}")
        if optional:
            lines.append(f"   Optional: {', '.join(optional)}")
        lines.append("")
    typer.echo("\n".join(lines))
    sys.exit(EX_OK)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
