"""YAML/JSON loader for workflow documents.

Reading and parsing are the caller's side of the validation contract: syntax
errors and unreadable files surface here as LoadError, while anything that
parses (even a bare string or list) is handed to the validator, which reports
content problems as diagnostics.

Format Detection:
    - Files: .yaml/.yml -> YAML, .json -> JSON, otherwise sniffed from content
    - stdin: JSON when the trimmed content starts with "{", YAML otherwise
"""

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, TextIO

import structlog
from ruamel.yaml import YAML

logger = structlog.get_logger(__name__)

# Security: Maximum document size to prevent memory exhaustion
MAX_DOCUMENT_SIZE_BYTES = 10 * 1024 * 1024  # 10MB

STDIN_SOURCE = "<stdin>"

DocumentFormat = Literal["json", "yaml"]


class LoadError(Exception):
    """Raised when a workflow document cannot be read or parsed."""

    pass


@dataclass
class LoadedDocument:
    """A parsed document plus where it came from.

    Attributes:
        source: File path or "<stdin>"
        content: Raw text (used for report fingerprints)
        data: Parsed JSON/YAML value
        format: Format the content was parsed as
    """

    source: str
    content: str
    data: Any
    format: DocumentFormat


def detect_format(content: str) -> DocumentFormat:
    """Guess the format of unlabeled content."""
    return "json" if content.strip().startswith("{") else "yaml"


def parse_document(content: str, fmt: DocumentFormat, source: str = STDIN_SOURCE) -> Any:
    """Parse document text.

    Args:
        content: Raw text
        fmt: "json" or "yaml"
        source: Name used in error messages

    Returns:
        Parsed value

    Raises:
        LoadError: On syntax errors
    """
    try:
        if fmt == "yaml":
            yaml = YAML(typ="safe", pure=True)
            return yaml.load(content)
        return json.loads(content)
    except json.JSONDecodeError as e:
        hint = ""
        if "undefined" in content:
            hint = ' (JSON has no "undefined"; use null or remove the field)'
        raise LoadError(f"Invalid JSON in {source}: {e}{hint}") from e
    except Exception as e:
        raise LoadError(f"Invalid YAML in {source}: {e}") from e


def _check_size(size: int, source: str) -> None:
    if size > MAX_DOCUMENT_SIZE_BYTES:
        size_mb = size / (1024 * 1024)
        max_mb = MAX_DOCUMENT_SIZE_BYTES / (1024 * 1024)
        raise LoadError(f"{source} too large: {size_mb:.1f}MB exceeds maximum of {max_mb:.0f}MB")


def load_document(file_path: str | Path) -> LoadedDocument:
    """Read and parse a workflow document from a file.

    Args:
        file_path: Path to a .json, .yaml or .yml file

    Returns:
        LoadedDocument with the parsed value

    Raises:
        LoadError: If the file is missing, too large, unreadable or unparsable
    """
    path = Path(file_path)
    if not path.exists():
        raise LoadError(f"Workflow file not found: {path}")
    _check_size(path.stat().st_size, str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except Exception as e:
        raise LoadError(f"Failed to read {path}: {e}") from e

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        fmt: DocumentFormat = "yaml"
    elif suffix == ".json":
        fmt = "json"
    else:
        fmt = detect_format(content)

    data = parse_document(content, fmt, str(path))
    logger.debug("document_loaded", source=str(path), format=fmt)
    return LoadedDocument(source=str(path), content=content, data=data, format=fmt)


def read_stdin(stream: TextIO | None = None) -> LoadedDocument:
    """Read and parse a workflow document from standard input.

    Args:
        stream: Text stream to read (sys.stdin when None)

    Returns:
        LoadedDocument with the parsed value

    Raises:
        LoadError: If the input is too large or unparsable
    """
    content = (stream or sys.stdin).read()
    _check_size(len(content.encode("utf-8")), STDIN_SOURCE)

    fmt = detect_format(content)
    data = parse_document(content, fmt, STDIN_SOURCE)
    logger.debug("document_loaded", source=STDIN_SOURCE, format=fmt)
    return LoadedDocument(source=STDIN_SOURCE, content=content, data=data, format=fmt)
