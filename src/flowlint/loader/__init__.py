"""Loader module for YAML/JSON workflow documents."""

from flowlint.loader.document_loader import (
    LoadedDocument,
    LoadError,
    detect_format,
    load_document,
    parse_document,
    read_stdin,
)

__all__ = [
    "LoadError",
    "LoadedDocument",
    "detect_format",
    "load_document",
    "parse_document",
    "read_stdin",
]
