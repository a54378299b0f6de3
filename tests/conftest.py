"""Pytest configuration and shared fixtures for flowlint tests.

Provides fixtures for:
- Workflow document fixtures (valid/invalid)
- Sample workflow data built in code
- A small test catalog and matching implementation package
"""

import copy
from pathlib import Path
from typing import Any

import pytest

from flowlint.catalog import Catalog, load_catalog

# ============================================================================
# Fixture Paths
# ============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def valid_fixtures_dir(fixtures_dir: Path) -> Path:
    """Return the path to valid test fixtures."""
    return fixtures_dir / "valid"


@pytest.fixture
def invalid_fixtures_dir(fixtures_dir: Path) -> Path:
    """Return the path to invalid test fixtures."""
    return fixtures_dir / "invalid"


# ============================================================================
# Fixture File Paths
# ============================================================================


@pytest.fixture
def minimal_workflow_file(valid_fixtures_dir: Path) -> Path:
    """Two-step JSON workflow valid against the bundled catalog."""
    return valid_fixtures_dir / "minimal.json"


@pytest.fixture
def full_workflow_file(valid_fixtures_dir: Path) -> Path:
    """YAML workflow using trigger, outputDisplay, returnValue and metadata."""
    return valid_fixtures_dir / "full.yaml"


@pytest.fixture
def missing_steps_file(invalid_fixtures_dir: Path) -> Path:
    """Workflow without the required steps field."""
    return invalid_fixtures_dir / "missing-steps.yaml"


@pytest.fixture
def broken_refs_file(invalid_fixtures_dir: Path) -> Path:
    """Schema-valid workflow with capability, dataflow and display defects."""
    return invalid_fixtures_dir / "broken-refs.yaml"


@pytest.fixture
def malformed_file(invalid_fixtures_dir: Path) -> Path:
    """JSON file with a syntax error."""
    return invalid_fixtures_dir / "malformed.json"


# ============================================================================
# Catalog and Implementations
# ============================================================================


@pytest.fixture
def test_catalog_file(fixtures_dir: Path) -> Path:
    """Path to the small catalog matching the sample implementation package."""
    return fixtures_dir / "catalog.yaml"


@pytest.fixture
def test_catalog(test_catalog_file: Path) -> Catalog:
    """Small catalog: utilities.{math, crypto, broken, missing}."""
    return load_catalog(test_catalog_file)


@pytest.fixture
def impl_package(fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Make the sample implementation package importable and return its name."""
    monkeypatch.syspath_prepend(str(fixtures_dir / "implementations"))
    return "sample_impl"


# ============================================================================
# Sample Data
# ============================================================================

_SAMPLE_WORKFLOW: dict[str, Any] = {
    "version": "1.0",
    "name": "sample",
    "description": "Sample workflow",
    "steps": [
        {
            "id": "fetch",
            "capabilityPath": "data.http.get",
            "inputs": {"url": "https://example.com/items"},
            "outputAs": "items",
        },
        {
            "id": "total",
            "capabilityPath": "utilities.math.count",
            "inputs": {"items": "{{items.data}}"},
            "outputAs": "total",
        },
    ],
}


@pytest.fixture
def sample_workflow() -> dict[str, Any]:
    """A fresh, schema-valid workflow dict (safe to mutate)."""
    return copy.deepcopy(_SAMPLE_WORKFLOW)


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
