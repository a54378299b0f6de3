"""End-to-end tests for validate_complete / WorkflowValidator."""

from pathlib import Path
from typing import Any

import pytest

from flowlint import WorkflowValidator, validate_complete
from flowlint.catalog import Catalog
from flowlint.loader import load_document, parse_document
from flowlint.types import DiagnosticKind, HeuristicPolicy, ValidationResult


def _kinds(result: Any) -> list[DiagnosticKind]:
    return [d.kind for d in result.diagnostics]


@pytest.mark.unit
class TestValidateComplete:
    """Test the full static validation pipeline."""

    def test_minimal_fixture_valid(self, minimal_workflow_file: Path) -> None:
        """Test that the minimal fixture validates cleanly."""
        result = validate_complete(load_document(minimal_workflow_file).data)

        assert result.valid is True
        assert result.diagnostics == []

    def test_full_fixture_valid(self, full_workflow_file: Path) -> None:
        """Test that a workflow using every section validates cleanly."""
        result = validate_complete(load_document(full_workflow_file).data)

        assert result.valid is True
        assert result.diagnostics == []

    def test_schema_gate_stops_later_passes(self, sample_workflow: dict[str, Any]) -> None:
        """Test that schema failure suppresses capability and dataflow passes."""
        del sample_workflow["description"]
        sample_workflow["steps"][0]["capabilityPath"] = "data.htp.get"
        sample_workflow["steps"][0]["inputs"] = {"url": "{{nowhere}}"}

        result = validate_complete(sample_workflow)

        assert result.valid is False
        assert _kinds(result) == [DiagnosticKind.SCHEMA_VIOLATION]
        assert result.diagnostics[0].location == "/description"

    def test_non_object_document(self) -> None:
        """Test that non-object documents are diagnostics, not exceptions."""
        for document in (None, 42, ["a"], "text"):
            result = validate_complete(document)
            assert result.valid is False
            assert _kinds(result) == [DiagnosticKind.SCHEMA_VIOLATION]

    @pytest.mark.parametrize(
        ("fragment", "location"),
        [
            ('    inputs:\n      1: "{{user}}"\n', "/steps/0/inputs/1"),
            ("    inputs:\n      true: x\n", "/steps/0/inputs/True"),
        ],
    )
    def test_non_string_step_input_keys(self, fragment: str, location: str) -> None:
        """Test that YAML keys parsed as numbers or booleans are diagnostics, not exceptions."""
        content = (
            'version: "1.0"\n'
            "name: keys\n"
            "description: Non-string mapping keys\n"
            "steps:\n"
            "  - id: fetch\n"
            "    capabilityPath: data.http.get\n" + fragment
        )

        result = validate_complete(parse_document(content, "yaml"))

        assert result.valid is False
        assert _kinds(result) == [DiagnosticKind.SCHEMA_VIOLATION]
        assert result.diagnostics[0].location == location
        assert result.diagnostics[0].message.startswith("Field name must be a string")

    def test_non_string_trigger_config_key(self, sample_workflow: dict[str, Any]) -> None:
        """Test that a config-free trigger type still rejects non-string config keys."""
        sample_workflow["trigger"] = {"type": "manual", "config": {True: "x"}}

        result = validate_complete(sample_workflow)

        assert _kinds(result) == [DiagnosticKind.SCHEMA_VIOLATION]
        assert result.diagnostics[0].location == "/trigger/config/True"

    def test_model_errors_become_diagnostics(
        self, sample_workflow: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a document the schema lets through but the model rejects does not raise."""
        monkeypatch.setattr(
            "flowlint.validator.validate_structure", lambda document: ValidationResult(valid=True)
        )
        sample_workflow["steps"][0]["inputs"] = {1: "x"}

        result = validate_complete(sample_workflow)

        assert result.valid is False
        assert _kinds(result) == [DiagnosticKind.SCHEMA_VIOLATION]
        assert result.diagnostics[0].location == "/steps/0/inputs/1"

    def test_all_semantic_passes_aggregated(self, broken_refs_file: Path) -> None:
        """Test that capability, dataflow and display findings are all reported in order."""
        result = validate_complete(load_document(broken_refs_file).data)

        assert result.valid is False
        assert _kinds(result) == [
            DiagnosticKind.CAPABILITY_NOT_FOUND,
            DiagnosticKind.UNBOUND_VARIABLE,
            DiagnosticKind.OUTPUT_SHAPE_ERROR,
            DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING,
        ]
        assert [d.location for d in result.diagnostics] == [
            "/steps/fetch/capabilityPath",
            "/steps/0/inputs",
            "/outputDisplay/columns",
            "/outputDisplay/type",
        ]

    def test_return_value_checked(self, sample_workflow: dict[str, Any]) -> None:
        """Test that returnValue must reference a bound name."""
        sample_workflow["returnValue"] = "{{totl}}"

        result = validate_complete(sample_workflow)

        assert _kinds(result) == [DiagnosticKind.UNBOUND_VARIABLE]
        assert result.diagnostics[0].location == "/returnValue"

    def test_idempotent(self, broken_refs_file: Path) -> None:
        """Test that validating the same document twice gives the same result."""
        data = load_document(broken_refs_file).data

        assert validate_complete(data) == validate_complete(data)

    def test_document_not_mutated(self, sample_workflow: dict[str, Any]) -> None:
        """Test that validation leaves its input untouched."""
        import copy

        before = copy.deepcopy(sample_workflow)
        validate_complete(sample_workflow)

        assert sample_workflow == before

    def test_custom_catalog(self, sample_workflow: dict[str, Any], test_catalog: Catalog) -> None:
        """Test that paths are resolved against the supplied catalog."""
        result = validate_complete(sample_workflow, catalog=test_catalog)

        assert _kinds(result) == [
            DiagnosticKind.CAPABILITY_NOT_FOUND,
            DiagnosticKind.CAPABILITY_NOT_FOUND,
        ]


@pytest.mark.unit
class TestHeuristicPolicy:
    """Test how the heuristic policy affects the overall result."""

    @pytest.fixture
    def scalar_table(self, sample_workflow: dict[str, Any]) -> dict[str, Any]:
        sample_workflow["outputDisplay"] = {
            "type": "table",
            "columns": [{"key": "n", "label": "N"}],
        }
        return sample_workflow

    def test_error_policy(self, scalar_table: dict[str, Any]) -> None:
        """Test that the default policy makes the heuristic blocking."""
        result = validate_complete(scalar_table)

        assert result.valid is False
        assert _kinds(result) == [DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING]

    def test_warning_policy(self, scalar_table: dict[str, Any]) -> None:
        """Test that the warning policy reports but passes."""
        result = WorkflowValidator(policy=HeuristicPolicy.WARNING).validate(scalar_table)

        assert result.valid is True
        assert _kinds(result) == [DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING]

    def test_off_policy(self, scalar_table: dict[str, Any]) -> None:
        """Test that the off policy suppresses the finding."""
        result = WorkflowValidator(policy=HeuristicPolicy.OFF).validate(scalar_table)

        assert result.valid is True
        assert result.diagnostics == []

    def test_warning_policy_does_not_hide_errors(self, scalar_table: dict[str, Any]) -> None:
        """Test that real errors still fail under the warning policy."""
        scalar_table["steps"][1]["inputs"] = {"items": "{{itemz}}"}

        result = WorkflowValidator(policy=HeuristicPolicy.WARNING).validate(scalar_table)

        assert result.valid is False
        assert _kinds(result) == [
            DiagnosticKind.UNBOUND_VARIABLE,
            DiagnosticKind.OUTPUT_SHAPE_HEURISTIC_WARNING,
        ]
