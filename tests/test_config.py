"""Tests for configuration management (src/flowlint/config.py).

Coverage targets:
- Environment variable loading with FLOWLINT_ prefix
- .env file parsing
- Default value fallbacks
- Enum and range validation
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from flowlint.config import FlowlintConfig
from flowlint.types import HeuristicPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clear FLOWLINT_ variables and run from an empty directory."""
    for key in list(os.environ):
        if key.startswith("FLOWLINT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestFlowlintConfigDefaults:
    """Test default configuration values."""

    def test_config_defaults_when_no_env(self) -> None:
        """Test that config loads with expected defaults when no env vars set."""
        config = FlowlintConfig()

        assert config.catalog_path is None
        assert config.implementations_package is None
        assert config.verify_timeout is None
        assert config.heuristic_policy is HeuristicPolicy.ERROR
        assert config.log_level == "WARNING"
        assert config.log_format == "console"


class TestFlowlintConfigEnv:
    """Test environment variable overrides."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that FLOWLINT_ variables are picked up and coerced."""
        monkeypatch.setenv("FLOWLINT_CATALOG_PATH", "catalogs/prod.yaml")
        monkeypatch.setenv("FLOWLINT_IMPLEMENTATIONS_PACKAGE", "acme_modules")
        monkeypatch.setenv("FLOWLINT_VERIFY_TIMEOUT", "2.5")
        monkeypatch.setenv("FLOWLINT_HEURISTIC_POLICY", "warning")

        config = FlowlintConfig()

        assert config.catalog_path == Path("catalogs/prod.yaml")
        assert config.implementations_package == "acme_modules"
        assert config.verify_timeout == 2.5
        assert config.heuristic_policy is HeuristicPolicy.WARNING

    def test_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that variable names are case-insensitive."""
        monkeypatch.setenv("flowlint_log_level", "DEBUG")

        assert FlowlintConfig().log_level == "DEBUG"

    def test_invalid_policy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unknown heuristic policy is rejected."""
        monkeypatch.setenv("FLOWLINT_HEURISTIC_POLICY", "loud")

        with pytest.raises(ValidationError):
            FlowlintConfig()

    def test_timeout_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a zero timeout is rejected."""
        monkeypatch.setenv("FLOWLINT_VERIFY_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            FlowlintConfig()


class TestFlowlintConfigDotenv:
    """Test .env file loading."""

    def test_env_file(self, tmp_path: Path) -> None:
        """Test that settings are read from .env in the working directory."""
        (tmp_path / ".env").write_text(
            "FLOWLINT_HEURISTIC_POLICY=off\nFLOWLINT_LOG_FORMAT=json\n", encoding="utf-8"
        )

        config = FlowlintConfig()

        assert config.heuristic_policy is HeuristicPolicy.OFF
        assert config.log_format == "json"

    def test_env_var_beats_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override the .env file."""
        (tmp_path / ".env").write_text("FLOWLINT_LOG_LEVEL=INFO\n", encoding="utf-8")
        monkeypatch.setenv("FLOWLINT_LOG_LEVEL", "ERROR")

        assert FlowlintConfig().log_level == "ERROR"
