"""Configuration management for flowlint.

Provides environment-based configuration using Pydantic Settings.
All settings can be overridden via environment variables with FLOWLINT_ prefix.

Example:
    export FLOWLINT_CATALOG_PATH=./catalog.yaml
    export FLOWLINT_IMPLEMENTATIONS_PACKAGE=acme_modules
    export FLOWLINT_HEURISTIC_POLICY=warning
    export FLOWLINT_LOG_LEVEL=DEBUG
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from flowlint.types import HeuristicPolicy


class FlowlintConfig(BaseSettings):
    """Configuration settings for flowlint.

    Loads settings from environment variables (FLOWLINT_ prefix) and .env file.
    Settings cascade: .env file < environment variables < explicit CLI options.

    Configuration Groups:
        Catalog: Which capability catalog snapshot to validate against
        Verification: Implementation package and timeout for deep checks
        Policy: Severity of the output-shape heuristic
        Logging: Level and renderer
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWLINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Catalog Configuration
    catalog_path: Path | None = Field(
        default=None,
        description="Path to a YAML/JSON capability catalog (bundled catalog when unset)",
    )

    # Deep Verification
    implementations_package: str | None = Field(
        default=None,
        description="Import package holding <category>.<module> implementation units",
    )
    verify_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for implementation loads before giving up",
    )

    # Policy
    heuristic_policy: HeuristicPolicy = Field(
        default=HeuristicPolicy.ERROR,
        description="How output-shape heuristic findings affect validity",
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Log format (json or console)")
