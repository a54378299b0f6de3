"""Tests for catalog search and signature parsing."""

import pytest

from flowlint.catalog import builtin_catalog, parse_signature, search_catalog
from flowlint.types import SignatureParam


@pytest.mark.unit
class TestParseSignature:
    """Test extraction of parameter lists from signature strings."""

    def test_destructured_object(self) -> None:
        """Test the { a, b? } form."""
        params = parse_signature("sendEmail({ to, subject, body, cc?, attachments? })")

        assert params == [
            SignatureParam(name="to", required=True),
            SignatureParam(name="subject", required=True),
            SignatureParam(name="body", required=True),
            SignatureParam(name="cc", required=False),
            SignatureParam(name="attachments", required=False),
        ]

    def test_positional(self) -> None:
        """Test plain positional parameters."""
        params = parse_signature("post(url, body, headers?)")

        assert [(p.name, p.required) for p in params] == [
            ("url", True),
            ("body", True),
            ("headers", False),
        ]

    def test_typed_positional(self) -> None:
        """Test positional parameters with type annotations."""
        params = parse_signature("addDays(date: string, days?: number)")

        assert [(p.name, p.required) for p in params] == [("date", True), ("days", False)]

    @pytest.mark.parametrize("signature", ["generateUUID()", "now", ""])
    def test_no_parameters(self, signature: str) -> None:
        """Test signatures without a parameter list."""
        assert parse_signature(signature) == []


@pytest.mark.unit
class TestSearchCatalog:
    """Test keyword search over the bundled catalog."""

    def test_query_and_category(self) -> None:
        """Test that filters combine with AND."""
        matches = search_catalog(builtin_catalog(), "message", category="communication")

        assert [m.path for m in matches] == [
            "communication.slack.sendMessage",
            "communication.telegram.sendMessage",
            "communication.discord.sendMessage",
        ]

    def test_case_insensitive(self) -> None:
        """Test that query and category ignore case."""
        lower = search_catalog(builtin_catalog(), "slack", category="communication")
        upper = search_catalog(builtin_catalog(), "SLACK", category="COMMUNICATION")

        assert [m.path for m in upper] == [m.path for m in lower]
        assert upper

    def test_function_filter(self) -> None:
        """Test that the function filter is an exact name match."""
        matches = search_catalog(builtin_catalog(), function="parse")

        assert [m.path for m in matches] == ["data.json.parse", "data.csv.parse"]

    def test_limit(self) -> None:
        """Test that results are truncated at the limit."""
        matches = search_catalog(builtin_catalog(), "message", category="communication", limit=2)

        assert len(matches) == 2

    def test_matches_carry_params(self) -> None:
        """Test that each match includes parsed parameters."""
        [match] = search_catalog(builtin_catalog(), category="communication", function="sendEmail")

        assert match.signature.startswith("sendEmail(")
        assert [p.name for p in match.params if p.required] == ["to", "subject", "body"]

    def test_no_results(self) -> None:
        """Test that an unmatched query returns an empty list."""
        assert search_catalog(builtin_catalog(), "teleportation") == []
