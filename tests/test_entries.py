"""
Tests for the Recovery Entry Parser
===================================

Covers splitting on commas and the first colon, whitespace handling,
and both malformed-input policies.
"""

import logging

import pytest

from wristvault.errors import MalformedInputError
from wristvault.generator.entries import (
    InputPolicy,
    RecoveryEntry,
    parse_recovery_codes,
    parse_segment,
)


# =============================================================================
# Well-formed Input
# =============================================================================

class TestParseRecoveryCodes:
    """Tests for parse_recovery_codes with valid input."""

    def test_two_entries_in_order(self):
        """Entries come back in input order."""
        entries = parse_recovery_codes("github:abc123,google:def456")
        assert entries == (
            RecoveryEntry("github", "abc123"),
            RecoveryEntry("google", "def456"),
        )

    def test_split_on_first_colon_only(self):
        """Codes may contain colons."""
        entries = parse_recovery_codes("vpn:a:b:c")
        assert entries == (RecoveryEntry("vpn", "a:b:c"),)

    def test_whitespace_is_stripped(self):
        """Spaces around segments and labels are removed."""
        entries = parse_recovery_codes(" github : abc123 ,  google:def456 ")
        assert entries == (
            RecoveryEntry("github", "abc123"),
            RecoveryEntry("google", "def456"),
        )

    def test_trailing_comma_ignored(self):
        """Blank segments are skipped without a warning."""
        assert len(parse_recovery_codes("github:abc123,")) == 1

    def test_empty_input(self):
        """Empty input yields no entries rather than an error."""
        assert parse_recovery_codes("") == ()
        assert parse_recovery_codes(" , ,") == ()

    def test_empty_code_allowed(self):
        """A segment with an empty code is still well formed."""
        assert parse_recovery_codes("bank:") == (RecoveryEntry("bank", ""),)

    def test_returns_tuple(self):
        """Result is immutable."""
        assert isinstance(parse_recovery_codes("a:b"), tuple)


# =============================================================================
# Malformed Input
# =============================================================================

class TestMalformedSegments:
    """Tests for the lenient and strict policies."""

    def test_lenient_drops_segment_without_colon(self):
        """The default policy skips malformed segments."""
        entries = parse_recovery_codes("github:abc123,noColonHere,google:def456")
        assert [e.service for e in entries] == ["github", "google"]

    def test_lenient_logs_warning(self, caplog):
        """Dropped segments are reported at WARNING."""
        with caplog.at_level(logging.WARNING, logger="wristvault.generator.entries"):
            parse_recovery_codes("github:abc123,noColonHere")
        assert "noColonHere" in caplog.text

    def test_strict_raises(self):
        """STRICT raises for the first malformed segment."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_recovery_codes("github:abc123,noColonHere", InputPolicy.STRICT)
        assert exc_info.value.segment == "noColonHere"
        assert exc_info.value.stage == "parse"

    def test_quote_rejected(self):
        """Double quotes cannot be placed in an assembler string."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_segment('bank:12"34')
        assert "quote" in exc_info.value.reason

    def test_non_ascii_rejected(self):
        """Labels must be printable ASCII."""
        with pytest.raises(MalformedInputError):
            parse_segment("café:1234")

    def test_lenient_drops_unprintable_label(self):
        """Unprintable labels are dropped like missing colons."""
        entries = parse_recovery_codes("ok:1,bad:\x07,fine:2")
        assert [e.service for e in entries] == ["ok", "fine"]

    def test_error_message_names_segment(self):
        """The formatted message identifies the segment and stage."""
        error = MalformedInputError("oops", "missing ':' between service and code")
        assert str(error).startswith("parse: error: malformed recovery code segment 'oops'")
        assert "hint:" in str(error)
