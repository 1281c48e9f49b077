"""
Tests for the Table Layout Generator
====================================

Verifies symbol naming, the two-row lookup stride, symbolic offsets,
and the optional 6-character tables.
"""

import re

from wristvault.generator.entries import RecoveryEntry
from wristvault.generator.tables import (
    LOOKUP_TABLE,
    ROWS_PER_ENTRY,
    SHORT_TABLE,
    SymbolEntry,
    generate_tables,
)


ENTRIES = (
    RecoveryEntry("github", "abc123"),
    RecoveryEntry("google", "def456"),
    RecoveryEntry("bank", "9F3K-22LQ"),
)


class TestGenerateTables:
    """Tests for generate_tables."""

    def test_entry_count(self):
        layout = generate_tables(ENTRIES)
        assert layout.entry_count == 3
        assert len(layout.lookup_rows) == 3 * ROWS_PER_ENTRY

    def test_rows_follow_entry_order(self):
        """Row 2i is the service of entry i, row 2i+1 its code."""
        layout = generate_tables(ENTRIES)
        for i, entry in enumerate(ENTRIES):
            assert layout.service_row(i).symbol_name == f"S8_SVC{i}"
            assert layout.service_row(i).comment == entry.service
            assert layout.code_row(i).symbol_name == f"S8_COD{i}"
            assert layout.code_row(i).comment == entry.code

    def test_slots_are_formatted(self):
        layout = generate_tables(ENTRIES)
        assert layout.slot("S8_SVC0").field.text == "GITHUB  "
        assert layout.slot("S8_COD2").field.text == "9F3K-22L"

    def test_no_short_fields_by_default(self):
        layout = generate_tables(ENTRIES)
        assert not layout.has_short_fields
        assert layout.render_short_data() == "; (no 6-character entry fields)"

    def test_short_fields(self):
        """Short tables use the same interleaved stride."""
        layout = generate_tables(ENTRIES, include_short_fields=True)
        assert layout.has_short_fields
        assert layout.short_service_row(1).symbol_name == "S6_SVC1"
        assert layout.short_code_row(1).symbol_name == "S6_COD1"
        assert layout.slot("S6_COD1").field.text == "DEF456"

    def test_zero_entries(self):
        """No entries give empty tables."""
        layout = generate_tables(())
        assert layout.entry_count == 0
        assert layout.render_service_table() == ""
        assert layout.render_lookup_table() == f"{LOOKUP_TABLE}:"

    def test_storage_bytes(self):
        """Each entry reserves two 8-byte strings and two lookup rows."""
        layout = generate_tables(ENTRIES)
        assert layout.storage_bytes == 3 * (8 + 8 + 2)

    def test_truncation_logged(self, caplog):
        generate_tables((RecoveryEntry("averyverylongservice", "x"),))
        assert "truncated" in caplog.text

    def test_short_fields_only(self):
        """Programs that only show 6-character fields skip the 8-character tables."""
        layout = generate_tables(ENTRIES, include_short_fields=True, include_long_fields=False)
        assert not layout.has_long_fields
        assert layout.lookup_rows == ()
        assert [slot.symbol for slot in layout.string_slots][:2] == ["S6_SVC0", "S6_COD0"]
        assert layout.storage_bytes == 3 * (6 + 6 + 2)
        assert layout.render_lookup_table() == "; (no 8-character entry fields)"
        assert layout.render_service_table().startswith(";")

    def test_string_offsets_are_consecutive(self):
        layout = generate_tables(ENTRIES[:1], include_short_fields=True)
        offsets = [offset for _, offset in layout.string_offsets(40)]
        assert offsets == [40, 48, 56, 62]


class TestRendering:
    """Tests for the rendered table fragments."""

    def test_service_table_directive(self):
        text = generate_tables(ENTRIES).render_service_table()
        assert 'S8_SVC0:    timex   "GITHUB  "' in text

    def test_short_strings_use_timex6(self):
        text = generate_tables(ENTRIES, include_short_fields=True).render_short_data()
        assert 'timex6  "GITHUB"' in text
        assert f"{SHORT_TABLE}:" in text

    def test_lookup_rows_are_symbolic(self):
        """Offsets are written as SYMBOL-START expressions, never numbers."""
        text = generate_tables(ENTRIES).render_lookup_table()
        rows = [line for line in text.splitlines() if line.strip().startswith("db")]
        assert len(rows) == 6
        for row in rows:
            assert re.match(r"\s+db\s+S8_(SVC|COD)\d+-START\s+;", row)

    def test_comment_keeps_original_label(self):
        text = generate_tables(ENTRIES).render_lookup_table()
        assert "S8_SVC0-START  ; github" in text
        assert "S8_COD2-START  ; 9F3K-22LQ" in text

    def test_symbol_entry_expression(self):
        assert SymbolEntry("S8_SVC4", "x").expression == "S8_SVC4-START"
