"""
Table Layout Generator
======================

Lays out the recovery entries as data tables in the generated program.

For entry i three parallel structures are produced:

    ; service table (8-character strings)
    S8_SVC0:   timex   "GITHUB  "

    ; code table (8-character strings)
    S8_COD0:   timex   "ABC123  "

    ; lookup table, two rows per entry
    LOOKUP_TABLE:
            db      S8_SVC0-START  ; github
            db      S8_COD0-START  ; abc123

Lookup rows hold offsets from the program origin START, written as
symbolic expressions. The assembler resolves them, so the layout may
move without invalidating any offset.

Row Stride
----------
Each entry occupies ROWS_PER_ENTRY (2) one-byte rows: row 2i is the
service, row 2i+1 is the code. The on-device handlers find an entry by
doubling CURRENT_CODE (`lsla`) and indexing LOOKUP_TABLE, adding one for
the code row. The state machine synthesizer imports ROWS_PER_ENTRY so
both sides change together.

Short Fields
------------
Programs that render service and code on the 6-character top and middle
lines also need timex6 copies of each label. They are emitted into a
second interleaved table, SHORT_TABLE, with the same two-row stride.
Programs that never show the 8-character fields leave out the service
and code tables and LOOKUP_TABLE.
"""

import logging
from dataclasses import dataclass
from typing import Final, Sequence

from wristvault.generator.entries import RecoveryEntry
from wristvault.generator.fields import LONG_WIDTH, SHORT_WIDTH, FormattedField, format_field

logger = logging.getLogger(__name__)


# =============================================================================
# Layout Constants
# =============================================================================

# Program origin all offsets are measured from
ORIGIN_SYMBOL: Final[str] = "START"

# One row for the service, one for the code
ROWS_PER_ENTRY: Final[int] = 2

# Labels of the lookup tables
LOOKUP_TABLE: Final[str] = "LOOKUP_TABLE"
SHORT_TABLE: Final[str] = "SHORT_TABLE"

# Assembler directive for each field width
_STRING_DIRECTIVES: Final[dict[int, str]] = {
    LONG_WIDTH: "timex",
    SHORT_WIDTH: "timex6",
}


# =============================================================================
# Table Rows
# =============================================================================

@dataclass(frozen=True)
class StringSlot:
    """A labelled fixed-width string stored in the data section."""

    symbol: str
    field: FormattedField

    @property
    def directive(self) -> str:
        return _STRING_DIRECTIVES[self.field.width]

    def render(self) -> str:
        return f'{self.symbol + ":":<11} {self.directive:<7} "{self.field.text}"'


@dataclass(frozen=True)
class SymbolEntry:
    """
    One lookup-table row: the offset of a string slot from START.

    Attributes:
        symbol_name: Label of the string slot the row points at
        comment: Original (unformatted) label, for traceability
    """

    symbol_name: str
    comment: str

    @property
    def expression(self) -> str:
        """Offset expression resolved by the assembler."""
        return f"{self.symbol_name}-{ORIGIN_SYMBOL}"

    def render(self) -> str:
        return f"        db      {self.expression}  ; {self.comment}"


# =============================================================================
# Layout
# =============================================================================

@dataclass(frozen=True)
class TableLayout:
    """
    Data tables for one set of recovery entries.

    Attributes:
        entries: The entries, in on-device index order
        service_slots: 8-character service strings (may be empty)
        code_slots: 8-character code strings (may be empty)
        lookup_rows: Interleaved service/code offset rows (may be empty)
        short_slots: 6-character service and code strings (may be empty)
        short_rows: Interleaved offset rows for the short strings
        long_fields: Whether the 8-character tables are part of the program
    """

    entries: tuple[RecoveryEntry, ...]
    service_slots: tuple[StringSlot, ...] = ()
    code_slots: tuple[StringSlot, ...] = ()
    lookup_rows: tuple[SymbolEntry, ...] = ()
    short_slots: tuple[StringSlot, ...] = ()
    short_rows: tuple[SymbolEntry, ...] = ()
    long_fields: bool = True

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def has_long_fields(self) -> bool:
        return self.long_fields

    @property
    def has_short_fields(self) -> bool:
        return bool(self.short_rows)

    @property
    def string_slots(self) -> tuple[StringSlot, ...]:
        """All entry strings, in the order they appear in the program."""
        return self.service_slots + self.code_slots + self.short_slots

    @property
    def storage_bytes(self) -> int:
        """Bytes reserved by string slots and lookup rows."""
        return (sum(slot.field.width for slot in self.string_slots)
                + len(self.lookup_rows) + len(self.short_rows))

    def string_offsets(self, base: int) -> list[tuple[StringSlot, int]]:
        """
        Offset from START of every entry string.

        Args:
            base: Offset of the first string
        """
        offsets = []
        for slot in self.string_slots:
            offsets.append((slot, base))
            base += slot.field.width
        return offsets

    def service_row(self, index: int) -> SymbolEntry:
        """Lookup row of the service name of entry `index`."""
        return self.lookup_rows[index * ROWS_PER_ENTRY]

    def code_row(self, index: int) -> SymbolEntry:
        """Lookup row of the code of entry `index`."""
        return self.lookup_rows[index * ROWS_PER_ENTRY + 1]

    def short_service_row(self, index: int) -> SymbolEntry:
        return self.short_rows[index * ROWS_PER_ENTRY]

    def short_code_row(self, index: int) -> SymbolEntry:
        return self.short_rows[index * ROWS_PER_ENTRY + 1]

    def slot(self, symbol: str) -> StringSlot:
        """Find a string slot by its label."""
        for candidate in self.string_slots:
            if candidate.symbol == symbol:
                return candidate
        raise KeyError(symbol)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render_service_table(self) -> str:
        if not self.has_long_fields:
            return "; (no 8-character service names)"
        return "\n".join(slot.render() for slot in self.service_slots)

    def render_code_table(self) -> str:
        if not self.has_long_fields:
            return "; (no 8-character recovery codes)"
        return "\n".join(slot.render() for slot in self.code_slots)

    def render_lookup_table(self) -> str:
        if not self.has_long_fields:
            return "; (no 8-character entry fields)"
        lines = [f"{LOOKUP_TABLE}:"]
        lines.extend(row.render() for row in self.lookup_rows)
        return "\n".join(lines)

    def render_short_data(self) -> str:
        """
        Render the 6-character strings and their lookup table.

        Returns a comment line when the program does not use them, so the
        placeholder in the skeleton is always filled.
        """
        if not self.has_short_fields:
            return "; (no 6-character entry fields)"
        lines = [slot.render() for slot in self.short_slots]
        lines.append(f"{SHORT_TABLE}:")
        lines.extend(row.render() for row in self.short_rows)
        return "\n".join(lines)


def generate_tables(
    entries: Sequence[RecoveryEntry],
    include_short_fields: bool = False,
    include_long_fields: bool = True,
) -> TableLayout:
    """
    Lay out the data tables for a sequence of entries.

    Args:
        entries: Recovery entries in on-device order
        include_short_fields: Also emit 6-character strings and SHORT_TABLE
        include_long_fields: Emit 8-character strings and LOOKUP_TABLE

    Returns:
        TableLayout whose rows follow entry order. Zero entries give
        empty tables.
    """
    service_slots = []
    code_slots = []
    lookup_rows = []
    short_slots = []
    short_rows = []

    for i, entry in enumerate(entries):
        emitted = []

        if include_long_fields:
            service = StringSlot(f"S8_SVC{i}", format_field(entry.service, LONG_WIDTH))
            code = StringSlot(f"S8_COD{i}", format_field(entry.code, LONG_WIDTH))
            service_slots.append(service)
            code_slots.append(code)
            lookup_rows.append(SymbolEntry(service.symbol, entry.service))
            lookup_rows.append(SymbolEntry(code.symbol, entry.code))
            emitted.extend((service, code))

        if include_short_fields:
            short_service = StringSlot(f"S6_SVC{i}", format_field(entry.service, SHORT_WIDTH))
            short_code = StringSlot(f"S6_COD{i}", format_field(entry.code, SHORT_WIDTH))
            short_slots.extend((short_service, short_code))
            short_rows.append(SymbolEntry(short_service.symbol, entry.service))
            short_rows.append(SymbolEntry(short_code.symbol, entry.code))
            if not include_long_fields:
                emitted.extend((short_service, short_code))

        for slot in emitted:
            if slot.field.truncated:
                logger.warning(
                    "Entry %d: %r truncated to %r", i, slot.field.raw, slot.field.text
                )

    layout = TableLayout(
        entries=tuple(entries),
        service_slots=tuple(service_slots),
        code_slots=tuple(code_slots),
        lookup_rows=tuple(lookup_rows),
        short_slots=tuple(short_slots),
        short_rows=tuple(short_rows),
        long_fields=include_long_fields,
    )
    logger.debug(
        "Laid out %d entries (%d bytes of table storage)",
        layout.entry_count, layout.storage_bytes,
    )
    return layout
