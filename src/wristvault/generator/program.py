"""
Wristapp program generation.

Runs the generator stages in order (parse, lay out tables, synthesize
the state machine, fill the skeleton) and returns the program text.
"""

import logging
from typing import Final, Optional, Sequence

from wristvault.errors import EmptyEntrySetError, GenerationError
from wristvault.generator.device import DEFAULT_MEMORY_LAYOUT, DeviceMemoryLayout
from wristvault.generator.entries import InputPolicy, RecoveryEntry, parse_recovery_codes
from wristvault.generator.statemachine import ProgramVariant, StateMachine, synthesize_state_machine
from wristvault.generator.tables import TableLayout, generate_tables
from wristvault.generator.template import WRISTAPP_SKELETON, GeneratedProgram

logger = logging.getLogger(__name__)

PROGRAM_NAME = "wristapp.asm"
DEFAULT_INCLUDE_REFERENCE = "Inc150/WRISTAPP.I"

_DESCRIPTIONS = {
    ProgramVariant.NAVIGATOR: "Recovery Codes with Navigation",
    ProgramVariant.BASIC: "Recovery Codes",
}

# Lookup rows and label loads hold one-byte offsets from START
MAX_STRING_OFFSET: Final[int] = 0xFF


def max_entry_count(machine: StateMachine, layout: TableLayout) -> int:
    """
    Most entries whose strings still start within MAX_STRING_OFFSET.

    Uses the per-entry string size of `layout`, which has to hold at
    least one entry.
    """
    slots = layout.string_slots
    per_entry = sum(slot.field.width for slot in slots) // layout.entry_count
    last_width = slots[-1].field.width
    return (MAX_STRING_OFFSET - machine.data_offset + last_width) // per_entry


def _check_string_offsets(machine: StateMachine, layout: TableLayout) -> None:
    slot, offset = layout.string_offsets(machine.data_offset)[-1]
    if offset > MAX_STRING_OFFSET:
        limit = max_entry_count(machine, layout)
        raise GenerationError(
            f"too many recovery codes: {layout.entry_count} "
            f"(the {machine.variant.value} program holds at most {limit})",
            details=[f"{slot.symbol} would start at offset ${offset:X} from START"],
            hint="split the codes across more than one wristapp",
        )
    logger.debug("Last entry string %s at offset $%02X", slot.symbol, offset)


def build_program(
    entries: Sequence[RecoveryEntry],
    variant: ProgramVariant = ProgramVariant.NAVIGATOR,
    memory: DeviceMemoryLayout = DEFAULT_MEMORY_LAYOUT,
    include_reference: str = DEFAULT_INCLUDE_REFERENCE,
) -> GeneratedProgram:
    """
    Generate the wristapp program for already-parsed entries.

    Args:
        entries: Recovery entries in on-device order
        variant: Program variant
        memory: Device memory layout
        include_reference: Include path written into the program

    Returns:
        GeneratedProgram ready for the assembler.

    Raises:
        EmptyEntrySetError: If there are no entries.
        GenerationError: If the tables and state machine disagree, the
            entry strings do not fit in byte offsets from START, or a
            skeleton cannot be filled.
    """
    if not entries:
        raise EmptyEntrySetError()

    machine = synthesize_state_machine(len(entries), variant, memory)
    layout = generate_tables(
        entries,
        include_short_fields=machine.uses_short_fields,
        include_long_fields=machine.uses_long_fields,
    )

    # Wrap constants come from the machine, rows from the layout
    if machine.entry_count != layout.entry_count:
        raise GenerationError(
            f"state machine modulus {machine.entry_count} does not match "
            f"{layout.entry_count} table entries"
        )
    _check_string_offsets(machine, layout)

    text = WRISTAPP_SKELETON.render(
        DESCRIPTION=_DESCRIPTIONS[machine.variant],
        INCLUDE_FILE=include_reference,
        MEMORY_MAP=memory.equates(),
        STATE_DISPATCH=machine.render_dispatch(),
        LABEL_STRINGS=machine.render_labels(),
        SERVICE_TABLE_DATA=layout.render_service_table(),
        CODE_TABLE_DATA=layout.render_code_table(),
        RECOVERY_DATA=layout.render_short_data(),
        STATE_TABLES=machine.render_state_tables(),
        STATE_HANDLERS=machine.render_handlers(),
        LOOKUP_TABLE_DATA=layout.render_lookup_table(),
    )

    logger.info(
        "Generated %s program for %d entries (%d bytes of text)",
        machine.variant.value, layout.entry_count, len(text),
    )
    return GeneratedProgram(name=PROGRAM_NAME, text=text, entry_count=layout.entry_count)


def generate_wristapp(
    recovery_codes: str,
    variant: ProgramVariant = ProgramVariant.NAVIGATOR,
    policy: InputPolicy = InputPolicy.LENIENT,
    memory: DeviceMemoryLayout = DEFAULT_MEMORY_LAYOUT,
    include_reference: Optional[str] = None,
) -> GeneratedProgram:
    """
    Generate the wristapp program from the raw recovery-code string.

    Example:
        >>> program = generate_wristapp("github:abc123,google:def456")
        >>> program.entry_count
        2
    """
    entries = parse_recovery_codes(recovery_codes, policy)
    return build_program(
        entries,
        variant=variant,
        memory=memory,
        include_reference=include_reference or DEFAULT_INCLUDE_REFERENCE,
    )
