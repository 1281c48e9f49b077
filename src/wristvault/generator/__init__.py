"""
WristVault Program Generator
============================

Turns recovery-code entries into wristapp program text.

Module Structure
----------------
- **entries**: parse "service:code,..." input into RecoveryEntry values
- **fields**: fixed-width (6/8 character) label formatting
- **tables**: service, code and lookup tables with symbolic offsets
- **device**: device memory layout and runtime symbol names
- **statemachine**: state tables, handlers, and an executable model
- **template**: strict placeholder substitution and the program skeleton
- **program**: the stages wired together

Quick Start
-----------
    from wristvault.generator import generate_wristapp

    program = generate_wristapp("github:abc123,google:def456")
    print(program.text)
"""

from wristvault.generator.device import DEFAULT_MEMORY_LAYOUT, DeviceMemoryLayout, Event, Timing
from wristvault.generator.entries import InputPolicy, RecoveryEntry, parse_recovery_codes
from wristvault.generator.fields import LONG_WIDTH, SHORT_WIDTH, FormattedField, format_field
from wristvault.generator.program import PROGRAM_NAME, build_program, generate_wristapp
from wristvault.generator.statemachine import (
    MAX_ENTRIES,
    DisplayFrame,
    ProgramVariant,
    StateDescriptor,
    StateMachine,
    WristAppModel,
    synthesize_state_machine,
)
from wristvault.generator.tables import ROWS_PER_ENTRY, SymbolEntry, TableLayout, generate_tables
from wristvault.generator.template import GeneratedProgram, ProgramTemplate

__all__ = [
    # Memory and runtime
    "DEFAULT_MEMORY_LAYOUT",
    "DeviceMemoryLayout",
    "Event",
    "Timing",
    # Parsing and formatting
    "InputPolicy",
    "RecoveryEntry",
    "parse_recovery_codes",
    "LONG_WIDTH",
    "SHORT_WIDTH",
    "FormattedField",
    "format_field",
    # Tables
    "ROWS_PER_ENTRY",
    "SymbolEntry",
    "TableLayout",
    "generate_tables",
    # State machine
    "MAX_ENTRIES",
    "DisplayFrame",
    "ProgramVariant",
    "StateDescriptor",
    "StateMachine",
    "WristAppModel",
    "synthesize_state_machine",
    # Program text
    "PROGRAM_NAME",
    "GeneratedProgram",
    "ProgramTemplate",
    "build_program",
    "generate_wristapp",
]
