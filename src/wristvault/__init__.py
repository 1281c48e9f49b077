"""
WristVault - Recovery Codes on a Timex Datalink 150
===================================================

This package turns a list of "service:code" recovery-code pairs into a
wristapp for the Timex Datalink 150 and loads it onto the watch through
the Datalink notebook adapter.

On the watch, the app lists one service at a time. NEXT and PREV step
through the list (wrapping at both ends), holding SET reveals the code
for the selected service, and MODE leaves the app.

Main Components
---------------
- **generator**: program text for the watch
    Entry parsing, fixed-width fields, lookup tables, the on-device state
    machine, and the program skeleton

- **toolchain**: the assembler boundary
    Runs a 6805 assembler and decodes its hex output

- **comms**: Datalink Protocol 4 over the notebook adapter
    Packet construction, CRC, and paced serial transmission

- **pipeline**: every stage wired together

Quick Start
-----------
    >>> from wristvault import install_recovery_codes
    >>> install_recovery_codes("github:abc123,google:def456", "/dev/ttyUSB0")

Or use the command-line tool:
    $ wristvault send "github:abc123,google:def456" /dev/ttyUSB0
    $ wristvault generate "github:abc123" -o wristapp.asm

The 6805 assembler and the Timex include file (include/Inc150/WRISTAPP.I)
are not part of this package.
"""

__version__ = "1.0.0"
__author__ = "WristVault Contributors"

from wristvault.errors import (
    AssemblyFailureError,
    CompilationError,
    EmptyEntrySetError,
    GenerationError,
    MalformedInputError,
    MissingResourceError,
    TransmissionFailureError,
    WristVaultError,
)
from wristvault.pipeline import PipelineResult, build_wristapp, install_recovery_codes

__all__ = [
    "__version__",
    # Pipeline
    "PipelineResult",
    "build_wristapp",
    "install_recovery_codes",
    # Errors
    "WristVaultError",
    "GenerationError",
    "MalformedInputError",
    "EmptyEntrySetError",
    "CompilationError",
    "MissingResourceError",
    "AssemblyFailureError",
    "TransmissionFailureError",
]
