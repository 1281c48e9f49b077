"""
WristVault Error Hierarchy
==========================

This module defines the exception hierarchy for the whole WristVault
pipeline. All exceptions inherit from WristVaultError, allowing callers
to catch every pipeline failure with a single except clause.

Exception Hierarchy
-------------------
WristVaultError (base)
├── GenerationError (program generation)
│   ├── MalformedInputError - a recovery-code segment cannot be used
│   ├── EmptyEntrySetError - no usable entries after parsing
│   └── TemplateError - a program skeleton could not be filled
├── CompilationError (assembler boundary)
│   ├── MissingResourceError - device include file not found
│   ├── AssemblerInvocationError - the assembler itself failed to run
│   └── AssemblyFailureError - no hex output was produced
└── TransmissionFailureError (packet construction and transport)
    └── PortConnectionError - serial port cannot be opened

Message Format
--------------
Each exception knows the pipeline stage it was raised in. Messages
follow this format so a failure can be diagnosed without re-running
with verbose output:

    compile: error: no hex output produced by assembler
    wristapp.asm:12: undefined symbol 'FOO'
    hint: check the assembler diagnostics above

Lenient-mode malformed segments and undecodable hex characters are not
raised at all; they are logged and dropped by the stage that finds them.
"""

from typing import Optional, Sequence


# =============================================================================
# Base Exception Class
# =============================================================================

class WristVaultError(Exception):
    """
    Base exception for all WristVault errors.

    Attributes:
        message: The error description
        stage: Pipeline stage that failed (parse, generate, compile,
               packetize, transport), if known
        hint: A suggestion for fixing the error (optional)
        details: Extra lines (e.g. assembler diagnostics) shown verbatim
    """

    default_stage: Optional[str] = None

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        hint: Optional[str] = None,
        details: Sequence[str] = (),
    ):
        self.message = message
        self.stage = stage or self.default_stage
        self.hint = hint
        self.details = tuple(details)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with stage, details, and hint.

        Example output:
            compile: error: include file not found: /work/include/Inc150/WRISTAPP.I
            hint: run from the directory that holds include/Inc150
        """
        parts = []

        if self.stage:
            parts.append(f"{self.stage}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        parts.extend(self.details)

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Generation Exceptions
# =============================================================================

class GenerationError(WristVaultError):
    """Base exception for program generation errors."""

    default_stage = "generate"


class MalformedInputError(GenerationError):
    """
    A recovery-code segment cannot be turned into an entry.

    Raised only under the strict input policy. Under the lenient policy
    the parser logs the segment and drops it instead.

    Examples:
        - "noColonHere" (no service/code separator)
        - 'bank:12"34' (quote cannot be stored in a display string)
    """

    default_stage = "parse"

    def __init__(self, segment: str, reason: str):
        self.segment = segment
        self.reason = reason
        super().__init__(
            f"malformed recovery code segment {segment!r}: {reason}",
            hint="segments must look like service:code",
        )


class EmptyEntrySetError(GenerationError):
    """
    No usable recovery codes were supplied.

    The navigation logic wraps modulo the number of entries, so a program
    with zero entries cannot be generated.
    """

    def __init__(self, message: str = "no usable recovery codes supplied"):
        super().__init__(
            message,
            hint='pass at least one entry, e.g. "github:abc123"',
        )


class TemplateError(GenerationError):
    """
    A program skeleton could not be filled completely.

    This is a generator defect rather than a user error: a placeholder
    without a fragment, an unused fragment, or a repeated placeholder.
    Generation stops so no partial program reaches the assembler.
    """
    pass


# =============================================================================
# Compilation Exceptions
# =============================================================================

class CompilationError(WristVaultError):
    """Base exception for errors at the assembler boundary."""

    default_stage = "compile"


class MissingResourceError(CompilationError):
    """
    The device-runtime include file does not exist.

    Raised before the assembler is invoked.
    """

    def __init__(self, path: str, hint: Optional[str] = None):
        self.path = path
        super().__init__(
            f"include file not found: {path}",
            hint=hint or "run from the directory that contains include/Inc150",
        )


class AssemblerInvocationError(CompilationError):
    """
    The assembler could not run or rejected the program outright.

    Raised by assembler collaborators. The compilation boundary turns it
    into an AssemblyFailureError for the caller.

    Attributes:
        diagnostics: Messages reported by the assembler, verbatim
    """

    def __init__(self, message: str, diagnostics: Sequence[str] = ()):
        self.diagnostics = tuple(diagnostics)
        super().__init__(message, details=self.diagnostics)


class AssemblyFailureError(CompilationError):
    """
    Assembly produced no usable output.

    Raised when the assembler call failed or returned empty hex text.
    Diagnostics are forwarded verbatim.
    """

    def __init__(self, message: str, diagnostics: Sequence[str] = ()):
        self.diagnostics = tuple(diagnostics)
        super().__init__(
            message,
            details=self.diagnostics,
            hint="check the assembler diagnostics above" if self.diagnostics else None,
        )


# =============================================================================
# Transmission Exceptions
# =============================================================================

class TransmissionFailureError(WristVaultError):
    """
    Packet construction or transport failed.

    Errors from the packager use stage "packetize", errors from the
    serial adapter use stage "transport". No retry happens at this layer.
    """

    default_stage = "transport"


class PortConnectionError(TransmissionFailureError):
    """
    Cannot open the serial port of the notebook adapter.

    Raised when:
    - Serial port not found
    - Permission denied
    - Port busy
    """
    pass
