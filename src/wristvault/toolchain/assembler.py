"""
Compilation Boundary
====================

Hands generated program text to a 6805 assembler and collects the
result as a CompiledArtifact.

Assembler Contract
------------------
An assembler is any object with

    assemble(program_name: str, lines: list[str]) -> AssemblerOutput

that raises AssemblerInvocationError when it cannot run or rejects the
program outright. ExternalAssembler, below, drives a command-line
assembler through a temporary directory; tests supply their own.

Success Criterion
-----------------
Success is non-empty hex text. Assemblers commonly print benign notices
(e.g. symbols defined with default values) alongside valid output, so
diagnostics alone never fail a build. They are logged and kept in the
artifact.

Include Resolution
------------------
The program includes the device runtime definitions as
"Inc150/WRISTAPP.I". Assemblers resolve includes relative to their own
working directory, so before assembly the reference is rewritten to the
absolute path under the configured include directory (by default
./include). A missing include file fails the build before the assembler
is invoked.
"""

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from wristvault.config import VaultConfig
from wristvault.errors import (
    AssemblerInvocationError,
    AssemblyFailureError,
    CompilationError,
    MissingResourceError,
)
from wristvault.generator.template import GeneratedProgram

logger = logging.getLogger(__name__)

# Number of hex characters echoed in progress messages
HEX_PREVIEW_LENGTH = 64


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class AssemblerOutput:
    """Raw result of one assembler run."""

    diagnostics: tuple[str, ...]
    hex_text: str
    listing: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompiledArtifact:
    """
    Result of the compilation boundary.

    Attributes:
        diagnostics: Assembler messages, verbatim (may be benign)
        hex_text: Hexadecimal machine code, never empty
        listing: Assembly listing, or None if not requested
    """

    diagnostics: tuple[str, ...]
    hex_text: str
    listing: Optional[tuple[str, ...]] = None

    @property
    def hex_preview(self) -> str:
        return self.hex_text[:HEX_PREVIEW_LENGTH]


class Assembler(Protocol):
    """Interface of assembler collaborators."""

    def assemble(self, program_name: str, lines: list[str]) -> AssemblerOutput:
        ...


# =============================================================================
# External Assembler
# =============================================================================

class ExternalAssembler:
    """
    Runs a command-line 6805 assembler.

    The program is written to `<tmpdir>/<program_name>` and the command
    is run in that directory with the source path appended. The assembler
    is expected to leave `<stem>.hex` (and optionally `<stem>.lst`) next
    to the source. Everything it prints becomes diagnostics.

    Example:
        >>> asm = ExternalAssembler(["asm6805", "-l"])
        >>> output = asm.assemble("wristapp.asm", program.lines())
    """

    def __init__(
        self,
        command: Sequence[str] = ("asm6805",),
        timeout: float = 60.0,
        hex_suffix: str = ".hex",
        listing_suffix: str = ".lst",
    ):
        if not command:
            raise ValueError("Assembler command must not be empty")
        self.command = list(command)
        self.timeout = timeout
        self.hex_suffix = hex_suffix
        self.listing_suffix = listing_suffix

    def assemble(self, program_name: str, lines: list[str]) -> AssemblerOutput:
        with tempfile.TemporaryDirectory(prefix="wristvault_") as temp_dir:
            work_dir = Path(temp_dir)
            source = work_dir / program_name
            source.write_text("\n".join(lines) + "\n", encoding="utf-8")

            cmd = self.command + [str(source)]
            logger.debug("Running assembler: %s", " ".join(cmd))

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    cwd=str(work_dir),
                    timeout=self.timeout,
                )
            except FileNotFoundError:
                raise AssemblerInvocationError(
                    f"assembler not found: {self.command[0]}"
                )
            except subprocess.TimeoutExpired:
                raise AssemblerInvocationError(
                    f"assembler timed out after {self.timeout:g} seconds"
                )

            diagnostics = tuple(
                line for line in (result.stdout + result.stderr).splitlines()
                if line.strip()
            )

            hex_file = source.with_suffix(self.hex_suffix)
            if not hex_file.exists():
                raise AssemblerInvocationError(
                    f"assembler exited with status {result.returncode} "
                    f"and wrote no {hex_file.name}",
                    diagnostics,
                )

            listing_file = source.with_suffix(self.listing_suffix)
            listing = ()
            if listing_file.exists():
                listing = tuple(listing_file.read_text(encoding="utf-8", errors="replace").splitlines())

            return AssemblerOutput(
                diagnostics=diagnostics,
                hex_text=hex_file.read_text(encoding="ascii", errors="replace"),
                listing=listing,
            )


# =============================================================================
# Compilation
# =============================================================================

def require_include_file(config: VaultConfig) -> Path:
    """
    Resolve the device include file and check that it exists.

    Raises:
        MissingResourceError: If the file is absent.
    """
    include_path = config.resolve_include_path()
    if not include_path.is_file():
        raise MissingResourceError(str(include_path))
    return include_path


def compile_program(
    program: GeneratedProgram,
    assembler: Assembler,
    config: VaultConfig,
    show_listing: bool = False,
) -> CompiledArtifact:
    """
    Assemble a generated program.

    Args:
        program: Program text from the generator
        assembler: Assembler collaborator
        config: Supplies the include directory and include reference
        show_listing: Keep the assembler listing in the artifact

    Returns:
        CompiledArtifact with non-empty hex text.

    Raises:
        MissingResourceError: Include file not found (assembler not run).
        CompilationError: The program does not reference the configured
            include file (assembler not run).
        AssemblyFailureError: Assembler failed or produced no hex.
    """
    include_path = require_include_file(config)

    directive = f'INCLUDE "{config.include_reference}"'
    if directive not in program.text:
        raise CompilationError(
            f"{program.name} has no {directive} line to point at {include_path}",
            hint="generate the program with the same include reference as the config",
        )
    text = program.text.replace(directive, f'INCLUDE "{include_path}"')

    try:
        output = assembler.assemble(program.name, text.splitlines())
    except AssemblerInvocationError as e:
        raise AssemblyFailureError(
            f"assembly of {program.name} failed: {e.message}", e.diagnostics
        ) from e
    except Exception as e:
        raise AssemblyFailureError(f"assembly of {program.name} failed: {e}") from e

    if output.diagnostics:
        logger.info("Assembler reported %d diagnostic(s)", len(output.diagnostics))
        for line in output.diagnostics:
            logger.warning("Assembler: %s", line)

    hex_text = output.hex_text.strip()
    if not hex_text:
        raise AssemblyFailureError(
            f"no hex output produced for {program.name}", output.diagnostics
        )

    logger.info("Assembled %s: %d hex characters", program.name, len(hex_text))
    logger.debug("First %d chars of hex: %s", HEX_PREVIEW_LENGTH, hex_text[:HEX_PREVIEW_LENGTH])

    return CompiledArtifact(
        diagnostics=tuple(output.diagnostics),
        hex_text=hex_text,
        listing=tuple(output.listing) if show_listing else None,
    )
