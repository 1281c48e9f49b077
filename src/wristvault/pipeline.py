"""
WristVault Pipeline
===================

The single entry point that takes a recovery-code string and a
destination and runs every stage in order:

    parse -> format -> layout -> synthesize -> template
          -> compile -> transcode -> transmit

Each stage hands an immutable value to the next; nothing runs ahead of
the stage before it. Collaborators (assembler, packager, transport)
default to the implementations shipped with WristVault and can be
replaced by keyword argument, which is how the tests drive the pipeline
without an assembler or a serial port.

Usage
-----
    from wristvault.pipeline import install_recovery_codes

    result = install_recovery_codes("github:abc123,google:def456", "/dev/ttyUSB0")
    print(len(result.binary), "bytes sent")
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

from wristvault.comms.protocol4 import Packager, PacketSet, Protocol4Packager
from wristvault.comms.serial import NotebookAdapter
from wristvault.comms.transmit import Transport, transmit
from wristvault.config import VaultConfig, get_default_config
from wristvault.generator.program import generate_wristapp
from wristvault.generator.template import GeneratedProgram
from wristvault.toolchain.assembler import (
    Assembler,
    CompiledArtifact,
    ExternalAssembler,
    compile_program,
)
from wristvault.toolchain.hexcodec import hex_to_binary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """
    Everything the pipeline produced.

    Attributes:
        program: Generated program text
        artifact: Assembler output (hex, diagnostics, optional listing)
        binary: Machine code decoded from the hex text
        packets: Packet groups handed to the transport (empty when the
                 pipeline stopped after compilation)
    """

    program: GeneratedProgram
    artifact: CompiledArtifact
    binary: bytes
    packets: PacketSet = ()


def default_assembler(config: VaultConfig) -> ExternalAssembler:
    """Create the command-line assembler described by `config`."""
    return ExternalAssembler(config.assembler_command, timeout=config.assembler_timeout)


def default_transport(config: VaultConfig, verbose: bool = False) -> NotebookAdapter:
    """Create the notebook adapter transport described by `config`."""
    return NotebookAdapter(
        byte_sleep=config.byte_sleep,
        packet_sleep=config.packet_sleep,
        verbose=verbose,
    )


def build_wristapp(
    codes: str,
    *,
    config: Optional[VaultConfig] = None,
    assembler: Optional[Assembler] = None,
    show_listing: bool = False,
) -> PipelineResult:
    """
    Generate, compile and transcode a wristapp without transmitting it.

    Args:
        codes: Comma-separated "service:code" pairs
        config: Pipeline configuration (default: get_default_config())
        assembler: Assembler collaborator (default: ExternalAssembler)
        show_listing: Keep the assembler listing in the result

    Returns:
        PipelineResult with no packets.

    Raises:
        GenerationError: Input or generation failure.
        CompilationError: Include file missing or assembly failed.
    """
    config = config or get_default_config()
    assembler = assembler or default_assembler(config)

    program = generate_wristapp(
        codes,
        variant=config.variant,
        policy=config.input_policy,
        memory=config.memory,
        include_reference=config.include_reference,
    )
    logger.debug("Generated assembly code (%d bytes)", len(program.text))

    artifact = compile_program(program, assembler, config, show_listing=show_listing)
    logger.debug("Compiled to hex (%d bytes)", len(artifact.hex_text))

    binary = hex_to_binary(artifact.hex_text)
    logger.debug("Converted to binary (%d bytes)", len(binary))

    return PipelineResult(program=program, artifact=artifact, binary=binary)


def install_recovery_codes(
    codes: str,
    destination: str,
    *,
    config: Optional[VaultConfig] = None,
    assembler: Optional[Assembler] = None,
    packager: Optional[Packager] = None,
    transport: Optional[Transport] = None,
    show_listing: bool = False,
) -> PipelineResult:
    """
    Build a recovery-code wristapp and send it to the watch.

    Args:
        codes: Comma-separated "service:code" pairs
        destination: Transport destination (serial device path)
        config: Pipeline configuration (default: get_default_config())
        assembler: Assembler collaborator (default: ExternalAssembler)
        packager: Packet builder (default: Protocol4Packager)
        transport: Packet writer (default: NotebookAdapter)
        show_listing: Keep the assembler listing in the result

    Returns:
        PipelineResult including the packets that were sent.

    Raises:
        WristVaultError: Any non-absorbed failure, tagged with its stage.
    """
    config = config or get_default_config()

    result = build_wristapp(
        codes, config=config, assembler=assembler, show_listing=show_listing
    )

    packets = transmit(
        result.binary,
        destination,
        packager=packager or Protocol4Packager(),
        transport=transport or default_transport(config),
        sync_length=config.sync_length,
    )
    logger.debug("Transmission complete")

    return dataclasses.replace(result, packets=packets)
