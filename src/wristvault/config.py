"""
WristVault Configuration
========================

Pipeline configuration: generator policies, include file location,
assembler command, and transport timing. Configuration can come from:
- Default values (defined here)
- Environment variables (VaultConfig.from_env)
- Command-line options (applied by the CLI on top of the above)

Timing values are in seconds. The defaults match the pacing the Datalink
notebook adapter needs at 9600 baud.
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from wristvault.generator.device import DEFAULT_MEMORY_LAYOUT, DeviceMemoryLayout
from wristvault.generator.entries import InputPolicy
from wristvault.generator.program import DEFAULT_INCLUDE_REFERENCE
from wristvault.generator.statemachine import ProgramVariant


# Relative include reference used inside the generated program text
INCLUDE_REFERENCE = DEFAULT_INCLUDE_REFERENCE

# Default number of sync bytes sent before the start packet
DEFAULT_SYNC_LENGTH = 100


@dataclass
class VaultConfig:
    """
    Configuration for one WristVault pipeline run.

    Attributes:
        variant: Which on-device program to generate (default: NAVIGATOR)
        input_policy: How malformed segments are handled (default: LENIENT)
        memory: Device memory layout for FLAGBYTE / CURRENT_CODE
        include_dir: Directory holding Inc150/WRISTAPP.I
                     (default: ./include in the current working directory)
        include_reference: Include path as written in the program text
        assembler_command: Command line of the external 6805 assembler
        assembler_timeout: Seconds before the assembler is abandoned
        sync_length: Number of 0x55 sync bytes in the sync packet
        byte_sleep: Delay after each byte written to the adapter
        packet_sleep: Delay after each packet written to the adapter
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # GENERATION
    # ═══════════════════════════════════════════════════════════════════════════

    variant: ProgramVariant = ProgramVariant.NAVIGATOR
    input_policy: InputPolicy = InputPolicy.LENIENT
    memory: DeviceMemoryLayout = DEFAULT_MEMORY_LAYOUT

    # ═══════════════════════════════════════════════════════════════════════════
    # COMPILATION
    # ═══════════════════════════════════════════════════════════════════════════

    include_dir: Optional[Path] = None
    include_reference: str = INCLUDE_REFERENCE
    assembler_command: list[str] = field(default_factory=lambda: ["asm6805"])
    assembler_timeout: float = 60.0

    # ═══════════════════════════════════════════════════════════════════════════
    # TRANSMISSION
    # ═══════════════════════════════════════════════════════════════════════════

    sync_length: int = DEFAULT_SYNC_LENGTH
    byte_sleep: float = 0.0025
    packet_sleep: float = 0.25

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """
        Create VaultConfig from environment variables.

        Environment variables (all optional):
            WRISTVAULT_INCLUDE_DIR: Directory containing Inc150/WRISTAPP.I
            WRISTVAULT_ASSEMBLER: Assembler command line (shell-style quoting)
            WRISTVAULT_ASSEMBLER_TIMEOUT: Assembler timeout in seconds
            WRISTVAULT_SYNC_LENGTH: Number of sync bytes
            WRISTVAULT_BYTE_SLEEP: Seconds between bytes
            WRISTVAULT_PACKET_SLEEP: Seconds between packets
            WRISTVAULT_STRICT: "1"/"true" rejects malformed segments
            WRISTVAULT_VARIANT: "navigator" or "basic"

        Invalid numeric values are ignored and the default is kept.

        Returns:
            VaultConfig with values from environment variables
        """
        config = cls()

        if include_dir := os.environ.get("WRISTVAULT_INCLUDE_DIR"):
            config.include_dir = Path(include_dir)

        if assembler := os.environ.get("WRISTVAULT_ASSEMBLER"):
            config.assembler_command = shlex.split(assembler)

        if timeout := os.environ.get("WRISTVAULT_ASSEMBLER_TIMEOUT"):
            try:
                config.assembler_timeout = float(timeout)
            except ValueError:
                pass

        if sync_length := os.environ.get("WRISTVAULT_SYNC_LENGTH"):
            try:
                config.sync_length = int(sync_length)
            except ValueError:
                pass

        if byte_sleep := os.environ.get("WRISTVAULT_BYTE_SLEEP"):
            try:
                config.byte_sleep = float(byte_sleep)
            except ValueError:
                pass

        if packet_sleep := os.environ.get("WRISTVAULT_PACKET_SLEEP"):
            try:
                config.packet_sleep = float(packet_sleep)
            except ValueError:
                pass

        if strict := os.environ.get("WRISTVAULT_STRICT"):
            if strict.lower() in ("1", "true", "yes"):
                config.input_policy = InputPolicy.STRICT

        if variant := os.environ.get("WRISTVAULT_VARIANT"):
            try:
                config.variant = ProgramVariant(variant.lower())
            except ValueError:
                pass

        return config

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def resolve_include_path(self) -> Path:
        """
        Get the absolute path of the device include file.

        The include directory defaults to ./include under the current
        working directory, because the assembler resolves includes from
        its own working directory, which may differ from ours.

        Returns:
            Absolute path to WRISTAPP.I (existence is not checked here)
        """
        include_dir = self.include_dir if self.include_dir is not None else Path.cwd() / "include"
        return (include_dir / self.include_reference).absolute()


# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT CONFIGURATION INSTANCE
# ═══════════════════════════════════════════════════════════════════════════════

_default_config: Optional[VaultConfig] = None


def get_default_config() -> VaultConfig:
    """
    Get the default pipeline configuration.

    Creates from environment variables on first access.
    Can be overridden by calling set_default_config().
    """
    global _default_config
    if _default_config is None:
        _default_config = VaultConfig.from_env()
    return _default_config


def set_default_config(config: Optional[VaultConfig]) -> None:
    """
    Set the default pipeline configuration.

    Passing None makes the next get_default_config() re-read the
    environment.
    """
    global _default_config
    _default_config = config
