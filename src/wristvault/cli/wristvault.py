"""
wristvault - Recovery Code Wristapp Command-Line Interface
==========================================================

This module implements the `wristvault` command. It builds a wristapp
that shows recovery codes on a Timex Datalink 150 and sends it through
the Datalink notebook adapter.

Usage Examples
--------------
Build and send to the watch:
    $ wristvault send "github:abc123,google:def456" /dev/ttyUSB0

Show the assembler listing while sending:
    $ wristvault send "github:abc123" /dev/ttyUSB0 --show-listing

Write the generated program without assembling it:
    $ wristvault generate "github:abc123,google:def456" -o wristapp.asm

Assemble only, keeping the hex and listing:
    $ wristvault build "github:abc123" -o wristapp.hex -l wristapp.lst

List serial ports:
    $ wristvault ports

Hardware Setup
--------------
1. Put the include file at include/Inc150/WRISTAPP.I (or pass
   --include-dir / set WRISTVAULT_INCLUDE_DIR)
2. Install a 6805 assembler (default command: asm6805)
3. Connect the notebook adapter and put the watch in COMM MODE

Exit Codes
----------
0 - Success
1 - Generation, assembly, or transmission error
2 - Invalid arguments
3 - Internal error
"""

import dataclasses
import logging
import shlex
from pathlib import Path
from typing import Optional

import click

from wristvault import __version__
from wristvault.cli.errors import handle_cli_exception
from wristvault.comms import format_port_list, list_serial_ports
from wristvault.config import VaultConfig, get_default_config
from wristvault.generator import InputPolicy, ProgramVariant, generate_wristapp
from wristvault.pipeline import build_wristapp, default_transport, install_recovery_codes
from wristvault.toolchain.assembler import HEX_PREVIEW_LENGTH

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the verbosity flag and the configuration that commands start
    from (defaults overlaid with WRISTVAULT_* environment variables).
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.config: VaultConfig = VaultConfig()

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def configure(
        self,
        variant: Optional[str] = None,
        strict: bool = False,
        include_dir: Optional[Path] = None,
        assembler: Optional[str] = None,
        sync_length: Optional[int] = None,
    ) -> VaultConfig:
        """Return the context configuration with command-line overrides applied."""
        changes = {}
        if variant is not None:
            changes["variant"] = ProgramVariant(variant.lower())
        if strict:
            changes["input_policy"] = InputPolicy.STRICT
        if include_dir is not None:
            changes["include_dir"] = include_dir
        if assembler is not None:
            changes["assembler_command"] = shlex.split(assembler)
        if sync_length is not None:
            changes["sync_length"] = sync_length
        return dataclasses.replace(self.config, **changes)


pass_context = click.make_pass_decorator(Context, ensure=True)


def generation_options(func):
    """Options shared by every command that generates a program."""
    func = click.option(
        "--strict",
        is_flag=True,
        help="Reject malformed segments instead of skipping them",
    )(func)
    func = click.option(
        "--variant",
        type=click.Choice([v.value for v in ProgramVariant], case_sensitive=False),
        default=None,
        help="On-device program: navigator (list + hold SET to reveal) or basic",
    )(func)
    return func


def toolchain_options(func):
    """Options shared by every command that runs the assembler."""
    func = click.option(
        "--assembler",
        type=str,
        default=None,
        help="Assembler command line (default: asm6805)",
    )(func)
    func = click.option(
        "--include-dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Directory containing Inc150/WRISTAPP.I (default: ./include)",
    )(func)
    return func


def echo_listing(listing: tuple[str, ...]) -> None:
    click.echo("\n=== ASSEMBLY LISTING ===")
    for line in listing:
        click.echo(line)
    click.echo("=== END LISTING ===\n")


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="wristvault")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Store recovery codes on a Timex Datalink 150.

    CODES is a comma-separated list of service:code pairs, for example
    "github:abc123,google:def456".

    On the watch, NEXT/PREV step through services, holding SET reveals
    the code, and MODE exits.
    """
    ctx.verbose = verbose
    ctx.config = dataclasses.replace(get_default_config())
    ctx.setup_logging()


# =============================================================================
# Send Command
# =============================================================================

@main.command()
@click.argument("codes")
@click.argument("port")
@click.option(
    "--show-listing",
    is_flag=True,
    help="Print the assembler listing",
)
@click.option(
    "--sync-length",
    type=click.IntRange(min=1),
    default=None,
    help="Number of sync bytes sent before the start packet (default: 100)",
)
@generation_options
@toolchain_options
@pass_context
def send(
    ctx: Context,
    codes: str,
    port: str,
    show_listing: bool,
    sync_length: Optional[int],
    variant: Optional[str],
    strict: bool,
    include_dir: Optional[Path],
    assembler: Optional[str],
) -> None:
    """
    Build the wristapp for CODES and send it to the watch on PORT.

    Example:
        wristvault send "github:abc123,google:def456" /dev/ttyUSB0
    """
    try:
        config = ctx.configure(variant, strict, include_dir, assembler, sync_length)

        click.echo("WristVault - Secure Recovery Codes for Timex Datalink 150")
        click.echo("Generating wristapp with recovery codes...")
        click.echo(f"Sending to watch on {port}...")
        result = install_recovery_codes(
            codes,
            port,
            config=config,
            transport=default_transport(config, verbose=ctx.verbose),
            show_listing=show_listing,
        )

        click.echo(f"Generated assembly code ({len(result.program.text)} bytes)")
        if result.artifact.listing is not None:
            echo_listing(result.artifact.listing)
        click.echo(f"Hex output length: {len(result.artifact.hex_text)} bytes")
        click.echo(f"First {HEX_PREVIEW_LENGTH} chars of hex: {result.artifact.hex_preview}")
        click.echo(f"Converted hex to {len(result.binary)} bytes of binary data")
        click.echo(f"Generated {len(result.packets)} packet groups for transmission")
        click.echo(f"Successfully sent to watch on {port}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Generate Command
# =============================================================================

@main.command()
@click.argument("codes")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: print to stdout)",
)
@generation_options
@pass_context
def generate(
    ctx: Context,
    codes: str,
    output: Optional[Path],
    variant: Optional[str],
    strict: bool,
) -> None:
    """
    Write the wristapp program for CODES without assembling it.

    Example:
        wristvault generate "github:abc123" -o wristapp.asm
    """
    try:
        config = ctx.configure(variant, strict)
        program = generate_wristapp(
            codes,
            variant=config.variant,
            policy=config.input_policy,
            memory=config.memory,
            include_reference=config.include_reference,
        )

        if output is None:
            click.echo(program.text, nl=False)
        else:
            output.write_text(program.text, encoding="utf-8")
            click.echo(f"Wrote {output} ({program.entry_count} entries, {len(program.text)} bytes)")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Build Command
# =============================================================================

@main.command()
@click.argument("codes")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the assembler hex output to this file",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the assembler listing to this file",
)
@generation_options
@toolchain_options
@pass_context
def build(
    ctx: Context,
    codes: str,
    output: Optional[Path],
    listing: Optional[Path],
    variant: Optional[str],
    strict: bool,
    include_dir: Optional[Path],
    assembler: Optional[str],
) -> None:
    """
    Generate and assemble the wristapp for CODES without sending it.

    Example:
        wristvault build "github:abc123" -o wristapp.hex -l wristapp.lst
    """
    try:
        config = ctx.configure(variant, strict, include_dir, assembler)
        result = build_wristapp(codes, config=config, show_listing=listing is not None)

        click.echo(f"Hex output length: {len(result.artifact.hex_text)} bytes")
        click.echo(f"Binary size: {len(result.binary)} bytes")

        if output is not None:
            output.write_text(result.artifact.hex_text + "\n", encoding="ascii")
            click.echo(f"Wrote {output}")

        if listing is not None:
            listing.write_text("\n".join(result.artifact.listing or ()) + "\n", encoding="utf-8")
            click.echo(f"Wrote {listing}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Ports Command
# =============================================================================

@main.command()
@click.option(
    "--detailed", "-d",
    is_flag=True,
    help="Show detailed port information",
)
@pass_context
def ports(ctx: Context, detailed: bool) -> None:
    """
    List available serial ports.

    USB-serial adapters are marked with their vendor (e.g., FTDI).

    Example:
        wristvault ports
        wristvault ports --detailed
    """
    port_list = list_serial_ports()

    if not port_list:
        click.echo("No serial ports found.")
        click.echo("\nTips:")
        click.echo("  - Connect the notebook adapter (or its USB-serial cable)")
        click.echo("  - On Linux, ensure you have permission (dialout group)")
        return

    click.echo("Available serial ports:")
    click.echo(format_port_list(port_list, verbose=detailed))


if __name__ == "__main__":
    main()
