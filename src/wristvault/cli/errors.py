"""
CLI Error Handling
==================

Maps pipeline failures to messages and exit codes.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from wristvault.errors import WristVaultError


class ExitCode(IntEnum):
    """Exit codes of the wristvault command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Generation, assembly, or transmission error
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception raised by a command and exit.

    WristVault errors already carry their stage ("compile: error: ...")
    and hint, so they are printed unchanged.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    if isinstance(error, WristVaultError):
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
