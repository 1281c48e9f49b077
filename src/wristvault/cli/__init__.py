"""
WristVault Command-Line Interface
=================================

The `wristvault` command is a Click group with these subcommands:

- **send**: build the wristapp and transmit it to the watch
- **generate**: write the generated program text
- **build**: generate and assemble without transmitting
- **ports**: list serial ports
"""

__all__ = ["wristvault"]
