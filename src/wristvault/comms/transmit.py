"""
Transmission Orchestrator
=========================

Turns a wristapp binary into a packet set and hands it to a transport.

The component list is always the same four entries, in this order:

    Sync(sync_length), Start(), WristApp(blob), End()

Both delegates are collaborators: any packager with
`packets(components)` and any transport with `write(destination,
packets)` will do. Failures of either surface as TransmissionFailureError;
nothing is retried here.
"""

import logging
from typing import Protocol, Sequence

from wristvault.comms.protocol4 import (
    End,
    Packager,
    PacketGroup,
    PacketSet,
    Start,
    Sync,
    WristApp,
)
from wristvault.config import DEFAULT_SYNC_LENGTH
from wristvault.errors import TransmissionFailureError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Interface of transport collaborators."""

    def write(self, destination: str, packet_groups: Sequence[PacketGroup]) -> None:
        ...


def transmit(
    blob: bytes,
    destination: str,
    packager: Packager,
    transport: Transport,
    sync_length: int = DEFAULT_SYNC_LENGTH,
) -> PacketSet:
    """
    Package a wristapp binary and send it.

    Args:
        blob: Wristapp machine code
        destination: Transport destination (serial device path)
        packager: Builds the packet set from the component list
        transport: Delivers the packet set
        sync_length: Length of the sync burst

    Returns:
        The packet set that was handed to the transport.

    Raises:
        TransmissionFailureError: Packaging or delivery failed.
    """
    components = [Sync(sync_length), Start(), WristApp(blob), End()]

    try:
        packets = packager.packets(components)
    except TransmissionFailureError:
        raise
    except Exception as e:
        raise TransmissionFailureError(
            f"cannot build packets: {e}", stage="packetize"
        ) from e

    logger.info(
        "Packaged %d bytes into %d packet groups (%d packets)",
        len(blob), len(packets), sum(len(group.packets) for group in packets),
    )

    try:
        transport.write(destination, packets)
    except TransmissionFailureError:
        raise
    except Exception as e:
        raise TransmissionFailureError(
            f"cannot send to {destination}: {e}", stage="transport"
        ) from e

    return packets
