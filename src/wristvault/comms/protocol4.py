"""
Datalink Protocol 4 Packager
============================

Builds the packets that load a wristapp into a Timex Datalink 150 over
the notebook adapter.

A transmission is a list of components, each producing one packet
group:

    ┌──────┐  ┌───────┐  ┌──────────────────────────────┐  ┌─────┐
    │ Sync │─▶│ Start │─▶│ WristApp                     │─▶│ End │
    └──────┘  └───────┘  │ clear, section, data..., end │  └─────┘
                         └──────────────────────────────┘

Packet Format
-------------
Except for the sync burst, every packet is CRC-wrapped:

    ┌────────┬──────────────┬─────────────┐
    │ Length │     Body     │ CRC-16/ARC  │
    │ 1 byte │   N bytes    │ 2 bytes, BE │
    └────────┴──────────────┴─────────────┘

    Length = N + 3; the CRC covers the length byte and the body.

Component Bodies
----------------
- Sync:     78, 55 x length, AA x 40 (raw, no CRC)
- Start:    20 00 00 04
- WristApp: 93 02 (clear), 90 02 <count> 01 (section),
            91 02 <index> <up to 32 bytes> per chunk, 92 02 (end)
- End:      21

References
----------
- timex_datalink_client, Protocol 4 components
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Final, Protocol, Sequence, Union

from wristvault.comms.crc import crc16_arc, crc_to_bytes
from wristvault.errors import TransmissionFailureError

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol Constants
# =============================================================================

PING_BYTE: Final[int] = 0x78
SYNC_1_BYTE: Final[int] = 0x55
SYNC_2_BYTE: Final[int] = 0xAA
SYNC_2_LENGTH: Final[int] = 40

CPACKET_START: Final[bytes] = bytes([0x20, 0x00, 0x00, 0x04])
CPACKET_SKIP: Final[bytes] = bytes([0x21])

CPACKET_CLEAR: Final[bytes] = bytes([0x93, 0x02])
CPACKET_SECT: Final[bytes] = bytes([0x90, 0x02])
CPACKET_DATA: Final[bytes] = bytes([0x91, 0x02])
CPACKET_END: Final[bytes] = bytes([0x92, 0x02])

# Payload bytes per data packet
CPACKET_DATA_LENGTH: Final[int] = 32

# Length byte + 2 CRC bytes
CRC_OVERHEAD: Final[int] = 3

# Count and index fields are single bytes
MAX_DATA_PACKETS: Final[int] = 255


def crc_packet(body: bytes) -> bytes:
    """
    Wrap a packet body with its length byte and CRC.

    Example:
        >>> packet = crc_packet(bytes([0x21]))
        >>> packet[0], len(packet)
        (4, 4)
    """
    framed = bytes([len(body) + CRC_OVERHEAD]) + body
    return framed + crc_to_bytes(crc16_arc(framed))


def paginate(header: bytes, data: bytes, length: int = CPACKET_DATA_LENGTH) -> list[bytes]:
    """Split data into `header + index + chunk` bodies, indexes from 1."""
    return [
        header + bytes([index]) + data[offset:offset + length]
        for index, offset in enumerate(range(0, len(data), length), start=1)
    ]


# =============================================================================
# Components
# =============================================================================

class ComponentKind(str, Enum):
    SYNC = "sync"
    START = "start"
    WRIST_APP = "wrist_app"
    END = "end"


@dataclass(frozen=True)
class Sync:
    """Synchronization preamble: ping, `length` 0x55 bytes, 40 0xAA bytes."""

    length: int = 300

    kind = ComponentKind.SYNC

    def __post_init__(self) -> None:
        if self.length <= 0:
            raise ValueError(f"Sync length must be positive, got {self.length}")

    def packets(self) -> list[bytes]:
        return [
            bytes([PING_BYTE])
            + bytes([SYNC_1_BYTE]) * self.length
            + bytes([SYNC_2_BYTE]) * SYNC_2_LENGTH
        ]


@dataclass(frozen=True)
class Start:
    """Start marker announcing protocol 4."""

    kind = ComponentKind.START

    def packets(self) -> list[bytes]:
        return [crc_packet(CPACKET_START)]


@dataclass(frozen=True)
class WristApp:
    """The wristapp binary, sent as a clear/section/data/end sequence."""

    wrist_app_data: bytes

    kind = ComponentKind.WRIST_APP

    def packets(self) -> list[bytes]:
        # Packet indexes and the section count are single bytes
        size = len(self.wrist_app_data)
        if size > CPACKET_DATA_LENGTH * MAX_DATA_PACKETS:
            needed = -(-size // CPACKET_DATA_LENGTH)
            raise TransmissionFailureError(
                f"wristapp too large: {size} bytes needs "
                f"{needed} data packets (maximum {MAX_DATA_PACKETS})",
                stage="packetize",
            )
        payloads = paginate(CPACKET_DATA, self.wrist_app_data)
        section = CPACKET_SECT + bytes([len(payloads), 1])
        bodies = [CPACKET_CLEAR, section] + payloads + [CPACKET_END]
        return [crc_packet(body) for body in bodies]


@dataclass(frozen=True)
class End:
    """End marker."""

    kind = ComponentKind.END

    def packets(self) -> list[bytes]:
        return [crc_packet(CPACKET_SKIP)]


Component = Union[Sync, Start, WristApp, End]


# =============================================================================
# Packet Groups
# =============================================================================

@dataclass(frozen=True)
class PacketGroup:
    """
    The packets produced by one component.

    Attributes:
        kind: Which component produced them
        packets: Packets in transmission order
    """

    kind: ComponentKind
    packets: tuple[bytes, ...]

    @property
    def size(self) -> int:
        """Total bytes in the group."""
        return sum(len(packet) for packet in self.packets)


PacketSet = tuple[PacketGroup, ...]


class Packager(Protocol):
    """Interface of protocol packager collaborators."""

    def packets(self, components: Sequence[Component]) -> PacketSet:
        ...


class Protocol4Packager:
    """
    Produces Protocol 4 packet groups, one per component, in order.

    Example:
        >>> packager = Protocol4Packager()
        >>> groups = packager.packets([Sync(100), Start(), WristApp(blob), End()])
        >>> [g.kind.value for g in groups]
        ['sync', 'start', 'wrist_app', 'end']
    """

    def packets(self, components: Sequence[Component]) -> PacketSet:
        groups = tuple(
            PacketGroup(component.kind, tuple(component.packets()))
            for component in components
        )
        for group in groups:
            logger.debug(
                "%s: %d packet(s), %d bytes", group.kind.value, len(group.packets), group.size
            )
        return groups
