"""
WristVault Communication Module
===============================

This module delivers a compiled wristapp to a Timex Datalink 150 through
the Datalink notebook adapter.

Module Structure
----------------
- **crc**: CRC-16/ARC checksum used by Protocol 4 packets
- **protocol4**: Protocol 4 components and the default packager
- **serial**: Serial port utilities and the notebook adapter transport
- **transmit**: The orchestrator that ties packager and transport together

Quick Start
-----------
    from wristvault.comms import NotebookAdapter, Protocol4Packager, transmit

    transmit(
        blob,
        "/dev/ttyUSB0",
        packager=Protocol4Packager(),
        transport=NotebookAdapter(),
    )

The watch must be waiting in its "COMM MODE" receive screen before the
sync burst arrives.
"""

from wristvault.comms.crc import crc16_arc, crc_to_bytes, verify_packet_crc
from wristvault.comms.protocol4 import (
    Component,
    ComponentKind,
    End,
    Packager,
    PacketGroup,
    PacketSet,
    Protocol4Packager,
    Start,
    Sync,
    WristApp,
    crc_packet,
)
from wristvault.comms.serial import (
    NotebookAdapter,
    PortInfo,
    close_serial_port,
    format_port_list,
    list_serial_ports,
    open_serial_port,
)
from wristvault.comms.transmit import Transport, transmit

__all__ = [
    # CRC
    "crc16_arc",
    "crc_to_bytes",
    "verify_packet_crc",
    # Protocol 4
    "Component",
    "ComponentKind",
    "End",
    "Packager",
    "PacketGroup",
    "PacketSet",
    "Protocol4Packager",
    "Start",
    "Sync",
    "WristApp",
    "crc_packet",
    # Serial
    "NotebookAdapter",
    "PortInfo",
    "close_serial_port",
    "format_port_list",
    "list_serial_ports",
    "open_serial_port",
    # Orchestration
    "Transport",
    "transmit",
]
