"""
Serial Transport for the Datalink Notebook Adapter
==================================================

This module writes packet groups to a Timex Datalink notebook adapter
attached to a serial port. It handles:

- Port enumeration (for the `wristvault ports` command)
- Port configuration for the adapter
- Paced, byte-by-byte transmission

Serial Port Settings
--------------------
The notebook adapter uses:
- Baud Rate: 9600
- Data Bits: 8
- Parity: None
- Stop Bits: 1
- Flow Control: None

Pacing
------
The adapter relays each byte to the watch as it arrives and has no flow
control, so the host must pace itself: a short sleep after each byte
(byte_sleep, default 2.5 ms) and a longer one after each packet
(packet_sleep, default 250 ms).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Final, Optional, Sequence

import serial
import serial.tools.list_ports

from wristvault.comms.protocol4 import PacketGroup
from wristvault.errors import PortConnectionError, TransmissionFailureError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BAUD_RATE: Final[int] = 9600

# Default pacing, in seconds
BYTE_SLEEP_DEFAULT: Final[float] = 0.0025
PACKET_SLEEP_DEFAULT: Final[float] = 0.25

# Write timeout in seconds
DEFAULT_WRITE_TIMEOUT: Final[float] = 5.0

# USB Vendor IDs for common USB-serial adapters
USB_VENDOR_IDS: Final[dict[int, str]] = {
    0x0403: "FTDI",
    0x10C4: "Silicon Labs",
    0x067B: "Prolific",
    0x1A86: "QinHeng",
}


# =============================================================================
# Port Information
# =============================================================================

@dataclass(frozen=True)
class PortInfo:
    """
    Information about an available serial port.

    Attributes:
        device: System device path (e.g., '/dev/ttyUSB0', 'COM3')
        description: Human-readable description from the driver
        manufacturer: Device manufacturer (if available)
        vid: USB Vendor ID (None for non-USB ports)
        pid: USB Product ID (None for non-USB ports)
    """

    device: str
    description: str
    manufacturer: Optional[str]
    vid: Optional[int]
    pid: Optional[int]

    @property
    def is_usb(self) -> bool:
        return self.vid is not None

    @property
    def vendor_name(self) -> Optional[str]:
        if self.vid is not None:
            return USB_VENDOR_IDS.get(self.vid)
        return None

    def __str__(self) -> str:
        parts = [self.device]
        if self.description:
            parts.append(f"- {self.description}")
        if self.vendor_name:
            parts.append(f"({self.vendor_name})")
        return " ".join(parts)


def list_serial_ports() -> list[PortInfo]:
    """
    List all serial ports detected on the system.

    Returns:
        List of PortInfo objects describing available ports.
    """
    ports = []

    for port in serial.tools.list_ports.comports():
        ports.append(PortInfo(
            device=port.device,
            description=port.description or "",
            manufacturer=port.manufacturer,
            vid=port.vid,
            pid=port.pid,
        ))
        logger.debug(
            "Found port: %s (vid=%s, pid=%s)",
            port.device,
            f"{port.vid:04X}" if port.vid else "N/A",
            f"{port.pid:04X}" if port.pid else "N/A",
        )

    return ports


def format_port_list(ports: list[PortInfo], verbose: bool = False) -> str:
    """
    Format a list of ports for display, one port per line.

    Args:
        ports: Ports to format
        verbose: Include manufacturer and USB IDs
    """
    if not ports:
        return "No serial ports found."

    lines = []
    for port in ports:
        if verbose:
            line = f"  {port.device}"
            if port.description:
                line += f"\n    Description: {port.description}"
            if port.manufacturer:
                line += f"\n    Manufacturer: {port.manufacturer}"
            if port.vid is not None:
                line += f"\n    USB VID:PID: {port.vid:04X}:{port.pid or 0:04X}"
                if port.vendor_name:
                    line += f" ({port.vendor_name})"
            lines.append(line)
        else:
            lines.append(f"  {port}")

    return "\n".join(lines)


# =============================================================================
# Port Configuration
# =============================================================================

def open_serial_port(
    device: str,
    baud_rate: int = DEFAULT_BAUD_RATE,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
) -> serial.Serial:
    """
    Open and configure a serial port for the notebook adapter (8N1, no
    flow control).

    Args:
        device: Serial port device path (e.g., '/dev/ttyUSB0', 'COM3')
        baud_rate: Baud rate, 9600 for the notebook adapter
        write_timeout: Seconds before a blocked write fails

    Returns:
        Configured and opened serial.Serial object. The caller closes it.

    Raises:
        PortConnectionError: If the port cannot be opened.
    """
    logger.info("Opening serial port: %s at %d baud", device, baud_rate)

    try:
        port = serial.Serial(
            port=device,
            baudrate=baud_rate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            write_timeout=write_timeout,
            xonxoff=False,
            rtscts=False,
            dsrdtr=False,
        )
        port.reset_output_buffer()
        return port

    except serial.SerialException as e:
        error_msg = str(e)

        if "Permission denied" in error_msg:
            raise PortConnectionError(
                f"Permission denied accessing {device}",
                hint="add your user to the 'dialout' group: sudo usermod -a -G dialout $USER",
            )
        elif "No such file" in error_msg or "not found" in error_msg.lower():
            raise PortConnectionError(
                f"Serial port not found: {device}",
                hint="use 'wristvault ports' to list available ports",
            )
        elif "busy" in error_msg.lower() or "in use" in error_msg.lower():
            raise PortConnectionError(
                f"Serial port {device} is busy",
                hint="close any other programs using the port",
            )
        else:
            raise PortConnectionError(f"Cannot open {device}: {e}")


def close_serial_port(port: Optional[serial.Serial]) -> None:
    """Close a serial port, flushing pending output and logging close errors."""
    if port is None:
        return

    try:
        if port.is_open:
            port.flush()
            port.close()
            logger.debug("Serial port closed")
    except (serial.SerialException, OSError) as e:
        logger.warning("Error closing serial port: %s", e)


# =============================================================================
# Notebook Adapter
# =============================================================================

class NotebookAdapter:
    """
    Transport that writes packet groups to a notebook adapter.

    Example:
        >>> adapter = NotebookAdapter(verbose=True)
        >>> adapter.write("/dev/ttyUSB0", packet_groups)

    Attributes:
        byte_sleep: Seconds to wait after each byte
        packet_sleep: Seconds to wait after each packet
        verbose: Log every packet in hex at INFO level
    """

    def __init__(
        self,
        byte_sleep: Optional[float] = None,
        packet_sleep: Optional[float] = None,
        verbose: bool = False,
        baud_rate: int = DEFAULT_BAUD_RATE,
        port_factory: Optional[Callable[[str], serial.Serial]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.byte_sleep = BYTE_SLEEP_DEFAULT if byte_sleep is None else byte_sleep
        self.packet_sleep = PACKET_SLEEP_DEFAULT if packet_sleep is None else packet_sleep
        self.verbose = verbose
        self.baud_rate = baud_rate
        self._port_factory = port_factory or (
            lambda device: open_serial_port(device, baud_rate=self.baud_rate)
        )
        self._sleep = sleep

    def write(self, destination: str, packet_groups: Sequence[PacketGroup]) -> None:
        """
        Write every packet of every group to the adapter, in order.

        Args:
            destination: Serial device path
            packet_groups: Packet groups from the packager

        Raises:
            PortConnectionError: If the port cannot be opened.
            TransmissionFailureError: If a write fails.
        """
        total = sum(len(group.packets) for group in packet_groups)
        port = self._port_factory(destination)

        try:
            sent = 0
            for group in packet_groups:
                for packet in group.packets:
                    self._write_packet(port, packet)
                    sent += 1
                    logger.debug("Sent %s packet %d/%d", group.kind.value, sent, total)
        except (serial.SerialException, OSError) as e:
            raise TransmissionFailureError(
                f"write to {destination} failed after {sent} of {total} packets: {e}"
            ) from e
        finally:
            close_serial_port(port)

        logger.info("Transmitted %d packets to %s", total, destination)

    def _write_packet(self, port: serial.Serial, packet: bytes) -> None:
        if self.verbose:
            logger.info(" ".join(f"{byte:02X}" for byte in packet))

        for byte in packet:
            port.write(bytes([byte]))
            self._sleep(self.byte_sleep)

        self._sleep(self.packet_sleep)
