"""
CRC-16/ARC Implementation for Datalink Packets
==============================================

Datalink Protocol 4 packets end with a CRC-16/ARC checksum over the
length byte and packet body.

Technical Details
-----------------
- Polynomial: x^16 + x^15 + x^2 + 1 (0x8005, processed reflected as 0xA001)
- Initial value: 0x0000
- Input and output reflected, no final XOR
- Check value: CRC("123456789") = 0xBB3D

Usage
-----
    from wristvault.comms.crc import crc16_arc, crc_to_bytes

    body = bytes([0x05, 0x20, 0x00, 0x00, 0x04])
    packet = body + crc_to_bytes(crc16_arc(body))
"""

from typing import Final

CRC_INITIAL: Final[int] = 0x0000

# Reflected form of polynomial 0x8005
CRC_POLYNOMIAL: Final[int] = 0xA001

# Standard check value for b"123456789"
CHECK_VALUE: Final[int] = 0xBB3D


def _generate_crc_table() -> tuple[int, ...]:
    """
    Generate the 256-entry lookup table for the reflected algorithm.

    Returns:
        Tuple of 256 CRC values, one per byte value.
    """
    table = []
    for byte_val in range(256):
        crc = byte_val
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ CRC_POLYNOMIAL
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


# Pre-computed at import time
CRC_TABLE: Final[tuple[int, ...]] = _generate_crc_table()


def crc16_arc(data: bytes, initial: int = CRC_INITIAL) -> int:
    """
    Calculate the CRC-16/ARC checksum of `data`.

    Args:
        data: Input bytes
        initial: Starting CRC, for incremental calculation

    Returns:
        16-bit CRC value.

    Example:
        >>> hex(crc16_arc(b"123456789"))
        '0xbb3d'
    """
    crc = initial
    for byte in data:
        crc = (crc >> 8) ^ CRC_TABLE[(crc ^ byte) & 0xFF]
    return crc


def crc_to_bytes(crc: int) -> bytes:
    """
    Convert a CRC to the two bytes sent on the wire, high byte first.

    Example:
        >>> crc_to_bytes(0xBB3D)
        b'\\xbb='
    """
    return bytes([(crc >> 8) & 0xFF, crc & 0xFF])


def verify_packet_crc(packet_with_crc: bytes) -> bool:
    """
    Check a packet whose last two bytes are its CRC.

    Returns:
        True if the CRC matches, False otherwise (or if too short).
    """
    if len(packet_with_crc) < 3:
        return False
    return crc_to_bytes(crc16_arc(packet_with_crc[:-2])) == packet_with_crc[-2:]
