"""
Tests for CRC-16/ARC and the Protocol 4 Packager
================================================

Test Categories
---------------
1. CRC Tests: known check values and packet verification
2. Component Tests: bytes produced by each protocol component
3. Packager Tests: group order and sizes
"""

import pytest

from wristvault.comms.crc import (
    CHECK_VALUE,
    CRC_TABLE,
    crc16_arc,
    crc_to_bytes,
    verify_packet_crc,
)
from wristvault.comms.protocol4 import (
    CPACKET_DATA_LENGTH,
    MAX_DATA_PACKETS,
    ComponentKind,
    End,
    Protocol4Packager,
    Start,
    Sync,
    WristApp,
    crc_packet,
    paginate,
)
from wristvault.errors import TransmissionFailureError


# =============================================================================
# CRC Tests
# =============================================================================

class TestCRC16ARC:
    """Tests for the CRC-16/ARC implementation."""

    def test_check_value(self):
        """Standard check value for '123456789'."""
        assert crc16_arc(b"123456789") == CHECK_VALUE == 0xBB3D

    def test_empty(self):
        assert crc16_arc(b"") == 0

    def test_table_size(self):
        assert len(CRC_TABLE) == 256
        assert CRC_TABLE[0] == 0

    def test_incremental(self):
        """CRC can be computed in pieces."""
        assert crc16_arc(b"6789", crc16_arc(b"12345")) == crc16_arc(b"123456789")

    def test_crc_to_bytes_big_endian(self):
        assert crc_to_bytes(0xBB3D) == bytes([0xBB, 0x3D])

    def test_verify_packet(self):
        packet = crc_packet(bytes([0x20, 0x00, 0x00, 0x04]))
        assert verify_packet_crc(packet)
        corrupted = bytes([packet[0] ^ 0x01]) + packet[1:]
        assert not verify_packet_crc(corrupted)

    def test_verify_short_packet(self):
        assert not verify_packet_crc(b"\x01\x02")


# =============================================================================
# Component Tests
# =============================================================================

class TestComponents:
    """Tests for the bytes each component produces."""

    def test_crc_packet_layout(self):
        packet = crc_packet(bytes([0x21]))
        assert packet[0] == 4
        assert packet[1] == 0x21
        assert packet[2:] == crc_to_bytes(crc16_arc(bytes([0x04, 0x21])))

    def test_sync(self):
        (packet,) = Sync(100).packets()
        assert packet[0] == 0x78
        assert packet[1:101] == bytes([0x55]) * 100
        assert packet[101:] == bytes([0xAA]) * 40

    def test_sync_length_must_be_positive(self):
        with pytest.raises(ValueError):
            Sync(0)

    def test_start(self):
        (packet,) = Start().packets()
        assert packet[:5] == bytes([0x07, 0x20, 0x00, 0x00, 0x04])
        assert verify_packet_crc(packet)

    def test_end(self):
        (packet,) = End().packets()
        assert packet[:2] == bytes([0x04, 0x21])
        assert verify_packet_crc(packet)

    def test_paginate_indexes_from_one(self):
        pages = paginate(b"\x91\x02", bytes(40))
        assert [page[2] for page in pages] == [1, 2]
        assert len(pages[0]) == 3 + CPACKET_DATA_LENGTH
        assert len(pages[1]) == 3 + 8

    def test_wrist_app_sequence(self):
        """Clear, section header, one packet per 32-byte chunk, end."""
        blob = bytes(range(40))
        packets = WristApp(blob).packets()
        bodies = [packet[1:-2] for packet in packets]

        assert bodies[0] == bytes([0x93, 0x02])
        assert bodies[1] == bytes([0x90, 0x02, 2, 1])
        assert bodies[2] == bytes([0x91, 0x02, 1]) + blob[:32]
        assert bodies[3] == bytes([0x91, 0x02, 2]) + blob[32:]
        assert bodies[4] == bytes([0x92, 0x02])
        assert all(verify_packet_crc(packet) for packet in packets)

    def test_wrist_app_payload_reassembles(self):
        blob = bytes(range(256)) * 3
        data = [p[1:-2] for p in WristApp(blob).packets() if p[1:3] == b"\x91\x02"]
        assert b"".join(body[3:] for body in data) == blob

    def test_wrist_app_too_large(self):
        blob = bytes(CPACKET_DATA_LENGTH * MAX_DATA_PACKETS + 1)
        with pytest.raises(TransmissionFailureError) as exc_info:
            WristApp(blob).packets()
        assert exc_info.value.stage == "packetize"
        assert "256 data packets" in exc_info.value.message

    def test_wrist_app_at_limit(self):
        """A blob filling every data packet still packetizes."""
        blob = bytes(CPACKET_DATA_LENGTH * MAX_DATA_PACKETS)
        packets = WristApp(blob).packets()
        assert len(packets) == MAX_DATA_PACKETS + 3
        assert packets[1][1:-2] == bytes([0x90, 0x02, MAX_DATA_PACKETS, 1])
        assert packets[-2][3] == MAX_DATA_PACKETS


# =============================================================================
# Packager Tests
# =============================================================================

class TestProtocol4Packager:
    """Tests for Protocol4Packager."""

    def test_one_group_per_component_in_order(self):
        groups = Protocol4Packager().packets([Sync(100), Start(), WristApp(b"\x01" * 10), End()])
        assert [group.kind for group in groups] == [
            ComponentKind.SYNC,
            ComponentKind.START,
            ComponentKind.WRIST_APP,
            ComponentKind.END,
        ]

    def test_group_sizes(self):
        groups = Protocol4Packager().packets([Sync(100), Start(), WristApp(b"\x01" * 10), End()])
        assert groups[0].size == 1 + 100 + 40
        assert groups[1].size == 7
        assert len(groups[2].packets) == 4
        assert groups[3].size == 4

    def test_packets_are_bytes(self):
        groups = Protocol4Packager().packets([Start()])
        assert isinstance(groups[0].packets, tuple)
        assert all(isinstance(p, bytes) for p in groups[0].packets)
