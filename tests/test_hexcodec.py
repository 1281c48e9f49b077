"""
Tests for the lenient hex decoder.
"""

import logging

from wristvault.toolchain.hexcodec import decode_hex, hex_to_binary


class TestDecodeHex:
    """Tests for decode_hex and hex_to_binary."""

    def test_plain(self):
        assert hex_to_binary("4142") == b"AB"

    def test_lowercase(self):
        assert hex_to_binary("a6c0") == bytes([0xA6, 0xC0])

    def test_surrounding_whitespace(self):
        result = decode_hex("  4142\n")
        assert result.data == b"AB"
        assert result.clean

    def test_resync_after_stray_character(self):
        """A bad window advances one character, not two."""
        result = decode_hex("41X4242")
        assert result.data == bytes([0x41, 0x42, 0x42])
        assert result.skipped == (2,)

    def test_resync_shifts_alignment(self):
        """After 'G2' is skipped, decoding continues at '24'."""
        assert hex_to_binary("41G242") == bytes([0x41, 0x24])

    def test_odd_trailing_character_dropped(self):
        assert hex_to_binary("414") == b"A"

    def test_never_fails(self):
        assert hex_to_binary("zzzz") == b""
        assert hex_to_binary("") == b""

    def test_skips_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wristvault.toolchain.hexcodec"):
            decode_hex("41X42")
        assert "malformed hex" in caplog.text

    def test_clean_decode_not_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wristvault.toolchain.hexcodec"):
            decode_hex("4142")
        assert caplog.text == ""
