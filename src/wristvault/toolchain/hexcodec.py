"""
Hex/Binary Transcoder
=====================

Converts the assembler's hexadecimal text into raw bytes.

The decoder is lenient. It scans two-character windows from
left to right; a window that is not a hex byte is skipped by advancing
one character (not two), so a single stray character costs at most the
byte it sits in and decoding resynchronizes on the next valid pair:

    "4142"     ->  41 42
    "41X4242"  ->  41 42 42    ("X4" skipped, decoding resumes at "42")
    "41G242"   ->  41 24       ("G2" skipped, then "24", trailing "2" dropped)

Decoding never fails; dropped characters are reported in the result and
logged as a warning.
"""

import logging
import string
from dataclasses import dataclass
from typing import Final

logger = logging.getLogger(__name__)

_HEX_DIGITS: Final[frozenset[str]] = frozenset(string.hexdigits)


@dataclass(frozen=True)
class DecodedHex:
    """
    Result of decoding hex text.

    Attributes:
        data: The decoded bytes
        skipped: Positions (after trimming) where a window was rejected
    """

    data: bytes
    skipped: tuple[int, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.skipped


def decode_hex(hex_text: str) -> DecodedHex:
    """
    Decode hex text, skipping windows that are not valid hex bytes.

    Args:
        hex_text: Assembler hex output; surrounding whitespace is ignored

    Returns:
        DecodedHex with the bytes and the skipped positions.

    Example:
        >>> decode_hex("41X4242").data
        b'ABB'
    """
    text = hex_text.strip()
    result = bytearray()
    skipped = []

    i = 0
    while i + 1 < len(text):
        pair = text[i:i + 2]
        if pair[0] in _HEX_DIGITS and pair[1] in _HEX_DIGITS:
            result.append(int(pair, 16))
            i += 2
        else:
            skipped.append(i)
            i += 1

    if skipped:
        logger.warning(
            "Dropped %d malformed hex window(s) while decoding (first at position %d)",
            len(skipped), skipped[0],
        )

    return DecodedHex(data=bytes(result), skipped=tuple(skipped))


def hex_to_binary(hex_text: str) -> bytes:
    """
    Convert hex text to bytes.

    Example:
        >>> hex_to_binary("4142")
        b'AB'
    """
    return decode_hex(hex_text).data
