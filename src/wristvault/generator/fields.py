"""
Field Formatter
===============

Normalizes labels into the fixed-width text slots stored in the
program's data section.

The watch reserves exactly `width` bytes for each string, so every field
is uppercased and then truncated or space-padded to that exact width:

    format_field("github", 8).text  ->  "GITHUB  "
    format_field("verylongname", 6).text  ->  "VERYLO"

Two widths exist: 6 characters for the top and middle display lines
(timex6 strings) and 8 characters for the bottom line (timex strings).
"""

from dataclasses import dataclass
from typing import Final

SHORT_WIDTH: Final[int] = 6
LONG_WIDTH: Final[int] = 8
VALID_WIDTHS: Final[tuple[int, ...]] = (SHORT_WIDTH, LONG_WIDTH)

PAD_CHAR: Final[str] = " "


@dataclass(frozen=True)
class FormattedField:
    """
    A label clamped to a fixed-width display slot.

    Attributes:
        raw: The label before formatting (kept for traceability comments)
        width: Slot width in characters (6 or 8)
    """

    raw: str
    width: int

    def __post_init__(self) -> None:
        if self.width not in VALID_WIDTHS:
            raise ValueError(f"Field width must be 6 or 8, got {self.width}")

    @property
    def text(self) -> str:
        """The uppercased label, exactly `width` characters long."""
        return self.raw.upper()[:self.width].ljust(self.width, PAD_CHAR)

    @property
    def truncated(self) -> bool:
        """True if part of the label does not fit in the slot."""
        return len(self.raw) > self.width


def format_field(label: str, width: int) -> FormattedField:
    """
    Format a label for a fixed-width slot.

    Args:
        label: Service name or code as entered
        width: Slot width, 6 or 8

    Returns:
        FormattedField whose text is exactly `width` characters.

    Raises:
        ValueError: If width is not 6 or 8.
    """
    return FormattedField(raw=label, width=width)
