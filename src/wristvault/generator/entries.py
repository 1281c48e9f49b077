"""
Recovery Entry Parser
=====================

Splits the user's recovery-code string into an ordered sequence of
RecoveryEntry values.

Input Format
------------
    github:abc123,google:def456,bank:9F3K-22LQ

Segments are separated by commas; each segment is split on its *first*
colon, so codes may themselves contain colons:

    "vpn:a:b:c"  ->  RecoveryEntry(service="vpn", code="a:b:c")

Whitespace around segments, services and codes is stripped, and blank
segments (for example from a trailing comma) are ignored.

Malformed Segments
------------------
A segment without a colon, or a label containing a character that cannot
be placed in a quoted assembler string, is malformed. What happens next
is a policy decision made by the caller:

- InputPolicy.LENIENT: the segment is logged and dropped
- InputPolicy.STRICT: MalformedInputError is raised

Entry order is preserved; it becomes the on-device index.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from wristvault.errors import MalformedInputError

logger = logging.getLogger(__name__)


class InputPolicy(str, Enum):
    """How the parser treats malformed segments."""

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(frozen=True)
class RecoveryEntry:
    """
    One service/code pair.

    Attributes:
        service: Service name as typed by the user (e.g. "github")
        code: Recovery code as typed by the user (e.g. "abc123")
    """

    service: str
    code: str


def _label_problem(label: str) -> Optional[str]:
    """Return why a label cannot be stored in a display string, or None."""
    for char in label:
        if char == '"':
            return "double quotes cannot be stored on the watch"
        if not (" " <= char <= "~"):
            return f"unsupported character {char!r}"
    return None


def parse_segment(segment: str) -> RecoveryEntry:
    """
    Parse a single service:code segment.

    Args:
        segment: One comma-separated piece of the input

    Returns:
        The parsed entry.

    Raises:
        MalformedInputError: If the segment has no colon or holds a
            character that cannot be displayed.
    """
    service, separator, code = segment.partition(":")
    if not separator:
        raise MalformedInputError(segment, "missing ':' between service and code")

    service = service.strip()
    code = code.strip()

    for label in (service, code):
        problem = _label_problem(label)
        if problem:
            raise MalformedInputError(segment, problem)

    return RecoveryEntry(service=service, code=code)


def parse_recovery_codes(
    text: str,
    policy: InputPolicy = InputPolicy.LENIENT,
) -> tuple[RecoveryEntry, ...]:
    """
    Parse the comma-separated recovery-code string.

    Args:
        text: Raw user input, e.g. "github:abc123,google:def456"
        policy: What to do with malformed segments

    Returns:
        Entries in input order. Empty input gives an empty tuple; the
        generator decides whether that is acceptable.

    Raises:
        MalformedInputError: Under InputPolicy.STRICT, for the first
            malformed segment.

    Example:
        >>> parse_recovery_codes("github:abc123,noColonHere,google:def456")
        (RecoveryEntry(service='github', code='abc123'),
         RecoveryEntry(service='google', code='def456'))
    """
    entries = []

    for position, raw_segment in enumerate(text.split(",")):
        segment = raw_segment.strip()
        if not segment:
            continue

        try:
            entries.append(parse_segment(segment))
        except MalformedInputError as e:
            if policy is InputPolicy.STRICT:
                raise
            logger.warning(
                "Skipping segment %d (%r): %s", position + 1, segment, e.reason
            )

    logger.debug("Parsed %d recovery entries", len(entries))
    return tuple(entries)
