"""
Template Engine
===============

Fills a fixed program skeleton with generated fragments.

Placeholders are upper-case names in braces, e.g. {SERVICE_TABLE_DATA}.
Rendering is strict:

- every placeholder in the skeleton must receive a fragment
- every fragment must correspond to a placeholder
- a placeholder may appear only once in the skeleton

Any violation raises TemplateError before text is produced, so a partial
program never reaches the assembler. Substitution is a single pass:
fragment text is inserted verbatim and never scanned for placeholders,
so user labels containing braces are safe.
"""

import re
from dataclasses import dataclass
from typing import Final

from wristvault.errors import TemplateError

PLACEHOLDER_PATTERN: Final[re.Pattern] = re.compile(r"\{([A-Z][A-Z0-9_]*)\}")


@dataclass(frozen=True)
class ProgramTemplate:
    """
    A named text skeleton with {PLACEHOLDER} slots.

    Attributes:
        name: Identifies the skeleton in error messages
        text: Skeleton text
    """

    name: str
    text: str

    def __post_init__(self) -> None:
        seen = set()
        for placeholder in self.placeholders:
            if placeholder in seen:
                raise TemplateError(
                    f"placeholder {{{placeholder}}} appears more than once "
                    f"in template '{self.name}'"
                )
            seen.add(placeholder)

    @property
    def placeholders(self) -> tuple[str, ...]:
        """Placeholder names in order of appearance."""
        return tuple(m.group(1) for m in PLACEHOLDER_PATTERN.finditer(self.text))

    def render(self, **fragments: object) -> str:
        """
        Substitute fragments for placeholders.

        Numeric fragments are written as decimal literals.

        Args:
            **fragments: One keyword per placeholder name

        Returns:
            The filled-in text.

        Raises:
            TemplateError: On a missing or unused fragment.
        """
        expected = set(self.placeholders)
        missing = sorted(expected - fragments.keys())
        unused = sorted(fragments.keys() - expected)

        if missing:
            raise TemplateError(
                f"template '{self.name}' left unreplaced: "
                + ", ".join(f"{{{name}}}" for name in missing)
            )
        if unused:
            raise TemplateError(
                f"template '{self.name}' has no placeholder for: " + ", ".join(unused)
            )

        values = {name: str(value) for name, value in fragments.items()}
        return PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(1)], self.text)


@dataclass(frozen=True)
class GeneratedProgram:
    """
    Fully substituted program text.

    Attributes:
        name: Source name handed to the assembler (e.g. "wristapp.asm")
        text: Program text
        entry_count: Number of recovery entries embedded in the program
    """

    name: str
    text: str
    entry_count: int

    def lines(self) -> list[str]:
        return self.text.splitlines()


# =============================================================================
# Wristapp Skeleton
# =============================================================================

WRISTAPP_SKELETON = ProgramTemplate(
    name="wristapp",
    text='''\
;Name: WristVault
;Version: VAULT
;Description: {DESCRIPTION}
;
            INCLUDE "{INCLUDE_FILE}"
;
{MEMORY_MAP}
;
START   EQU     *
;
L0110:  jmp     MAIN
L0113:  rts
        nop
        nop
L0116:  rts
        nop
        nop
L0119:  rts
        nop
        nop
L011c:  rts
        nop
        nop

L011f:  lda     STATETAB0,X
        rts

{STATE_DISPATCH}

; Fixed display strings
{LABEL_STRINGS}

; 8-character service names for the bottom line
{SERVICE_TABLE_DATA}

; 8-character recovery codes for the bottom line
{CODE_TABLE_DATA}

; 6-character entry fields for the top and middle lines
{RECOVERY_DATA}

{STATE_TABLES}

{STATE_HANDLERS}

MAIN:
        lda     #$c0
        sta     WRISTAPP_FLAGS
        clr     FLAGBYTE
        clr     CURRENT_CODE            ; Start with first entry
        rts

; Offsets of the 8-character strings, service row then code row per entry
{LOOKUP_TABLE_DATA}
''',
)
