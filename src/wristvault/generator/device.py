"""
Timex Datalink 150 Device Definitions
=====================================

Names the wristapp runtime services and memory cells that generated
programs refer to. Values of the runtime symbols (event codes, timer
modes, entry points) live in the device include file WRISTAPP.I and are
resolved by the assembler; this module only deals in their names.

Memory Model
------------
The watch has a flat, process-wide RAM map. A wristapp keeps its state
in a few fixed cells in the application area. Instead of scattering
those addresses through the generator, they are collected in a single
DeviceMemoryLayout that is passed explicitly to every stage needing it:

    FLAGBYTE        EQU     $61    ; General flags
    CURRENT_CODE    EQU     $62    ; Current code index (0-based)

Reference
---------
- Datalink wristapp programming notes: http://www.toebes.com/Datalink/
"""

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Memory Layout
# =============================================================================

@dataclass(frozen=True)
class DeviceMemoryLayout:
    """
    Fixed RAM cells owned by the wristapp.

    Attributes:
        flag_byte: Address of the general flags byte (FLAGBYTE)
        current_code: Address of the selected entry index (CURRENT_CODE)
    """

    flag_byte: int = 0x61
    current_code: int = 0x62

    def __post_init__(self) -> None:
        for name, address in (("flag_byte", self.flag_byte),
                              ("current_code", self.current_code)):
            if not 0 <= address <= 0xFF:
                raise ValueError(
                    f"{name} must be a direct-page address ($00-$FF), got {address:#x}"
                )
        if self.flag_byte == self.current_code:
            raise ValueError("flag_byte and current_code must not share an address")

    def equates(self) -> str:
        """Render the EQU block for the program header."""
        return "\n".join([
            f"FLAGBYTE        EQU     ${self.flag_byte:02X}    ; General flags",
            f"CURRENT_CODE    EQU     ${self.current_code:02X}    ; Current code index (0-based)",
        ])


DEFAULT_MEMORY_LAYOUT = DeviceMemoryLayout()


# =============================================================================
# Runtime Events and Timers
# =============================================================================

class Event(str, Enum):
    """
    Events delivered to a wristapp state handler.

    The value is the symbol name defined by WRISTAPP.I.
    """

    ENTER = "EVT_ENTER"      # App entered
    RESUME = "EVT_RESUME"    # Returned from a suspended state
    DNNEXT = "EVT_DNNEXT"    # NEXT button pressed
    DNPREV = "EVT_DNPREV"    # PREV button pressed
    SET = "EVT_SET"          # SET button held
    UPSET = "EVT_UPSET"      # SET button released
    MODE = "EVT_MODE"        # MODE button pressed
    TIMER2 = "EVT_TIMER2"    # Timer 2 tick
    USER0 = "EVT_USER0"      # Application-defined, posted by the app itself


class Timing(str, Enum):
    """Timer mode armed when a state table entry matches."""

    ONCE = "TIM_ONCE"
    TIM2_TIC = "TIM2_TIC"


# State table parameter meaning "leave the app"
EXIT_STATE = 0xFF


# =============================================================================
# Display Services
# =============================================================================

# Runtime entry points used for rendering; treated as opaque services.
CLEAR_DISPLAY = "CLEARALL"
PUT_TOP = "PUT6TOP"
PUT_MIDDLE = "PUT6MID"
PUT_BOTTOM = "PUTMSGBOT"
POST_EVENT = "POSTEVENT"

# Built-in 6-character system string shown on the top line of the list.
SYSTEM_HOLD_TO = "SYS6_HOLDTO"

# What the built-in system strings display; used by the program model only.
SYSTEM_STRINGS = {
    SYSTEM_HOLD_TO: "HOLDTO",
}
