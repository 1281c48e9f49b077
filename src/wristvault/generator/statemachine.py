"""
State Machine Synthesizer
=========================

Builds the event-driven automaton that runs on the watch, and renders
it as state tables plus handler routines.

Wristapp Runtime Model
----------------------
The watch runtime owns the event loop. An app supplies one state table
per state; each table row names an event, the timer mode to arm, and the
state to continue in ($FF leaves the app):

    STATETAB0:
            db      0
            db      EVT_DNNEXT,TIM_ONCE,0     ; Next entry
            db      EVT_SET,TIM2_TIC,1        ; Hold SET to reveal code
            db      EVT_END

When an event matches a row, the current state's handler runs with the
event in BTNSTATE, and the runtime then continues in the state named by
the row. Handlers never jump between states. The only way for one state
to signal another is to post an event (POSTEVENT), which the runtime
delivers after the current event has been fully processed.

Program Variants
----------------
NAVIGATOR (default): two states.

    State0 (list)    ENTER/RESUME/USER0  show service name
                     DNNEXT              index = (index + 1) mod N
                     DNPREV              index = (index - 1 + N) mod N
                     SET (held)          -> State1
                     MODE                leave the app
    State1 (reveal)  TIMER2 tick         show code
                     UPSET               post USER0, -> State0

BASIC: one state showing the 6-character service and code directly,
with the same NEXT/PREV navigation and no reveal step.

Wraparound constants N and N-1 are decimal immediates, so a program is
specific to its entry count. N must be 1..MAX_ENTRIES: the doubled index
has to fit the 8-bit index register. String offsets are single bytes as
well, which limits N much further; build_program enforces that limit
from the laid-out data.

The WristAppModel at the end of this module executes a synthesized
machine in Python with an explicit event queue, mirroring the runtime's
one-event-at-a-time delivery.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Optional, Union

from wristvault.errors import EmptyEntrySetError, GenerationError
from wristvault.generator.device import (
    CLEAR_DISPLAY,
    DEFAULT_MEMORY_LAYOUT,
    EXIT_STATE,
    POST_EVENT,
    PUT_BOTTOM,
    PUT_MIDDLE,
    PUT_TOP,
    SYSTEM_HOLD_TO,
    SYSTEM_STRINGS,
    DeviceMemoryLayout,
    Event,
    Timing,
)
from wristvault.generator.fields import LONG_WIDTH, SHORT_WIDTH, format_field
from wristvault.generator.tables import (
    LOOKUP_TABLE,
    ORIGIN_SYMBOL,
    ROWS_PER_ENTRY,
    SHORT_TABLE,
    StringSlot,
    TableLayout,
)
from wristvault.generator.template import ProgramTemplate

logger = logging.getLogger(__name__)

# Largest entry count whose doubled index still fits in 8 bits
MAX_ENTRIES: Final[int] = 256 // ROWS_PER_ENTRY

# Load address of the program and of the per-state handler vector
PROGRAM_ORIGIN: Final[int] = 0x0110
DISPATCH_ADDRESS: Final[int] = 0x0123

# jmp (3 bytes) plus the table offset byte
DISPATCH_ENTRY_BYTES: Final[int] = 4


class ProgramVariant(str, Enum):
    """Which on-device program to generate."""

    NAVIGATOR = "navigator"
    BASIC = "basic"


class Action(str, Enum):
    """
    Handler routines. The value is the routine's label in the program.
    """

    SHOW_SERVICE = "SHOW_SERVICE"
    SHOW_CODE = "SHOW_CODE"
    SHOW_ENTRY = "SHOW_ENTRY"
    NEXT_ENTRY = "NEXT_ENTRY"
    PREV_ENTRY = "PREV_ENTRY"
    RETURN_TO_LIST = "RETURN_TO_LIST"


# =============================================================================
# State Descriptors
# =============================================================================

@dataclass(frozen=True)
class EventBinding:
    """
    One state-table row plus the handler routine it triggers.

    Attributes:
        event: Event matched by the row
        timing: Timer mode armed when it matches
        parameter: State to continue in, or EXIT_STATE
        action: Routine the handler runs (None: the handler ignores it)
        comment: Shown next to the row in the program text
    """

    event: Event
    timing: Timing
    parameter: int
    action: Optional[Action] = None
    comment: str = ""

    def render(self) -> str:
        parameter = "$FF" if self.parameter == EXIT_STATE else str(self.parameter)
        row = f"        db      {self.event.value},{self.timing.value},{parameter}"
        if self.comment:
            row = f"{row:<42}; {self.comment}"
        return row


@dataclass(frozen=True)
class StateDescriptor:
    """A state: its id and its ordered event table."""

    id: int
    events: tuple[EventBinding, ...]

    @property
    def table_label(self) -> str:
        return f"STATETAB{self.id}"

    @property
    def handler_label(self) -> str:
        return f"HANDLE_STATE{self.id}"

    def binding_for(self, event: Event) -> Optional[EventBinding]:
        """First table row matching `event`, as the runtime scans it."""
        for binding in self.events:
            if binding.event is event:
                return binding
        return None

    def render_table(self) -> str:
        lines = [f"{self.table_label}:", f"        db      {self.id}"]
        lines.extend(binding.render() for binding in self.events)
        lines.append("        db      EVT_END")
        return "\n".join(lines)


# =============================================================================
# Screens
# =============================================================================

@dataclass(frozen=True)
class SystemText:
    """A 6-character string built into the watch ROM."""

    symbol: str


@dataclass(frozen=True)
class LabelText:
    """A constant string stored in the program."""

    slot: StringSlot


@dataclass(frozen=True)
class TableText:
    """A field fetched through a lookup table at 2 * CURRENT_CODE + row."""

    table: str
    row: int


Line = Union[SystemText, LabelText, TableText]


@dataclass(frozen=True)
class Screen:
    """
    A three-line display routine.

    Top and middle are 6-character lines, bottom is the 8-character line.
    """

    action: Action
    top: Line
    middle: Line
    bottom: Line
    comment: str = ""

    def render(self) -> str:
        lines = [f"{self.action.value}:"]
        if self.comment:
            lines.append(f"        ; {self.comment}")
        lines.append(f"        jsr     {CLEAR_DISPLAY}")
        lines.extend(_render_line(self.top, f"jsr     {PUT_TOP}"))
        lines.extend(_render_line(self.middle, f"jsr     {PUT_MIDDLE}"))
        lines.extend(_render_line(self.bottom, f"jmp     {PUT_BOTTOM}"))
        return "\n".join(lines)


def _render_line(line: Line, call: str) -> list[str]:
    """Load the string offset for one line into A, then call the service."""
    if isinstance(line, SystemText):
        load = [f"        lda     #{line.symbol}"]
    elif isinstance(line, LabelText):
        load = [f"        lda     #{line.slot.symbol}-{ORIGIN_SYMBOL}"]
    else:
        operand = line.table if line.row == 0 else f"{line.table}+{line.row}"
        load = [
            "        lda     CURRENT_CODE",
            f"        lsla                    ; *{ROWS_PER_ENTRY} (service row + code row)",
            "        tax",
            f"        lda     {operand},X",
        ]
    return load + [f"        {call}"]


# =============================================================================
# Handler Templates
# =============================================================================

NAVIGATION_TEMPLATE = ProgramTemplate(
    name="navigation",
    text='''\
NEXT_ENTRY:
        lda     CURRENT_CODE
        inca
        cmp     #{NUM_CODES}
        blo     SET_CURRENT_ENTRY
        clra                    ; Wrap to first entry
        bra     SET_CURRENT_ENTRY

PREV_ENTRY:
        lda     CURRENT_CODE
        deca
        bpl     SET_CURRENT_ENTRY
        lda     #{NUM_CODES_MINUS_1}    ; Wrap to last entry

SET_CURRENT_ENTRY:
        sta     CURRENT_CODE
        ; Fall through to {LIST_SCREEN}''',
)

RETURN_ROUTINE = f'''\
{Action.RETURN_TO_LIST.value}:
        lda     #{Event.USER0.value}
        jmp     {POST_EVENT}'''


# =============================================================================
# State Machine
# =============================================================================

@dataclass(frozen=True)
class StateMachine:
    """
    A synthesized wristapp automaton.

    Attributes:
        variant: Program variant it was built for
        entry_count: N, the wraparound modulus
        memory: Device memory layout the handlers address
        states: State descriptors, State0 first
        screens: Display routines
        labels: Constant strings the screens use
        list_screen: Screen that NEXT/PREV fall through to
    """

    variant: ProgramVariant
    entry_count: int
    memory: DeviceMemoryLayout
    states: tuple[StateDescriptor, ...]
    screens: tuple[Screen, ...]
    labels: tuple[StringSlot, ...]
    list_screen: Action

    def _reads_table(self, table: str) -> bool:
        return any(
            isinstance(line, TableText) and line.table == table
            for screen in self.screens
            for line in (screen.top, screen.middle, screen.bottom)
        )

    @property
    def uses_long_fields(self) -> bool:
        return self._reads_table(LOOKUP_TABLE)

    @property
    def uses_short_fields(self) -> bool:
        return self._reads_table(SHORT_TABLE)

    @property
    def data_offset(self) -> int:
        """
        Offset from START of the first byte after the fixed labels.

        The entry strings are laid out from here on.
        """
        vector = DISPATCH_ADDRESS - PROGRAM_ORIGIN + DISPATCH_ENTRY_BYTES * len(self.states)
        return vector + sum(slot.field.width for slot in self.labels)

    def state(self, state_id: int) -> StateDescriptor:
        for descriptor in self.states:
            if descriptor.id == state_id:
                return descriptor
        raise KeyError(state_id)

    def screen(self, action: Action) -> Screen:
        for screen in self.screens:
            if screen.action is action:
                return screen
        raise KeyError(action)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render_dispatch(self) -> str:
        """Per-state handler vector: jmp handler, then table offset."""
        lines = []
        for descriptor in self.states:
            address = DISPATCH_ADDRESS + DISPATCH_ENTRY_BYTES * descriptor.id
            lines.append(f"L{address:04x}:  jmp     {descriptor.handler_label}")
            lines.append(
                f"        db      {descriptor.table_label}-{self.states[0].table_label}"
            )
        return "\n".join(lines)

    def render_state_tables(self) -> str:
        return "\n\n".join(descriptor.render_table() for descriptor in self.states)

    def render_labels(self) -> str:
        return "\n".join(slot.render() for slot in self.labels)

    def render_handlers(self) -> str:
        """
        Render every state handler followed by the routines it uses.

        Each routine is emitted once, after the first state that needs
        it. The navigation block falls through into the list screen, so
        the list screen always follows it directly.
        """
        blocks = []
        emitted: set[Action] = set()

        for descriptor in self.states:
            blocks.append(self._render_dispatcher(descriptor))

            actions = [b.action for b in descriptor.events if b.action is not None]

            if {Action.NEXT_ENTRY, Action.PREV_ENTRY} & set(actions) and \
                    Action.NEXT_ENTRY not in emitted:
                blocks.append(NAVIGATION_TEMPLATE.render(
                    NUM_CODES=self.entry_count,
                    NUM_CODES_MINUS_1=self.entry_count - 1,
                    LIST_SCREEN=self.list_screen.value,
                ))
                blocks.append(self.screen(self.list_screen).render())
                emitted.update((Action.NEXT_ENTRY, Action.PREV_ENTRY, self.list_screen))

            for action in actions:
                if action in emitted:
                    continue
                if action is Action.RETURN_TO_LIST:
                    blocks.append(RETURN_ROUTINE)
                else:
                    blocks.append(self.screen(action).render())
                emitted.add(action)

        return "\n\n".join(blocks)

    def _render_dispatcher(self, descriptor: StateDescriptor) -> str:
        lines = [
            f"{descriptor.handler_label}:",
            "        bset    1,APP_FLAGS",
            "        lda     BTNSTATE",
        ]
        for binding in descriptor.events:
            if binding.action is None:
                continue
            lines.append(f"        cmp     #{binding.event.value}")
            lines.append(f"        beq     {binding.action.value}")
        lines.append("        rts")
        return "\n".join(lines)


# =============================================================================
# Synthesis
# =============================================================================

def _label(symbol: str, text: str, width: int = SHORT_WIDTH) -> StringSlot:
    return StringSlot(symbol, format_field(text, width))


def _navigator(entry_count: int, memory: DeviceMemoryLayout) -> StateMachine:
    reveal = _label("S6_REVEAL", "REVEAL")
    show = _label("S6_SHOW", "SHOW")
    code = _label("S6_CODE", "CODE")

    list_state = StateDescriptor(0, (
        EventBinding(Event.ENTER, Timing.ONCE, 0, Action.SHOW_SERVICE),
        EventBinding(Event.RESUME, Timing.ONCE, 0, Action.SHOW_SERVICE),
        EventBinding(Event.DNNEXT, Timing.ONCE, 0, Action.NEXT_ENTRY, "Next service"),
        EventBinding(Event.DNPREV, Timing.ONCE, 0, Action.PREV_ENTRY, "Previous service"),
        EventBinding(Event.SET, Timing.TIM2_TIC, 1, None, "Hold SET to reveal code"),
        EventBinding(Event.MODE, Timing.ONCE, EXIT_STATE),
        EventBinding(Event.USER0, Timing.ONCE, 0, Action.SHOW_SERVICE,
                     "Return from code display"),
    ))
    reveal_state = StateDescriptor(1, (
        EventBinding(Event.UPSET, Timing.ONCE, 0, Action.RETURN_TO_LIST,
                     "Released SET button"),
        EventBinding(Event.TIMER2, Timing.TIM2_TIC, 1, Action.SHOW_CODE,
                     "Continue showing code while held"),
    ))

    screens = (
        Screen(Action.SHOW_SERVICE,
               top=SystemText(SYSTEM_HOLD_TO),
               middle=LabelText(reveal),
               bottom=TableText(LOOKUP_TABLE, 0),
               comment="HOLD TO / REVEAL / service name"),
        Screen(Action.SHOW_CODE,
               top=LabelText(show),
               middle=LabelText(code),
               bottom=TableText(LOOKUP_TABLE, 1),
               comment="SHOW / CODE / recovery code"),
    )

    return StateMachine(
        variant=ProgramVariant.NAVIGATOR,
        entry_count=entry_count,
        memory=memory,
        states=(list_state, reveal_state),
        screens=screens,
        labels=(reveal, show, code),
        list_screen=Action.SHOW_SERVICE,
    )


def _basic(entry_count: int, memory: DeviceMemoryLayout) -> StateMachine:
    banner = _label("S8_VAULT", "VAULT", LONG_WIDTH)

    only_state = StateDescriptor(0, (
        EventBinding(Event.ENTER, Timing.ONCE, 0, Action.SHOW_ENTRY),
        EventBinding(Event.RESUME, Timing.ONCE, 0, Action.SHOW_ENTRY),
        EventBinding(Event.DNNEXT, Timing.ONCE, 0, Action.NEXT_ENTRY, "Next entry"),
        EventBinding(Event.DNPREV, Timing.ONCE, 0, Action.PREV_ENTRY, "Previous entry"),
        EventBinding(Event.MODE, Timing.ONCE, EXIT_STATE),
    ))

    screens = (
        Screen(Action.SHOW_ENTRY,
               top=TableText(SHORT_TABLE, 0),
               middle=TableText(SHORT_TABLE, 1),
               bottom=LabelText(banner),
               comment="service / code / VAULT"),
    )

    return StateMachine(
        variant=ProgramVariant.BASIC,
        entry_count=entry_count,
        memory=memory,
        states=(only_state,),
        screens=screens,
        labels=(banner,),
        list_screen=Action.SHOW_ENTRY,
    )


_BUILDERS = {
    ProgramVariant.NAVIGATOR: _navigator,
    ProgramVariant.BASIC: _basic,
}


def synthesize_state_machine(
    entry_count: int,
    variant: ProgramVariant = ProgramVariant.NAVIGATOR,
    memory: DeviceMemoryLayout = DEFAULT_MEMORY_LAYOUT,
) -> StateMachine:
    """
    Build the automaton for `entry_count` entries.

    Args:
        entry_count: Number of recovery entries (the wraparound modulus)
        variant: Program variant
        memory: Device memory layout

    Returns:
        The synthesized StateMachine.

    Raises:
        EmptyEntrySetError: If entry_count is 0.
        GenerationError: If entry_count exceeds MAX_ENTRIES.
    """
    if entry_count <= 0:
        raise EmptyEntrySetError()
    if entry_count > MAX_ENTRIES:
        raise GenerationError(
            f"too many recovery codes: {entry_count} (maximum {MAX_ENTRIES})"
        )

    machine = _BUILDERS[ProgramVariant(variant)](entry_count, memory)
    logger.debug(
        "Synthesized %s state machine: %d state(s), modulus %d",
        machine.variant.value, len(machine.states), entry_count,
    )
    return machine


# =============================================================================
# Program Model
# =============================================================================

@dataclass(frozen=True)
class DisplayFrame:
    """What the three display lines show after a screen routine."""

    top: str
    middle: str
    bottom: str


@dataclass
class WristAppModel:
    """
    Executes a StateMachine against its tables, the way the watch would.

    Events are queued and delivered one at a time; an event posted by a
    handler is delivered only after the current event is fully handled.
    CURRENT_CODE arithmetic is 8-bit, as on the device.

    Example:
        >>> model = WristAppModel(machine, layout)
        >>> model.press(Event.ENTER)
        >>> model.press(Event.DNNEXT)
        >>> model.current_code
        1
    """

    machine: StateMachine
    layout: TableLayout
    state: int = 0
    current_code: int = 0
    exited: bool = False
    frames: list[DisplayFrame] = field(default_factory=list)
    queue: deque = field(default_factory=deque)

    def __post_init__(self) -> None:
        if self.layout.entry_count != self.machine.entry_count:
            raise GenerationError(
                f"state machine built for {self.machine.entry_count} entries, "
                f"tables hold {self.layout.entry_count}"
            )

    @property
    def display(self) -> Optional[DisplayFrame]:
        return self.frames[-1] if self.frames else None

    def post(self, event: Event) -> None:
        """Queue an event for delivery."""
        self.queue.append(event)

    def run(self) -> None:
        """Deliver queued events until the queue is empty or the app exits."""
        while self.queue and not self.exited:
            self.dispatch(self.queue.popleft())

    def press(self, event: Event) -> None:
        """Post an event and process everything it causes."""
        self.post(event)
        self.run()

    def dispatch(self, event: Event) -> None:
        """Handle one event in the current state."""
        descriptor = self.machine.state(self.state)
        binding = descriptor.binding_for(event)
        if binding is None:
            logger.debug("State %d ignores %s", self.state, event.value)
            return

        if binding.action is not None:
            self._perform(binding.action)

        if binding.parameter == EXIT_STATE:
            self.exited = True
        else:
            self.state = binding.parameter

    def _perform(self, action: Action) -> None:
        if action is Action.NEXT_ENTRY:
            value = (self.current_code + 1) & 0xFF
            if value >= self.machine.entry_count:
                value = 0
            self.current_code = value
            self._show(self.machine.list_screen)
        elif action is Action.PREV_ENTRY:
            value = (self.current_code - 1) & 0xFF
            if value & 0x80:
                value = self.machine.entry_count - 1
            self.current_code = value
            self._show(self.machine.list_screen)
        elif action is Action.RETURN_TO_LIST:
            self.post(Event.USER0)
        else:
            self._show(action)

    def _show(self, action: Action) -> None:
        screen = self.machine.screen(action)
        self.frames.append(DisplayFrame(
            top=self._text(screen.top),
            middle=self._text(screen.middle),
            bottom=self._text(screen.bottom),
        ))

    def _text(self, line: Line) -> str:
        if isinstance(line, SystemText):
            return SYSTEM_STRINGS[line.symbol]
        if isinstance(line, LabelText):
            return line.slot.field.text
        rows = self.layout.lookup_rows if line.table == LOOKUP_TABLE else self.layout.short_rows
        row = rows[self.current_code * ROWS_PER_ENTRY + line.row]
        return self.layout.slot(row.symbol_name).field.text
