"""Results of reading a line, editor events and raw terminal input events."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Optional, Tuple

from lineward.commands import EditCommand


class SignalKind(enum.Enum):
    """Ways in which reading a line can end."""

    SUCCESS = "Success"
    CTRL_C = "CtrlC"
    CTRL_D = "CtrlD"


@dataclass(frozen=True)
class Signal:
    """The outcome of reading a line.

    ``buffer`` holds the entered text for ``SUCCESS`` and is ``None``
    otherwise. ``CTRL_C`` aborts the current entry, ``CTRL_D`` ends the
    session.
    """

    kind: SignalKind
    buffer: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is SignalKind.SUCCESS:
            if not isinstance(self.buffer, str):
                raise ValueError("a successful entry needs its buffer")
        elif self.buffer is not None:
            raise ValueError(f"{self.kind.value} carries no buffer")


class EventKind(enum.Enum):
    """The actions the editor supports."""

    NONE = "None"
    HISTORY_HINT_COMPLETE = "HistoryHintComplete"
    HISTORY_HINT_WORD_COMPLETE = "HistoryHintWordComplete"
    CTRL_D = "CtrlD"
    CTRL_C = "CtrlC"
    CLEAR_SCREEN = "ClearScreen"
    CLEAR_SCROLLBACK = "ClearScrollback"
    ENTER = "Enter"
    SUBMIT = "Submit"
    SUBMIT_OR_NEWLINE = "SubmitOrNewline"
    ESC = "Esc"
    MOUSE = "Mouse"
    RESIZE = "Resize"
    EDIT = "Edit"
    REPAINT = "Repaint"
    PREVIOUS_HISTORY = "PreviousHistory"
    UP = "Up"
    DOWN = "Down"
    RIGHT = "Right"
    LEFT = "Left"
    NEXT_HISTORY = "NextHistory"
    SEARCH_HISTORY = "SearchHistory"
    MULTIPLE = "Multiple"
    UNTIL_FOUND = "UntilFound"
    MENU = "Menu"
    MENU_NEXT = "MenuNext"
    MENU_PREVIOUS = "MenuPrevious"
    MENU_UP = "MenuUp"
    MENU_DOWN = "MenuDown"
    MENU_LEFT = "MenuLeft"
    MENU_RIGHT = "MenuRight"
    MENU_PAGE_NEXT = "MenuPageNext"
    MENU_PAGE_PREVIOUS = "MenuPagePrevious"
    EXECUTE_HOST_COMMAND = "ExecuteHostCommand"
    OPEN_EDITOR = "OpenEditor"


_DISPLAY = {
    EventKind.RESIZE: "Resize <int> <int>",
    EventKind.EDIT: "Edit: <EditCommand> or Edit: <EditCommand> value: <string>",
    EventKind.MULTIPLE: "Multiple[ { ReedLineEvents, } ]",
    EventKind.UNTIL_FOUND: "UntilFound [ { ReedLineEvents, } ]",
    EventKind.MENU: "Menu Name: <string>",
}

_NESTED = frozenset({EventKind.MULTIPLE, EventKind.UNTIL_FOUND})
_U16_MAX = 0xFFFF


def _check_u16(name: str, value: Optional[int]) -> None:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Resize needs an integer {name}")
    if not 0 <= value <= _U16_MAX:
        raise ValueError(f"Resize {name} out of range: {value}")


@dataclass(frozen=True)
class ReedlineEvent:
    """An editor action with its arguments.

    ``width``/``height`` belong to ``RESIZE``, ``commands`` to ``EDIT``,
    ``events`` to ``MULTIPLE`` and ``UNTIL_FOUND``, ``name`` to ``MENU``
    and ``command`` to ``EXECUTE_HOST_COMMAND``.
    """

    kind: EventKind
    width: Optional[int] = None
    height: Optional[int] = None
    commands: Tuple[EditCommand, ...] = ()
    events: Tuple["ReedlineEvent", ...] = ()
    name: Optional[str] = None
    command: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "events", tuple(self.events))
        kind = self.kind
        if kind is EventKind.RESIZE:
            _check_u16("width", self.width)
            _check_u16("height", self.height)
        if self.commands and kind is not EventKind.EDIT:
            raise ValueError(f"{kind.value} carries no edit commands")
        if any(not isinstance(cmd, EditCommand) for cmd in self.commands):
            raise ValueError("Edit takes only edit commands")
        if self.events and kind not in _NESTED:
            raise ValueError(f"{kind.value} carries no nested events")
        if any(not isinstance(ev, ReedlineEvent) for ev in self.events):
            raise ValueError(f"{kind.value} takes only editor events")
        if kind is EventKind.MENU and not isinstance(self.name, str):
            raise ValueError("Menu needs a name")
        if kind is EventKind.EXECUTE_HOST_COMMAND and not isinstance(self.command, str):
            raise ValueError("ExecuteHostCommand needs a command")

    def __str__(self) -> str:
        return _DISPLAY.get(self.kind, self.kind.value)


class KeyEventKind(enum.Enum):
    """Whether a key was pressed, held down or released."""

    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


@dataclass(frozen=True)
class KeyEvent:
    """A key event from the terminal."""

    code: Any
    modifiers: FrozenSet[str] = field(default_factory=frozenset)
    kind: KeyEventKind = KeyEventKind.PRESS
    state: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RawEvent:
    """A terminal event that is never a key release or a key repeat.

    Build it with :meth:`from_event`, which rejects releases and turns
    repeats into presses.
    """

    event: Any

    def __post_init__(self) -> None:
        if isinstance(self.event, KeyEvent) and self.event.kind is not KeyEventKind.PRESS:
            raise ValueError(f"key {self.event.kind.value} events are not accepted")

    @classmethod
    def from_event(cls, event: Any) -> "RawEvent":
        """Wrap ``event``; raises ``ValueError`` for a key release."""
        if isinstance(event, KeyEvent):
            if event.kind is KeyEventKind.RELEASE:
                raise ValueError("key release events are not accepted")
            if event.kind is KeyEventKind.REPEAT:
                event = replace(event, kind=KeyEventKind.PRESS)
        return cls(event)