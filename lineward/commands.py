"""Editing commands and the undo grouping of line changes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class EditKind(enum.Enum):
    """The editing actions that can be bound to keys."""

    MOVE_TO_START = "MoveToStart"
    MOVE_TO_LINE_START = "MoveToLineStart"
    MOVE_TO_END = "MoveToEnd"
    MOVE_TO_LINE_END = "MoveToLineEnd"
    MOVE_LEFT = "MoveLeft"
    MOVE_RIGHT = "MoveRight"
    MOVE_WORD_LEFT = "MoveWordLeft"
    MOVE_BIG_WORD_LEFT = "MoveBigWordLeft"
    MOVE_WORD_RIGHT = "MoveWordRight"
    MOVE_WORD_RIGHT_START = "MoveWordRightStart"
    MOVE_BIG_WORD_RIGHT_START = "MoveBigWordRightStart"
    MOVE_WORD_RIGHT_END = "MoveWordRightEnd"
    MOVE_BIG_WORD_RIGHT_END = "MoveBigWordRightEnd"
    MOVE_TO_POSITION = "MoveToPosition"
    INSERT_CHAR = "InsertChar"
    INSERT_STRING = "InsertString"
    INSERT_NEWLINE = "InsertNewline"
    REPLACE_CHAR = "ReplaceChar"
    REPLACE_CHARS = "ReplaceChars"
    BACKSPACE = "Backspace"
    DELETE = "Delete"
    CUT_CHAR = "CutChar"
    BACKSPACE_WORD = "BackspaceWord"
    DELETE_WORD = "DeleteWord"
    CLEAR = "Clear"
    CLEAR_TO_LINE_END = "ClearToLineEnd"
    COMPLETE = "Complete"
    CUT_CURRENT_LINE = "CutCurrentLine"
    CUT_FROM_START = "CutFromStart"
    CUT_FROM_LINE_START = "CutFromLineStart"
    CUT_TO_END = "CutToEnd"
    CUT_TO_LINE_END = "CutToLineEnd"
    KILL_LINE = "KillLine"
    CUT_WORD_LEFT = "CutWordLeft"
    CUT_BIG_WORD_LEFT = "CutBigWordLeft"
    CUT_WORD_RIGHT = "CutWordRight"
    CUT_BIG_WORD_RIGHT = "CutBigWordRight"
    CUT_WORD_RIGHT_TO_NEXT = "CutWordRightToNext"
    CUT_BIG_WORD_RIGHT_TO_NEXT = "CutBigWordRightToNext"
    PASTE_CUT_BUFFER_BEFORE = "PasteCutBufferBefore"
    PASTE_CUT_BUFFER_AFTER = "PasteCutBufferAfter"
    UPPERCASE_WORD = "UppercaseWord"
    LOWERCASE_WORD = "LowercaseWord"
    CAPITALIZE_CHAR = "CapitalizeChar"
    SWITCHCASE_CHAR = "SwitchcaseChar"
    SWAP_WORDS = "SwapWords"
    SWAP_GRAPHEMES = "SwapGraphemes"
    UNDO = "Undo"
    REDO = "Redo"
    CUT_RIGHT_UNTIL = "CutRightUntil"
    CUT_RIGHT_BEFORE = "CutRightBefore"
    MOVE_RIGHT_UNTIL = "MoveRightUntil"
    MOVE_RIGHT_BEFORE = "MoveRightBefore"
    CUT_LEFT_UNTIL = "CutLeftUntil"
    CUT_LEFT_BEFORE = "CutLeftBefore"
    MOVE_LEFT_UNTIL = "MoveLeftUntil"
    MOVE_LEFT_BEFORE = "MoveLeftBefore"
    SELECT_ALL = "SelectAll"
    CUT_SELECTION = "CutSelection"
    COPY_SELECTION = "CopySelection"
    PASTE = "Paste"
    COPY_FROM_START = "CopyFromStart"
    COPY_FROM_LINE_START = "CopyFromLineStart"
    COPY_TO_END = "CopyToEnd"
    COPY_TO_LINE_END = "CopyToLineEnd"
    COPY_CURRENT_LINE = "CopyCurrentLine"
    COPY_WORD_LEFT = "CopyWordLeft"
    COPY_BIG_WORD_LEFT = "CopyBigWordLeft"
    COPY_WORD_RIGHT = "CopyWordRight"
    COPY_BIG_WORD_RIGHT = "CopyBigWordRight"
    COPY_WORD_RIGHT_TO_NEXT = "CopyWordRightToNext"
    COPY_BIG_WORD_RIGHT_TO_NEXT = "CopyBigWordRightToNext"
    COPY_LEFT = "CopyLeft"
    COPY_RIGHT = "CopyRight"
    COPY_RIGHT_UNTIL = "CopyRightUntil"
    COPY_RIGHT_BEFORE = "CopyRightBefore"
    COPY_LEFT_UNTIL = "CopyLeftUntil"
    COPY_LEFT_BEFORE = "CopyLeftBefore"
    SWAP_CURSOR_AND_ANCHOR = "SwapCursorAndAnchor"
    CUT_SELECTION_SYSTEM = "CutSelectionSystem"
    COPY_SELECTION_SYSTEM = "CopySelectionSystem"
    PASTE_SYSTEM = "PasteSystem"
    CUT_INSIDE = "CutInside"
    YANK_INSIDE = "YankInside"


K = EditKind

_SIMPLE_MOVES = frozenset(
    {
        K.MOVE_TO_START,
        K.MOVE_TO_LINE_START,
        K.MOVE_TO_END,
        K.MOVE_TO_LINE_END,
        K.MOVE_LEFT,
        K.MOVE_RIGHT,
        K.MOVE_WORD_LEFT,
        K.MOVE_BIG_WORD_LEFT,
        K.MOVE_WORD_RIGHT,
        K.MOVE_WORD_RIGHT_START,
        K.MOVE_BIG_WORD_RIGHT_START,
        K.MOVE_WORD_RIGHT_END,
        K.MOVE_BIG_WORD_RIGHT_END,
    }
)

_MOVES = _SIMPLE_MOVES | {
    K.MOVE_TO_POSITION,
    K.MOVE_RIGHT_UNTIL,
    K.MOVE_RIGHT_BEFORE,
    K.MOVE_LEFT_UNTIL,
    K.MOVE_LEFT_BEFORE,
}

_CHAR_VALUE_DISPLAY = frozenset(
    {
        K.CUT_RIGHT_UNTIL,
        K.CUT_RIGHT_BEFORE,
        K.MOVE_RIGHT_UNTIL,
        K.MOVE_RIGHT_BEFORE,
        K.CUT_LEFT_UNTIL,
        K.CUT_LEFT_BEFORE,
        K.COPY_RIGHT_UNTIL,
        K.COPY_RIGHT_BEFORE,
        K.COPY_LEFT_UNTIL,
        K.COPY_LEFT_BEFORE,
    }
)

_NEEDS_CHAR = _CHAR_VALUE_DISPLAY | {
    K.INSERT_CHAR,
    K.REPLACE_CHAR,
    K.MOVE_LEFT_UNTIL,
    K.MOVE_LEFT_BEFORE,
}
_NEEDS_TEXT = frozenset({K.INSERT_STRING, K.REPLACE_CHARS})
_NEEDS_PAIR = frozenset({K.CUT_INSIDE, K.YANK_INSIDE})

_NO_OP = frozenset(
    {
        K.COPY_SELECTION,
        K.COPY_SELECTION_SYSTEM,
        K.COPY_FROM_START,
        K.COPY_FROM_LINE_START,
        K.COPY_TO_END,
        K.COPY_TO_LINE_END,
        K.COPY_CURRENT_LINE,
        K.COPY_WORD_LEFT,
        K.COPY_BIG_WORD_LEFT,
        K.COPY_WORD_RIGHT,
        K.COPY_BIG_WORD_RIGHT,
        K.COPY_WORD_RIGHT_TO_NEXT,
        K.COPY_BIG_WORD_RIGHT_TO_NEXT,
        K.COPY_LEFT,
        K.COPY_RIGHT,
        K.COPY_RIGHT_UNTIL,
        K.COPY_RIGHT_BEFORE,
        K.COPY_LEFT_UNTIL,
        K.COPY_LEFT_BEFORE,
    }
)

_DISPLAY = {
    K.MOVE_TO_POSITION: "MoveToPosition  Value: <int>, Optional[select: <bool>]",
    K.MOVE_LEFT_UNTIL: "MoveLeftUntil Value: <char>, Optional[select: <bool>]",
    K.MOVE_LEFT_BEFORE: "MoveLeftBefore Value: <char>, Optional[select: <bool>]",
    K.INSERT_CHAR: "InsertChar  Value: <char>",
    K.INSERT_STRING: "InsertString Value: <string>",
    K.REPLACE_CHAR: "ReplaceChar <char>",
    K.REPLACE_CHARS: "ReplaceChars <int> <string>",
    K.CUT_INSIDE: "CutInside Value: <char> <char>",
    K.YANK_INSIDE: "YankInside Value: <char> <char>",
}
_DISPLAY.update({kind: f"{kind.value} Optional[select: <bool>]" for kind in _SIMPLE_MOVES})
_DISPLAY.update({kind: f"{kind.value} Value: <char>" for kind in _CHAR_VALUE_DISPLAY})


def _check_char(name: str, value: Optional[str], kind: EditKind) -> None:
    if value is None:
        raise ValueError(f"{kind.value} needs a {name} character")
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"{kind.value} needs a single {name} character, got {value!r}")


def _check_count(name: str, value: Optional[int], kind: EditKind) -> None:
    if value is None:
        raise ValueError(f"{kind.value} needs a {name}")
    if value < 0:
        raise ValueError(f"{kind.value} needs a non-negative {name}")


class EditTypeKind(enum.Enum):
    """Groups of edit commands, used to decide undo behaviour."""

    MOVE_CURSOR = "move_cursor"
    UNDO_REDO = "undo_redo"
    EDIT_TEXT = "edit_text"
    NO_OP = "no_op"


@dataclass(frozen=True)
class EditType:
    """The group of an edit command; ``select`` applies to cursor moves."""

    kind: EditTypeKind
    select: bool = False


@dataclass(frozen=True)
class EditCommand:
    """An editing action with its arguments.

    ``char`` is the character argument, ``text`` the string argument,
    ``position`` the target of ``MOVE_TO_POSITION``, ``count`` the number
    of characters of ``REPLACE_CHARS`` and ``left``/``right`` the pair of
    ``CUT_INSIDE`` and ``YANK_INSIDE``.
    """

    kind: EditKind
    select: bool = False
    char: Optional[str] = None
    text: Optional[str] = None
    position: Optional[int] = None
    count: Optional[int] = None
    left: Optional[str] = None
    right: Optional[str] = None

    def __post_init__(self) -> None:
        kind = self.kind
        if kind in _NEEDS_CHAR:
            _check_char("", self.char, kind)
        if kind in _NEEDS_TEXT and not isinstance(self.text, str):
            raise ValueError(f"{kind.value} needs a text")
        if kind is K.MOVE_TO_POSITION:
            _check_count("position", self.position, kind)
        if kind is K.REPLACE_CHARS:
            _check_count("count", self.count, kind)
        if kind in _NEEDS_PAIR:
            _check_char("left", self.left, kind)
            _check_char("right", self.right, kind)

    def __str__(self) -> str:
        return _DISPLAY.get(self.kind, self.kind.value)

    def edit_type(self) -> EditType:
        """Return whether this command moves the cursor, edits, undoes or does nothing."""
        kind = self.kind
        if kind in _MOVES:
            return EditType(EditTypeKind.MOVE_CURSOR, self.select)
        if kind in (K.SWAP_CURSOR_AND_ANCHOR, K.SELECT_ALL):
            return EditType(EditTypeKind.MOVE_CURSOR, True)
        if kind in (K.UNDO, K.REDO):
            return EditType(EditTypeKind.UNDO_REDO)
        if kind in _NO_OP:
            return EditType(EditTypeKind.NO_OP)
        return EditType(EditTypeKind.EDIT_TEXT)


class UndoKind(enum.Enum):
    """Kinds of line changes, as seen by the undo stack."""

    INSERT_CHARACTER = "insert_character"
    BACKSPACE = "backspace"
    DELETE = "delete"
    MOVE_CURSOR = "move_cursor"
    HISTORY_NAVIGATION = "history_navigation"
    CREATE_UNDO_POINT = "create_undo_point"
    UNDO_REDO = "undo_redo"


_NOT_WHITESPACE = frozenset("\x1c\x1d\x1e\x1f")


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() and ch not in _NOT_WHITESPACE


def _is_line_break(ch: str) -> bool:
    return ch in ("\n", "\r")


@dataclass(frozen=True)
class UndoBehavior:
    """A tag on a line change deciding how it lands on the undo stack.

    ``char`` is the inserted character, or the one removed by a backspace
    or delete (it may be unknown for those).
    """

    kind: UndoKind
    char: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is UndoKind.INSERT_CHARACTER and self.char is None:
            raise ValueError("an insertion needs the inserted character")
        if self.char is not None and len(self.char) != 1:
            raise ValueError(f"expected a single character, got {self.char!r}")

    def create_undo_point_after(self, previous: "UndoBehavior") -> bool:
        """Return whether this change starts a new undo set after ``previous``."""
        kind, prev_kind = self.kind, previous.kind
        if kind is UndoKind.MOVE_CURSOR:
            return False
        if kind is prev_kind is UndoKind.HISTORY_NAVIGATION:
            return False
        if kind is prev_kind is UndoKind.INSERT_CHARACTER:
            c_prev, c_new = previous.char, self.char
            return _is_line_break(c_prev) or (
                not _is_whitespace(c_prev) and _is_whitespace(c_new)
            )
        if kind is prev_kind and kind in (UndoKind.BACKSPACE, UndoKind.DELETE):
            c_prev, c_new = previous.char, self.char
            if c_prev is None or c_new is None:
                return False
            return _is_line_break(c_new) or (
                _is_whitespace(c_prev) and not _is_whitespace(c_new)
            )
        return True