"""Inline hints completing the current line from the history."""

from __future__ import annotations

import unicodedata
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from lineward.history.base import History, HistoryError, HistoryFeatureUnsupported, SearchQuery

_COLOR_CODES = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "purple": 35,
    "magenta": 35,
    "cyan": 36,
    "light_gray": 37,
    "dark_gray": 90,
    "light_red": 91,
    "light_green": 92,
    "light_yellow": 93,
    "light_blue": 94,
    "light_purple": 95,
    "light_magenta": 95,
    "light_cyan": 96,
    "white": 97,
}

ColorSpec = Union[str, int]


def _color_code(color: ColorSpec, background: bool) -> str:
    if isinstance(color, int):
        return f"{48 if background else 38};5;{color}"
    code = _COLOR_CODES[color]
    return str(code + 10 if background else code)


def _check_color(color: Optional[ColorSpec]) -> None:
    if color is None:
        return
    if isinstance(color, bool) or not isinstance(color, (str, int)):
        raise ValueError(f"invalid color: {color!r}")
    if isinstance(color, int) and not 0 <= color <= 255:
        raise ValueError(f"color index out of range: {color}")
    if isinstance(color, str) and color not in _COLOR_CODES:
        raise ValueError(f"unknown color: {color!r}")


@dataclass(frozen=True)
class Style:
    """A terminal text style: colours given by name or 256-colour index."""

    fg: Optional[ColorSpec] = None
    bg: Optional[ColorSpec] = None
    bold: bool = False
    dimmed: bool = False
    italic: bool = False
    underline: bool = False

    def __post_init__(self) -> None:
        _check_color(self.fg)
        _check_color(self.bg)

    def _codes(self) -> List[str]:
        codes = [
            code
            for flag, code in (
                (self.bold, "1"),
                (self.dimmed, "2"),
                (self.italic, "3"),
                (self.underline, "4"),
            )
            if flag
        ]
        if self.fg is not None:
            codes.append(_color_code(self.fg, background=False))
        if self.bg is not None:
            codes.append(_color_code(self.bg, background=True))
        return codes

    def paint(self, text: str) -> str:
        """Wrap ``text`` in the escape sequences of this style."""
        codes = self._codes()
        if not codes:
            return text
        return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


_NOT_WHITESPACE = frozenset("\x1c\x1d\x1e\x1f")
_NEWLINES = frozenset("\n\x0b\x0c\x85\u2028\u2029")
_MID_LETTER = frozenset(":\u00b7'.\u2019")
_MID_NUM = frozenset(",;'.\u2019")


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() and ch not in _NOT_WHITESPACE


def is_whitespace_str(text: str) -> bool:
    """Return whether every character of ``text`` is whitespace (true if empty)."""
    return all(_is_whitespace(ch) for ch in text)


def _is_extend(ch: str) -> bool:
    return unicodedata.category(ch) in ("Mn", "Me", "Mc", "Cf")


def _is_ideographic(ch: str) -> bool:
    return (
        "\u3040" <= ch <= "\u309f"
        or "\u3400" <= ch <= "\u4dbf"
        or "\u4e00" <= ch <= "\u9fff"
        or "\uf900" <= ch <= "\ufaff"
        or "\U00020000" <= ch <= "\U0002fa1f"
    )


def _is_word_char(ch: str) -> bool:
    return (ch.isalnum() or ch == "_") and not _is_ideographic(ch)


def _skip_extend(text: str, pos: int) -> int:
    while pos < len(text) and _is_extend(text[pos]):
        pos += 1
    return pos


def _segment_end(text: str, start: int) -> int:
    """End of the word-boundary segment beginning at ``start``."""
    size = len(text)
    ch = text[start]
    if ch == "\r":
        return start + 2 if start + 1 < size and text[start + 1] == "\n" else start + 1
    if ch in _NEWLINES:
        return start + 1
    if unicodedata.category(ch) == "Zs":
        pos = start + 1
        while pos < size and unicodedata.category(text[pos]) == "Zs":
            pos += 1
        return _skip_extend(text, pos)
    if not _is_word_char(ch):
        return _skip_extend(text, start + 1)

    pos = start
    last = ch
    while True:
        while pos < size and (_is_word_char(text[pos]) or _is_extend(text[pos])):
            if not _is_extend(text[pos]):
                last = text[pos]
            pos += 1
        if pos + 1 >= size:
            return pos
        mid, after = text[pos], text[pos + 1]
        letters = last.isalpha() and after.isalpha() and mid in _MID_LETTER
        digits = last.isdecimal() and after.isdecimal() and mid in _MID_NUM
        if not (letters or digits) or _is_ideographic(after):
            return pos
        pos += 1


def _word_segments(text: str) -> Iterator[str]:
    pos = 0
    while pos < len(text):
        end = _segment_end(text, pos)
        yield text[pos:end]
        pos = end


def get_first_token(text: str) -> str:
    """Return leading whitespace plus the first word segment of ``text``."""
    parts: List[str] = []
    for segment in _word_segments(text):
        parts.append(segment)
        if not is_whitespace_str(segment):
            break
    return "".join(parts)


class Hinter(ABC):
    """Produces the hint shown after the cursor for the current line."""

    @abstractmethod
    def handle(
        self, line: str, pos: int, history: History, use_ansi_coloring: bool, cwd: str
    ) -> str:
        """Compute the hint for ``line`` and return it formatted for display."""

    @abstractmethod
    def complete_hint(self) -> str:
        """Return the current hint, unformatted."""

    @abstractmethod
    def next_hint_token(self) -> str:
        """Return the first token of the current hint."""


def _rest_after(line: str, items: list) -> str:
    if not items:
        return ""
    return items[0].command_line[len(line):]


def _checked_min_chars(min_chars: int) -> int:
    if min_chars < 0:
        raise ValueError("min_chars must not be negative")
    return min_chars


class _PrefixHinter(Hinter, ABC):
    """Shared state of the history-based hinters."""

    def __init__(self) -> None:
        self._style = Style(fg="light_gray")
        self._current_hint = ""
        self._min_chars = 1

    def _formatted(self, use_ansi_coloring: bool) -> str:
        if use_ansi_coloring and self._current_hint:
            return self._style.paint(self._current_hint)
        return self._current_hint


class DefaultHinter(_PrefixHinter):
    """Hints the rest of the most recent history entry starting with the line."""

    def with_style(self, style: Style) -> "DefaultHinter":
        """Set the style applied to the hint; returns the hinter."""
        self._style = style
        return self

    def with_min_chars(self, min_chars: int) -> "DefaultHinter":
        """Set how many characters must be typed before hinting; returns the hinter."""
        self._min_chars = _checked_min_chars(min_chars)
        return self

    def handle(
        self, line: str, pos: int, history: History, use_ansi_coloring: bool, cwd: str
    ) -> str:
        if len(line) >= self._min_chars:
            found = history.search(SearchQuery.last_with_prefix(line, history.session()))
            self._current_hint = _rest_after(line, found)
        else:
            self._current_hint = ""
        return self._formatted(use_ansi_coloring)

    def complete_hint(self) -> str:
        return self._current_hint

    def next_hint_token(self) -> str:
        return get_first_token(self._current_hint)


class CwdAwareHinter(_PrefixHinter):
    """Like :class:`DefaultHinter`, preferring entries run in the current directory.

    Histories that cannot filter by directory fall back to a plain prefix
    search; other history errors yield no hint.
    """

    def with_style(self, style: Style) -> "CwdAwareHinter":
        """Set the style applied to the hint; returns the hinter."""
        self._style = style
        return self

    def with_min_chars(self, min_chars: int) -> "CwdAwareHinter":
        """Set how many characters must be typed before hinting; returns the hinter."""
        self._min_chars = _checked_min_chars(min_chars)
        return self

    @staticmethod
    def _search(history: History, query: SearchQuery) -> list:
        try:
            return history.search(query)
        except HistoryError:
            return []

    def handle(
        self, line: str, pos: int, history: History, use_ansi_coloring: bool, cwd: str
    ) -> str:
        if len(line) >= self._min_chars:
            session = history.session()
            try:
                with_cwd = history.search(
                    SearchQuery.last_with_prefix_and_cwd(line, cwd, session)
                )
            except HistoryFeatureUnsupported:
                with_cwd = self._search(
                    history, SearchQuery.last_with_prefix(line, session)
                )
            except HistoryError:
                with_cwd = []
            if not with_cwd:
                with_cwd = self._search(
                    history, SearchQuery.last_with_prefix(line, session)
                )
            self._current_hint = _rest_after(line, with_cwd)
        else:
            self._current_hint = ""
        return self._formatted(use_ansi_coloring)

    def complete_hint(self) -> str:
        return self._current_hint

    def next_hint_token(self) -> str:
        return get_first_token(self._current_hint)