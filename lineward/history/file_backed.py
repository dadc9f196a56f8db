"""A history kept in memory and optionally synchronised with a text file."""

from __future__ import annotations

import os
import sys
from collections import deque
from itertools import islice
from pathlib import Path
from typing import Callable, Deque, List, Optional, Union

from filelock import FileLock

from lineward.history.base import (
    History,
    HistoryError,
    HistoryFeatureUnsupported,
    SearchDirection,
    SearchQuery,
)
from lineward.history.item import HistoryItem

HISTORY_SIZE = 1000
"""Default capacity of a :class:`FileBackedHistory`."""

NEWLINE_ESCAPE = "<\\n>"

_NAME = "FileBackedHistory"


def encode_entry(text: str) -> str:
    """Escape newlines so an entry fits on one line of the history file."""
    return text.replace("\n", NEWLINE_ESCAPE)


def decode_entry(text: str) -> str:
    """Undo :func:`encode_entry`."""
    return text.replace(NEWLINE_ESCAPE, "\n")


def _construct_entry(item_id: Optional[int], command_line: str) -> HistoryItem:
    return HistoryItem(command_line=command_line, id=item_id)


def _split_lines(content: str) -> List[str]:
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class FileBackedHistory(History):
    """History of plain command lines with a bounded capacity.

    When associated with a file (see :meth:`with_file`), new entries are
    appended to it on :meth:`sync`, and the file is truncated to the
    capacity, dropping the oldest lines. Several instances may share a file.
    """

    def __init__(self, capacity: int = HISTORY_SIZE) -> None:
        if capacity < 0:
            raise ValueError("History capacity must not be negative")
        if capacity >= sys.maxsize:
            raise HistoryError("History capacity too large to be addressed safely")
        self._capacity = capacity
        self._entries: Deque[str] = deque()
        self._file: Optional[Path] = None
        self._len_on_disk = 0
        self._session: Optional[int] = None

    @classmethod
    def with_file(
        cls, capacity: int, file: Union[str, os.PathLike]
    ) -> "FileBackedHistory":
        """Create a history backed by ``file``, reading it if it exists.

        Creates all missing parent directories of the file.
        """
        history = cls(capacity)
        path = Path(file)
        path.parent.mkdir(parents=True, exist_ok=True)
        history._file = path
        history.sync()
        return history

    def __enter__(self) -> "FileBackedHistory":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Write any unsaved entries to the backing file."""
        self.sync()

    def save(self, item: HistoryItem) -> HistoryItem:
        """Append the command line unless it is empty or repeats the last entry."""
        entry = item.command_line
        is_repeat = bool(self._entries) and self._entries[-1] == entry
        entry_id: Optional[int] = None
        if not is_repeat and entry and self._capacity > 0:
            if len(self._entries) == self._capacity:
                self._entries.popleft()
                self._len_on_disk = max(0, self._len_on_disk - 1)
            self._entries.append(entry)
            entry_id = len(self._entries) - 1
        return _construct_entry(entry_id, entry)

    def load(self, item_id: int) -> HistoryItem:
        if not 0 <= item_id < len(self._entries):
            raise HistoryError("Item does not exist")
        return _construct_entry(item_id, self._entries[item_id])

    def count(self, query: SearchQuery) -> int:
        return len(self.search(query))

    def search(self, query: SearchQuery) -> List[HistoryItem]:
        if query.start_time is not None or query.end_time is not None:
            raise HistoryFeatureUnsupported(_NAME, "filtering by time")
        flt = query.filter
        if (
            flt.hostname is not None
            or flt.cwd_exact is not None
            or flt.cwd_prefix is not None
            or flt.exit_successful is not None
        ):
            raise HistoryFeatureUnsupported(_NAME, "filtering by extra info")

        backward = query.direction is SearchDirection.BACKWARD
        low, high = (
            (query.end_id, query.start_id) if backward else (query.start_id, query.end_id)
        )
        total = len(self._entries)
        min_id = low + 1 if low is not None else 0
        max_id = high - 1 if high is not None else total - 1
        if max_id < 0 or min_id > total - 1:
            return []
        window_size = max(0, max_id - min_id + 1)
        limit = window_size
        if query.limit is not None and query.limit >= 0:
            limit = min(window_size, query.limit)

        window = list(enumerate(self._entries))[min_id : min_id + window_size]
        if backward:
            window.reverse()

        def matching():
            for idx, cmd in window:
                if flt.command_line is not None and not flt.command_line.matches(cmd):
                    continue
                if flt.not_command_line is not None and cmd == flt.not_command_line:
                    continue
                yield _construct_entry(idx, cmd)

        return list(islice(matching(), limit))

    def update(
        self, item_id: int, updater: Callable[[HistoryItem], HistoryItem]
    ) -> None:
        raise HistoryFeatureUnsupported(_NAME, "updating entries")

    def clear(self) -> None:
        """Forget all entries and delete the backing file, if any."""
        self._entries.clear()
        self._len_on_disk = 0
        if self._file is not None:
            self._file.unlink()

    def delete(self, item_id: int) -> None:
        raise HistoryFeatureUnsupported(_NAME, "removing entries")

    def sync(self) -> None:
        """Write unsaved entries to the file, truncating it to the capacity."""
        if self._file is None:
            return
        path = self._file
        own_entries = list(islice(self._entries, self._len_on_disk, None))
        path.parent.mkdir(parents=True, exist_ok=True)

        with FileLock(str(path) + ".lock"):
            fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
            with open(fd, "r+b") as handle:
                content = handle.read().decode("utf-8")
                from_file = [decode_entry(line) for line in _split_lines(content)]
                truncate = len(from_file) + len(own_entries) > self._capacity
                if truncate:
                    keep = max(0, self._capacity - len(own_entries))
                    foreign = from_file[len(from_file) - keep :]
                    handle.seek(0)
                    to_write = foreign + own_entries
                else:
                    foreign = from_file
                    handle.seek(0, os.SEEK_END)
                    to_write = own_entries
                handle.write(
                    "".join(encode_entry(line) + "\n" for line in to_write).encode(
                        "utf-8"
                    )
                )
                if truncate:
                    handle.truncate()
                handle.flush()

        self._entries = deque(foreign + own_entries)
        self._len_on_disk = len(self._entries)

    def session(self) -> Optional[int]:
        return self._session