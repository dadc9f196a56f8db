# lineward

Building blocks for interactive line editors: a command history stored in a
plain text file or in SQLite, stateful up/down navigation through that
history, fish-style inline hints, edit commands with undo grouping, editor
events, and a thread-safe queue for messages that arrive while a line is
being edited.

## Installation

```
pip install lineward
```

To run the test suite:

```
pip install "lineward[test]"
pytest
```

## History

Every store implements the abstract `History` class from
`lineward.history.base`: `save`, `load`, `count`, `count_all`, `search`,
`update`, `clear`, `delete`, `sync` and `session`. Queries are built with
`SearchQuery` (for example `SearchQuery.everything`,
`SearchQuery.last_with_prefix`, `SearchQuery.last_with_prefix_and_cwd`,
`SearchQuery.all_that_contain_rev`) and `SearchFilter`, with
`CommandLineSearch` matching by `SearchKind.PREFIX`, `SUBSTRING` or `EXACT`
(case-sensitive).

Errors derive from `HistoryError`; a backend raises
`HistoryFeatureUnsupported` for features it does not offer, and the SQLite
store raises `HistoryDatabaseError` for database failures.

### Text file

`FileBackedHistory` (in `lineward.history.file_backed`) keeps up to
`capacity` command lines (default `HISTORY_SIZE`, 1000). Empty commands and
a repeat of the last entry are not stored. With `with_file` it is tied to a
text file of one command per line, newlines inside a command being escaped
(`encode_entry` / `decode_entry`). `sync` appends unsaved entries, keeps
entries written meanwhile by other instances, and cuts the file down to the
capacity, dropping the oldest lines; writes are guarded by a file lock.
`close` (or leaving a `with` block) calls `sync`.

It supports neither time nor extra-info filters, nor `update` and `delete`.

```python
from lineward.history.base import SearchDirection, SearchQuery
from lineward.history.file_backed import FileBackedHistory
from lineward.history.item import HistoryItem

with FileBackedHistory.with_file(1000, "history.txt") as history:
    history.save(HistoryItem.from_command_line("ls -alh"))
    history.save(HistoryItem.from_command_line("cd /tmp"))
    for item in history.search(SearchQuery.everything(SearchDirection.BACKWARD, None)):
        print(item.id, item.command_line)
```

### SQLite

`SqliteBackedHistory` (in `lineward.history.sqlite_backed`) stores the
whole `HistoryItem`: start time, session id, host name, working directory,
duration, exit status and JSON-serialisable `more_info`, and can filter on
them. Create it with `SqliteBackedHistory.with_file(path, session,
session_timestamp)` or `SqliteBackedHistory.in_memory()`. Saving an item
without an id inserts it; saving one with an id replaces that row.

```python
from lineward.history.item import HistoryItem
from lineward.history.sqlite_backed import SqliteBackedHistory

with SqliteBackedHistory.in_memory() as history:
    saved = history.save(HistoryItem.from_command_line("make test"))
    print(history.load(saved.id).command_line)
```

## Navigating history

`HistoryCursor` (in `lineward.history.cursor`) walks through a history the
way up and down arrows do: through every entry (`NavigationMode.NORMAL`) or
only through those with a given prefix or substring, skipping consecutive
repeats. `back` stops at the oldest match; `forward` past the newest leaves
the cursor unset.

```python
from lineward.history.base import HistoryNavigationQuery, NavigationMode
from lineward.history.cursor import HistoryCursor

cursor = HistoryCursor(HistoryNavigationQuery(NavigationMode.PREFIX_SEARCH, "cd"), None)
cursor.back(history)
print(cursor.string_at_cursor())
```

## Hints

`DefaultHinter` (in `lineward.hinter`) suggests the rest of the most recent
history entry that starts with the current line, once at least `min_chars`
characters are typed. `CwdAwareHinter` prefers entries run in the given
working directory and falls back to a plain prefix search. With
`use_ansi_coloring` the hint is painted with a `Style` (light gray by
default). `next_hint_token` returns the first word of the hint, with any
leading whitespace.

```python
from lineward.hinter import DefaultHinter, Style

hinter = DefaultHinter().with_min_chars(2).with_style(Style(fg="cyan", italic=True))
hint = hinter.handle("ls", 2, history, False, "/tmp")
print(hint, hinter.next_hint_token())
```

## Edit commands and undo grouping

`lineward.commands` defines `EditCommand`, an `EditKind` with its arguments.
`edit_type()` says whether it moves the cursor, edits text, undoes/redoes, or
leaves the buffer alone. `UndoBehavior.create_undo_point_after` decides
whether a change starts a new undo set, so that typing or deleting groups by
word.

```python
from lineward.commands import EditCommand, EditKind, UndoBehavior, UndoKind

EditCommand(EditKind.INSERT_CHAR, char="a").edit_type()  # EditType(EDIT_TEXT)
UndoBehavior(UndoKind.INSERT_CHARACTER, " ").create_undo_point_after(
    UndoBehavior(UndoKind.INSERT_CHARACTER, "x")
)  # True
```

## Events

`lineward.events` defines `Signal` (how reading a line ended), `ReedlineEvent`
(editor actions, with `EventKind`), and `RawEvent.from_event`, which rejects
key releases with `ValueError` and turns key repeats into presses.

## Printing while editing

`ExternalPrinter` (in `lineward.printer`) is a bounded, thread-safe queue:
other threads call `print(line)`, which blocks when full, and the editor
takes lines with `get_line()`, which returns `None` when nothing is waiting.

## What this package does not do

It contains no line editor itself: nothing reads keys from the terminal,
binds keys to events, runs edit commands against a buffer, or draws a
prompt, hints or menus on screen. The pieces above are meant to be used by
such an editor.