"""Stateful up/down navigation through a history."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from lineward.history.base import (
    CommandLineSearch,
    History,
    HistoryNavigationQuery,
    NavigationMode,
    SearchDirection,
    SearchFilter,
    SearchKind,
    SearchQuery,
)
from lineward.history.item import HistoryItem


class HistoryCursor:
    """A position in a history, moved according to a navigation query.

    Consecutive entries with the same command line are skipped while
    navigating.
    """

    def __init__(
        self, query: HistoryNavigationQuery, session: Optional[int] = None
    ) -> None:
        self._query = query
        self._current: Optional[HistoryItem] = None
        self._skip_dupes = True
        self._session = session

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(query={self._query!r}, "
            f"current={self._current!r}, session={self._session!r})"
        )

    def back(self, history: History) -> None:
        """Move to the previous matching entry; stays put at the oldest one."""
        self._navigate(history, SearchDirection.BACKWARD)

    def forward(self, history: History) -> None:
        """Move to the next matching entry; past the newest the cursor is unset."""
        self._navigate(history, SearchDirection.FORWARD)

    def string_at_cursor(self) -> Optional[str]:
        """Return the command line at the cursor, if there is one."""
        return None if self._current is None else self._current.command_line

    def get_navigation(self) -> HistoryNavigationQuery:
        """Return the navigation query this cursor follows."""
        return self._query

    def _search_filter(self) -> SearchFilter:
        mode = self._query.mode
        if mode is NavigationMode.PREFIX_SEARCH:
            flt = SearchFilter.from_text_search(
                CommandLineSearch(SearchKind.PREFIX, self._query.value), self._session
            )
        elif mode is NavigationMode.SUBSTRING_SEARCH:
            flt = SearchFilter.from_text_search(
                CommandLineSearch(SearchKind.SUBSTRING, self._query.value),
                self._session,
            )
        else:
            flt = SearchFilter.anything(self._session)
        if self._skip_dupes and self._current is not None:
            flt = replace(flt, not_command_line=self._current.command_line)
        return flt

    def _navigate(self, history: History, direction: SearchDirection) -> None:
        if direction is SearchDirection.FORWARD and self._current is None:
            # Without a starting point, going forward means we are at the end.
            return
        start_id = None if self._current is None else self._current.id
        results = history.search(
            SearchQuery(
                direction=direction,
                filter=self._search_filter(),
                start_id=start_id,
                limit=1,
            )
        )
        if len(results) == 1:
            self._current = results[0]
        elif direction is SearchDirection.FORWARD:
            self._current = None