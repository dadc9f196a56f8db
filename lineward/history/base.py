"""Queries, filters, errors and the abstract interface of a history store."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from lineward.history.item import HistoryItem


class HistoryError(Exception):
    """Raised when a history operation fails."""


class HistoryFeatureUnsupported(HistoryError):
    """Raised when a history backend does not support a requested feature."""

    def __init__(self, history: str, feature: str) -> None:
        super().__init__(f"{history} does not support {feature}")
        self.history = history
        self.feature = feature


class HistoryDatabaseError(HistoryError):
    """Raised when the history database reports an error."""


class NavigationMode(enum.Enum):
    """Ways to browse through a history."""

    NORMAL = "normal"
    PREFIX_SEARCH = "prefix_search"
    SUBSTRING_SEARCH = "substring_search"


@dataclass(frozen=True)
class HistoryNavigationQuery:
    """A browsing mode together with its value.

    For ``NORMAL`` the value holds the state of the manual entry before
    browsing started; for the search modes it is the search string.
    """

    mode: NavigationMode
    value: Any = None


class SearchKind(enum.Enum):
    """How a command line is compared with a search string."""

    PREFIX = "prefix"
    SUBSTRING = "substring"
    EXACT = "exact"


@dataclass(frozen=True)
class CommandLineSearch:
    """A search on the text of a command line."""

    kind: SearchKind
    text: str

    def matches(self, command_line: str) -> bool:
        """Return whether ``command_line`` satisfies this search (case-sensitive)."""
        if self.kind is SearchKind.PREFIX:
            return command_line.startswith(self.text)
        if self.kind is SearchKind.SUBSTRING:
            return self.text in command_line
        return command_line == self.text


class SearchDirection(enum.Enum):
    """Order in which a query traverses the history."""

    BACKWARD = "backward"
    FORWARD = "forward"


@dataclass(frozen=True)
class SearchFilter:
    """Additional filters for a history query."""

    command_line: Optional[CommandLineSearch] = None
    not_command_line: Optional[str] = None
    hostname: Optional[str] = None
    cwd_exact: Optional[str] = None
    cwd_prefix: Optional[str] = None
    exit_successful: Optional[bool] = None
    session: Optional[int] = None

    @classmethod
    def from_text_search(
        cls, cmd: CommandLineSearch, session: Optional[int]
    ) -> "SearchFilter":
        """Filter on the command line text."""
        return cls(command_line=cmd, session=session)

    @classmethod
    def from_text_search_cwd(
        cls, cwd: str, cmd: CommandLineSearch, session: Optional[int]
    ) -> "SearchFilter":
        """Filter on the command line text and the exact working directory."""
        return cls(command_line=cmd, cwd_exact=cwd, session=session)

    @classmethod
    def anything(cls, session: Optional[int]) -> "SearchFilter":
        """Match anything within the given session."""
        return cls(session=session)


@dataclass(frozen=True)
class SearchQuery:
    """A query on a history.

    The start and end bounds are exclusive and relative to ``direction``.
    """

    direction: SearchDirection
    filter: SearchFilter
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_id: Optional[int] = None
    end_id: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def all_that_contain_rev(cls, contains: str) -> "SearchQuery":
        """All entries containing ``contains``, most recent first."""
        return cls(
            direction=SearchDirection.BACKWARD,
            filter=SearchFilter.from_text_search(
                CommandLineSearch(SearchKind.SUBSTRING, contains), None
            ),
        )

    @classmethod
    def last_with_search(cls, filter: SearchFilter) -> "SearchQuery":
        """The most recent entry matching ``filter``."""
        return cls(direction=SearchDirection.BACKWARD, filter=filter, limit=1)

    @classmethod
    def last_with_prefix(cls, prefix: str, session: Optional[int]) -> "SearchQuery":
        """The most recent entry starting with ``prefix``."""
        return cls.last_with_search(
            SearchFilter.from_text_search(
                CommandLineSearch(SearchKind.PREFIX, prefix), session
            )
        )

    @classmethod
    def last_with_prefix_and_cwd(
        cls, prefix: str, cwd: str, session: Optional[int]
    ) -> "SearchQuery":
        """The most recent entry starting with ``prefix`` run in ``cwd``."""
        return cls.last_with_search(
            SearchFilter.from_text_search_cwd(
                cwd, CommandLineSearch(SearchKind.PREFIX, prefix), session
            )
        )

    @classmethod
    def everything(
        cls, direction: SearchDirection, session: Optional[int]
    ) -> "SearchQuery":
        """All entries in the given direction."""
        return cls(direction=direction, filter=SearchFilter.anything(session))


class History(ABC):
    """A store of history items, such as a text file or a database."""

    @abstractmethod
    def save(self, item: HistoryItem) -> HistoryItem:
        """Save an item; a new id is assigned if it has none, else it is updated."""

    @abstractmethod
    def load(self, item_id: int) -> HistoryItem:
        """Load the item with the given id."""

    @abstractmethod
    def count(self, query: SearchQuery) -> int:
        """Count the results of a query."""

    def count_all(self) -> int:
        """Return the total number of items."""
        return self.count(SearchQuery.everything(SearchDirection.FORWARD, None))

    @abstractmethod
    def search(self, query: SearchQuery) -> List[HistoryItem]:
        """Return the results of a query."""

    @abstractmethod
    def update(
        self, item_id: int, updater: Callable[[HistoryItem], HistoryItem]
    ) -> None:
        """Replace an item with the result of ``updater`` applied to it."""

    @abstractmethod
    def clear(self) -> None:
        """Delete all items."""

    @abstractmethod
    def delete(self, item_id: int) -> None:
        """Remove one item."""

    @abstractmethod
    def sync(self) -> None:
        """Make sure the history is written to its backing store."""

    @abstractmethod
    def session(self) -> Optional[int]:
        """Return the session id of this history, if any."""