import dataclasses

import pytest

from lineward.history.base import (
    CommandLineSearch,
    History,
    HistoryDatabaseError,
    HistoryError,
    HistoryFeatureUnsupported,
    HistoryNavigationQuery,
    NavigationMode,
    SearchDirection,
    SearchFilter,
    SearchKind,
    SearchQuery,
)
from lineward.history.item import HistoryItem


class _ListHistory(History):
    def __init__(self, commands):
        self.items = [
            HistoryItem(command_line=c, id=i) for i, c in enumerate(commands)
        ]
        self.queries = []

    def save(self, item):
        item = dataclasses.replace(item, id=len(self.items))
        self.items.append(item)
        return item

    def load(self, item_id):
        return self.items[item_id]

    def count(self, query):
        self.queries.append(query)
        return len(self.search(query))

    def search(self, query):
        cmd = query.filter.command_line
        return [i for i in self.items if cmd is None or cmd.matches(i.command_line)]

    def update(self, item_id, updater):
        self.items[item_id] = updater(self.items[item_id])

    def clear(self):
        self.items.clear()

    def delete(self, item_id):
        del self.items[item_id]

    def sync(self):
        return None

    def session(self):
        return None


def test_prefix_search_is_case_sensitive():
    search = CommandLineSearch(SearchKind.PREFIX, "ls ")
    assert search.matches("ls -l")
    assert not search.matches("LS -l")
    assert not search.matches("cat ls ")


def test_substring_and_exact_search():
    assert CommandLineSearch(SearchKind.SUBSTRING, "foo.zip").matches("unzip foo.zip")
    assert not CommandLineSearch(SearchKind.SUBSTRING, "bar").matches("unzip foo.zip")
    assert CommandLineSearch(SearchKind.EXACT, "ls").matches("ls")
    assert not CommandLineSearch(SearchKind.EXACT, "ls").matches("ls -l")


def test_filter_constructors():
    cmd = CommandLineSearch(SearchKind.PREFIX, "cd")
    anything = SearchFilter.anything(3)
    assert anything == SearchFilter(session=3)
    assert anything.command_line is None
    text = SearchFilter.from_text_search(cmd, None)
    assert text.command_line == cmd
    assert text.cwd_exact is None
    with_cwd = SearchFilter.from_text_search_cwd("/etc/nginx", cmd, 7)
    assert with_cwd.cwd_exact == "/etc/nginx"
    assert with_cwd.command_line == cmd
    assert with_cwd.session == 7


def test_last_with_prefix_query():
    query = SearchQuery.last_with_prefix("vim", 1)
    assert query.direction is SearchDirection.BACKWARD
    assert query.limit == 1
    assert query.filter.command_line == CommandLineSearch(SearchKind.PREFIX, "vim")
    assert query.filter.session == 1
    assert query.start_id is None and query.end_id is None


def test_last_with_prefix_and_cwd_query():
    query = SearchQuery.last_with_prefix_and_cwd("ls", "/etc/nginx", None)
    assert query.limit == 1
    assert query.filter.cwd_exact == "/etc/nginx"
    assert query.filter.command_line.kind is SearchKind.PREFIX


def test_all_that_contain_rev_and_everything():
    rev = SearchQuery.all_that_contain_rev("nginx")
    assert rev.direction is SearchDirection.BACKWARD
    assert rev.limit is None
    assert rev.filter.command_line == CommandLineSearch(SearchKind.SUBSTRING, "nginx")
    everything = SearchQuery.everything(SearchDirection.FORWARD, None)
    assert everything.filter == SearchFilter()
    assert everything.limit is None


def test_count_all_counts_everything_forward():
    history = _ListHistory(["a", "b", "c"])
    assert history.count_all() == 3
    assert history.queries[-1] == SearchQuery.everything(SearchDirection.FORWARD, None)


def test_history_is_abstract():
    with pytest.raises(TypeError):
        History()


def test_feature_unsupported_error():
    err = HistoryFeatureUnsupported("FileBackedHistory", "filtering by time")
    assert isinstance(err, HistoryError)
    assert err.history == "FileBackedHistory"
    assert err.feature == "filtering by time"
    assert "filtering by time" in str(err)
    with pytest.raises(HistoryError):
        raise HistoryDatabaseError("Could not find item")


def test_navigation_query_equality():
    query = HistoryNavigationQuery(NavigationMode.PREFIX_SEARCH, "find")
    assert query == HistoryNavigationQuery(NavigationMode.PREFIX_SEARCH, "find")
    assert query != HistoryNavigationQuery(NavigationMode.SUBSTRING_SEARCH, "find")