import sys
import threading
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from lineward.history.base import (
    CommandLineSearch,
    HistoryError,
    HistoryFeatureUnsupported,
    SearchDirection,
    SearchFilter,
    SearchKind,
    SearchQuery,
)
from lineward.history.file_backed import (
    HISTORY_SIZE,
    FileBackedHistory,
    decode_entry,
    encode_entry,
)
from lineward.history.item import HistoryItem


def create_item(session, cwd, cmd, exit_status):
    return HistoryItem(
        command_line=cmd,
        session_id=session,
        hostname="foohost",
        cwd=cwd,
        duration=timedelta(milliseconds=1000),
        exit_status=exit_status,
    )


def create_filled_example_history():
    history = FileBackedHistory()
    history.save(create_item(1, "/", "dummy", 0))
    history.save(create_item(1, "/home/me", "cd ~/Downloads", 0))
    history.save(create_item(1, "/home/me/Downloads", "unzp foo.zip", 1))
    history.save(create_item(1, "/home/me/Downloads", "unzip foo.zip", 0))
    history.save(create_item(1, "/home/me/Downloads", "cd foo", 0))
    history.save(create_item(1, "/home/me/Downloads/foo", "ls", 0))
    history.save(create_item(1, "/home/me/Downloads/foo", "ls -alh", 0))
    history.save(create_item(1, "/home/me/Downloads/foo", "cat x.txt", 0))
    history.save(create_item(1, "/home/me", "cd /etc/nginx", 0))
    history.save(create_item(1, "/etc/nginx", "ls -l", 0))
    history.save(create_item(1, "/etc/nginx", "vim nginx.conf", 0))
    history.save(create_item(1, "/etc/nginx", "vim htpasswd", 0))
    history.save(create_item(1, "/etc/nginx", "cat nginx.conf", 0))
    return history


def assert_search_returned(history, result, wanted):
    assert result == [history.load(i) for i in wanted]


def all_texts(history):
    return [
        e.command_line
        for e in history.search(SearchQuery.everything(SearchDirection.FORWARD, None))
    ]


def add_text_entries(history, entries):
    for entry in entries:
        history.save(HistoryItem.from_command_line(entry))


def test_count_all():
    assert create_filled_example_history().count_all() == 13


def test_get_latest():
    history = create_filled_example_history()
    res = history.search(SearchQuery.last_with_search(SearchFilter.anything(None)))
    assert_search_returned(history, res, [12])


def test_get_earliest():
    history = create_filled_example_history()
    query = replace(SearchQuery.everything(SearchDirection.FORWARD, None), limit=1)
    assert_search_returned(history, history.search(query), [0])


def test_search_prefix():
    history = create_filled_example_history()
    query = replace(
        SearchQuery.everything(SearchDirection.BACKWARD, None),
        filter=SearchFilter.from_text_search(
            CommandLineSearch(SearchKind.PREFIX, "ls "), None
        ),
    )
    assert_search_returned(history, history.search(query), [9, 6])


def test_search_prefix_is_case_sensitive():
    history = create_filled_example_history()
    query = replace(
        SearchQuery.everything(SearchDirection.BACKWARD, None),
        filter=SearchFilter.from_text_search(
            CommandLineSearch(SearchKind.PREFIX, "LS "), None
        ),
    )
    assert history.search(query) == []


def test_search_includes():
    history = create_filled_example_history()
    query = replace(
        SearchQuery.everything(SearchDirection.FORWARD, None),
        filter=SearchFilter.from_text_search(
            CommandLineSearch(SearchKind.SUBSTRING, "foo.zip"), None
        ),
    )
    assert_search_returned(history, history.search(query), [2, 3])


def test_search_includes_limit():
    history = create_filled_example_history()
    query = replace(
        SearchQuery.everything(SearchDirection.FORWARD, None),
        filter=SearchFilter.from_text_search(
            CommandLineSearch(SearchKind.SUBSTRING, "c"), None
        ),
        limit=2,
    )
    assert_search_returned(history, history.search(query), [1, 4])


def test_clear_history():
    history = create_filled_example_history()
    assert history.count_all() != 0
    history.clear()
    assert history.count_all() == 0


def test_clear_history_with_backing_file(tmp_path):
    path = tmp_path / "test-history.txt"
    with FileBackedHistory.with_file(100, path) as history:
        history.save(create_item(1, "/home/me", "cd ~/Downloads", 0))
        history.save(create_item(1, "/home/me/Downloads", "unzp foo.zip", 1))
        assert history.count_all() == 2

    with FileBackedHistory.with_file(100, path) as history:
        assert history.count_all() == 2
        history.clear()
        assert history.count_all() == 0

    with FileBackedHistory.with_file(100, path) as history:
        assert history.count_all() == 0


def test_history_size_zero():
    history = FileBackedHistory(0)
    saved = history.save(create_item(1, "/home/me", "cd ~/Downloads", 0))
    assert saved.id is None
    assert history.count_all() == 0
    history.sync()
    history.clear()
    assert history.count_all() == 0


def test_create_file_backed_history():
    with pytest.raises(HistoryError):
        FileBackedHistory(sys.maxsize)
    assert FileBackedHistory(HISTORY_SIZE).count_all() == 0


def test_appends_only_unique_and_non_empty():
    history = FileBackedHistory()
    add_text_entries(history, ["unique_old", "test", "test", "", "unique"])
    assert all_texts(history) == ["unique_old", "test", "unique"]


def test_save_returns_assigned_id():
    history = FileBackedHistory()
    first = history.save(HistoryItem.from_command_line("a"))
    second = history.save(HistoryItem.from_command_line("b"))
    assert (first.id, second.id) == (0, 1)
    assert history.load(1) == HistoryItem(command_line="b", id=1)


def test_capacity_drops_oldest():
    history = FileBackedHistory(2)
    add_text_entries(history, ["a", "b", "c"])
    assert all_texts(history) == ["b", "c"]


def test_load_missing_item_raises():
    history = FileBackedHistory()
    with pytest.raises(HistoryError):
        history.load(0)
    with pytest.raises(HistoryError):
        history.load(-1)


def test_time_filter_unsupported():
    history = FileBackedHistory()
    query = replace(
        SearchQuery.everything(SearchDirection.FORWARD, None),
        start_time=datetime(2020, 1, 1),
    )
    with pytest.raises(HistoryFeatureUnsupported) as info:
        history.search(query)
    assert info.value.feature == "filtering by time"


def test_extra_info_filter_unsupported():
    history = FileBackedHistory()
    query = SearchQuery.last_with_prefix_and_cwd("ls", "/tmp", None)
    with pytest.raises(HistoryFeatureUnsupported) as info:
        history.search(query)
    assert info.value.feature == "filtering by extra info"


def test_update_and_delete_unsupported():
    history = create_filled_example_history()
    with pytest.raises(HistoryFeatureUnsupported):
        history.update(1, lambda e: e)
    with pytest.raises(HistoryFeatureUnsupported):
        history.delete(1)


def test_start_id_bounds_are_exclusive():
    history = create_filled_example_history()
    back = replace(
        SearchQuery.everything(SearchDirection.BACKWARD, None), start_id=3, limit=2
    )
    assert [e.id for e in history.search(back)] == [2, 1]
    forward = replace(
        SearchQuery.everything(SearchDirection.FORWARD, None), start_id=10
    )
    assert [e.id for e in history.search(forward)] == [11, 12]


def test_not_command_line_is_skipped():
    history = FileBackedHistory()
    add_text_entries(history, ["a", "b", "a", "c"])
    query = replace(
        SearchQuery.everything(SearchDirection.FORWARD, None),
        filter=SearchFilter(not_command_line="a"),
    )
    assert [e.command_line for e in history.search(query)] == ["b", "c"]


def test_encode_decode_round_trip():
    text = "multiline\r\nentry\nunix"
    assert encode_entry(text) == "multiline\r<\\n>entry<\\n>unix"
    assert decode_entry(encode_entry(text)) == text


def test_writes_to_new_nested_file(tmp_path):
    path = tmp_path / "nested_path" / ".history"
    entries = ["test", "text", "more test text"]
    with FileBackedHistory.with_file(5, path) as history:
        add_text_entries(history, entries)
    with FileBackedHistory.with_file(5, path) as history:
        assert all_texts(history) == entries


def test_persists_newlines_in_entries(tmp_path):
    path = tmp_path / ".history"
    entries = [
        "test",
        "multiline\nentry\nunix",
        "multiline\r\nentry\r\nwindows",
        "more test text",
    ]
    with FileBackedHistory.with_file(5, path) as history:
        add_text_entries(history, entries)
    with FileBackedHistory.with_file(5, path) as history:
        assert all_texts(history) == entries


def test_truncates_file_to_capacity(tmp_path):
    path = tmp_path / ".history"
    with FileBackedHistory.with_file(5, path) as history:
        add_text_entries(history, ["test 1", "test 2"])
    with FileBackedHistory.with_file(5, path) as history:
        add_text_entries(history, ["test 3", "test 4"])
        assert all_texts(history) == ["test 1", "test 2", "test 3", "test 4"]
    expected = ["test 4", "test 5", "test 6", "test 7", "test 8"]
    with FileBackedHistory.with_file(5, path) as history:
        add_text_entries(history, ["test 5", "test 6", "test 7", "test 8"])
        assert all_texts(history) == expected
    with FileBackedHistory.with_file(5, path) as history:
        assert all_texts(history) == expected


def test_truncates_too_large_file(tmp_path):
    path = tmp_path / ".history"
    with FileBackedHistory.with_file(10, path) as history:
        add_text_entries(history, [f"test {i}" for i in range(1, 9)])
    expected = ["test 4", "test 5", "test 6", "test 7", "test 8"]
    with FileBackedHistory.with_file(5, path) as history:
        assert all_texts(history) == expected
    with FileBackedHistory.with_file(5, path) as history:
        assert all_texts(history) == expected


def test_concurrent_histories_do_not_erase_each_other(tmp_path):
    path = tmp_path / ".history"
    with FileBackedHistory.with_file(7, path) as history:
        add_text_entries(history, [f"test {i}" for i in range(1, 6)])
    with FileBackedHistory.with_file(7, path) as hist_a:
        with FileBackedHistory.with_file(7, path) as hist_b:
            add_text_entries(hist_b, ["B1", "B2", "B3"])
        add_text_entries(hist_a, ["A1", "A2", "A3"])
    with FileBackedHistory.with_file(7, path) as history:
        assert all_texts(history) == ["test 5", "B1", "B2", "B3", "A1", "A2", "A3"]


def test_concurrent_histories_are_threadsafe(tmp_path):
    path = tmp_path / ".history"
    num_threads = 8
    capacity = 2 * num_threads + 1
    with FileBackedHistory.with_file(capacity, path) as history:
        add_text_entries(history, [f"initial {i}" for i in range(capacity)])

    def worker(i):
        with FileBackedHistory.with_file(capacity, path) as hist:
            hist.save(HistoryItem.from_command_line(f"A{i}"))
            hist.sync()
            hist.save(HistoryItem.from_command_line(f"B{i}"))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(num_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    with FileBackedHistory.with_file(capacity, path) as history:
        actual = all_texts(history)
    assert f"initial {capacity - 1}" in actual
    for i in range(num_threads):
        assert f"A{i}" in actual
        assert f"B{i}" in actual