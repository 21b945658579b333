"""Tests for CSV export of query results."""

import csv
import io

from querydesk.core.export import format_cell, result_to_csv, write_csv
from querydesk.schemas import QueryResult


def _parse(text):
    return list(csv.reader(io.StringIO(text, newline="")))


def test_comma_value_is_quoted():
    result = QueryResult(columns=["name"], rows=[{"name": "Doe, John"}])

    assert result_to_csv(result) == 'name\n"Doe, John"'


def test_header_first_then_rows_in_column_order():
    result = QueryResult(columns=["b", "a"], rows=[{"a": 1, "b": 2}, {"a": 3, "b": 4}])

    assert result_to_csv(result) == "b,a\n2,1\n4,3"


def test_missing_and_none_become_empty():
    result = QueryResult(columns=["a", "b", "c"], rows=[{"a": None, "c": 0}])

    assert result_to_csv(result) == "a,b,c\n,,0"


def test_special_characters_round_trip():
    tricky = [
        {"name": "Doe, John", "note": 'He said "hi"', "address": "1 Main St\nApt 2"},
        {"name": '"quoted"', "note": "plain", "address": "a,b\r\nc"},
        {"name": "", "note": None, "address": '","'},
    ]
    result = QueryResult(columns=["name", "note", "address"], rows=tricky)

    parsed = _parse(result_to_csv(result))

    assert parsed[0] == ["name", "note", "address"]
    assert parsed[1:] == [["" if row[c] is None else str(row[c]) for c in result.columns] for row in tricky]


def test_format_cell():
    assert format_cell(None) == ""
    assert format_cell(42) == "42"
    assert format_cell(1.5) == "1.5"
    assert format_cell("plain") == "plain"


def test_inner_quotes_are_doubled():
    result = QueryResult(columns=["a", "b"], rows=[{"a": 'say "x"', "b": 1}])

    assert result_to_csv(result) == 'a,b\n"say ""x""",1'


def test_single_column_empty_cells_keep_their_rows():
    result = QueryResult(columns=["note"], rows=[{"note": "a"}, {"note": None}, {"note": ""}, {"note": "b"}])

    text = result_to_csv(result)

    assert _parse(text) == [["note"], ["a"], [""], [""], ["b"]]


def test_write_csv(tmp_path):
    result = QueryResult(columns=["name"], rows=[{"name": "Doe, John"}])

    path = write_csv(result, tmp_path / "results.csv")

    assert path.read_text(encoding="utf-8") == 'name\n"Doe, John"'
