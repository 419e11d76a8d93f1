"""Unit tests for the tabular extraction core."""

# Module responsibilities:
# - Pin the documented examples for mapping/records extraction and top-row resolution.
# - Assert dedup, skip and ordering behaviour against an in-memory grid.

from __future__ import annotations

from typing import Any

import pytest

from sheetflow_io.cell_access import GridCellAccess
from sheetflow_io.extractor import (
    extract,
    extract_mapping,
    extract_records,
    is_column_skipped,
    is_duplicate_key,
    is_row_skipped,
    resolve_top_row,
)
from sheetflow_io.schema import ExtractionRequest, Shape


class RecordingAccess(GridCellAccess):
    """Grid that remembers every (row, column) read."""

    def __init__(self, rows: list[list[Any]]) -> None:
        super().__init__(rows)
        self.reads: list[tuple[int, int]] = []

    def get(self, row: int, column: int) -> Any:
        self.reads.append((row, column))
        return super().get(row, column)


PEOPLE = GridCellAccess([["Name", "Age"], ["Alice", 30], ["Bob", 25], ["", 99]])
SETTINGS = GridCellAccess([["Key", "Value"], ["a", 1], ["b", 2], ["a", 3], ["", 4]])


def test_predicates() -> None:
    assert is_row_skipped(2, {2, 3})
    assert not is_row_skipped(1, {2, 3})
    assert is_column_skipped(4, frozenset({4}))
    assert not is_column_skipped(1, frozenset())
    assert is_duplicate_key("a", {"a": 1}.keys())
    assert not is_duplicate_key("b", {"a": 1}.keys())


@pytest.mark.parametrize(
    ("explicit", "skip", "expected"),
    [
        (None, set(), 1),
        (None, {1, 2}, 3),
        (None, {2, 3}, 1),
        (None, {1, 2, 3, 5}, 4),
        (4, set(), 4),
        (2, {2}, 2),
    ],
)
def test_resolve_top_row(explicit: int | None, skip: set[int], expected: int) -> None:
    assert resolve_top_row(explicit, skip) == expected


def test_resolve_top_row_with_large_skip_set() -> None:
    assert resolve_top_row(None, frozenset(range(1, 10_001))) == 10_001


def test_records_example() -> None:
    records = extract_records(PEOPLE, top_row=1)

    assert records == [
        {"Name": "Alice", "Age": 30},
        {"Name": "Bob", "Age": 25},
        {"Name": "", "Age": 99},
    ]


def test_mapping_example_keeps_first_key_and_drops_empty() -> None:
    result = extract_mapping(SETTINGS, top_row=1, key_column=1, value_column=2)

    assert result == {"a": 1, "b": 2}
    assert list(result) == ["a", "b"]


def test_mapping_skipped_row_never_appears() -> None:
    result = extract_mapping(SETTINGS, top_row=1, key_column=1, value_column=2, row_skip=frozenset({2}))

    # row 2 ("a", 1) is skipped, so the later duplicate ("a", 3) is accepted instead
    assert result == {"b": 2, "a": 3}


def test_mapping_same_key_and_value_column() -> None:
    result = extract_mapping(SETTINGS, top_row=1, key_column=1, value_column=1)

    assert result == {"a": "a", "b": "b"}


def test_mapping_drops_falsy_keys() -> None:
    grid = GridCellAccess([["k", "v"], [0, "zero"], [None, "none"], [False, "no"], ["x", "ok"]])

    assert extract_mapping(grid, 1, 1, 2) == {"x": "ok"}


def test_mapping_reads_value_only_for_accepted_rows() -> None:
    access = RecordingAccess([["k", "v"], ["a", 1], ["a", 2], [None, 3]])

    extract_mapping(access, 1, 1, 2)

    assert access.reads == [(2, 1), (2, 2), (3, 1), (4, 1)]


def test_records_skip_rows_and_columns() -> None:
    grid = GridCellAccess(
        [
            ["Id", "Name", "Notes"],
            [1, "Alice", "x"],
            [2, "Bob", "y"],
            [3, "Cara", "z"],
        ]
    )

    records = extract_records(grid, top_row=1, row_skip=frozenset({3}), column_skip=frozenset({3}))

    # skipped rows still produce an (empty) record
    assert records == [{"Id": 1, "Name": "Alice"}, {}, {"Id": 3, "Name": "Cara"}]


def test_records_duplicate_headers_first_column_wins() -> None:
    grid = GridCellAccess([["A", "B", "A", None, ""], [1, 2, 3, 4, 5], [6, 7, 8, 9, 10]])

    records = extract_records(grid, top_row=1)

    assert records == [{"A": 1, "B": 2}, {"A": 6, "B": 7}]


def test_records_duplicate_header_falls_through_when_first_column_skipped() -> None:
    grid = GridCellAccess([["A", "A"], [1, 2]])

    assert extract_records(grid, 1, column_skip=frozenset({1})) == [{"A": 2}]


def test_records_headers_read_from_top_row_only() -> None:
    access = RecordingAccess([["H1", "H2"], ["a", "b"], ["c", "d"]])

    extract_records(access, top_row=1)

    header_reads = [read for read in access.reads if read[0] == 1]
    data_reads = [read for read in access.reads if read[0] != 1]
    assert header_reads == [(1, 1), (1, 2), (1, 1), (1, 2)]
    assert data_reads == [(2, 1), (2, 2), (3, 1), (3, 2)]


@pytest.mark.parametrize("top_row", [1, 2, 3, 4, 5, 9])
def test_record_count_is_rows_after_top_row(top_row: int) -> None:
    records = extract_records(PEOPLE, top_row=top_row, column_skip=frozenset({1, 2}))

    assert len(records) == max(0, PEOPLE.row_count - top_row)


def test_top_row_beyond_extent_yields_empty_results() -> None:
    assert extract_records(PEOPLE, top_row=10) == []
    assert extract_mapping(SETTINGS, top_row=10, key_column=1, value_column=2) == {}
    assert extract_records(GridCellAccess([]), top_row=1) == []


def test_skip_entry_equal_to_top_row_only_moves_header() -> None:
    grid = GridCellAccess([["title"], ["Name"], ["Alice"], ["Bob"]])
    request = ExtractionRequest(shape=Shape.RECORDS, row_skip=frozenset({1}))

    assert extract(grid, request) == [{"Name": "Alice"}, {"Name": "Bob"}]


def test_explicit_top_row_inside_skip_set_is_used() -> None:
    grid = GridCellAccess([["K", "V"], ["a", 1], ["b", 2]])
    request = ExtractionRequest(shape=Shape.MAPPING, top_row=1, row_skip=frozenset({1}))

    assert extract(grid, request) == {"a": 1, "b": 2}


def test_extract_dispatches_on_shape() -> None:
    mapping = extract(SETTINGS, ExtractionRequest(shape=Shape.MAPPING))
    records = extract(PEOPLE, ExtractionRequest(shape=Shape.RECORDS, row_skip=frozenset({3})))

    assert mapping == {"a": 1, "b": 2}
    assert records == [{"Name": "Alice", "Age": 30}, {}, {"Name": "", "Age": 99}]


def test_extraction_is_idempotent() -> None:
    request = ExtractionRequest(shape=Shape.RECORDS, row_skip=frozenset({2}))

    assert extract(PEOPLE, request) == extract(PEOPLE, request)
    assert extract(SETTINGS, ExtractionRequest(shape=Shape.MAPPING)) == extract(
        SETTINGS, ExtractionRequest(shape=Shape.MAPPING)
    )


def test_mapping_numeric_and_boolean_keys_share_equality() -> None:
    grid = GridCellAccess([["k", "v"], [1, "int"], [1.0, "float"], [True, "bool"], ["1", "text"]])

    result = extract_mapping(grid, 1, 1, 2)

    assert result == {1: "int", "1": "text"}
    assert type(next(iter(result))) is int
