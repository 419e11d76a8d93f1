"""Tabular extraction core.

Turns a worksheet exposed through :class:`~sheetflow_io.cell_access.CellAccess`
into either an ordered key/value mapping or a list of records keyed by the
header row.

Field acceptance combines the predicates below in a fixed order: truthiness of
the key/header, duplication, row skip, then column skip. Data rows always start
at ``top_row + 1``, so a skip entry equal to the top row only influences how the
top row is resolved.
"""

from __future__ import annotations

from typing import Any, AbstractSet, Dict, List, Optional

from .cell_access import CellAccess
from .schema import ExtractionRequest, Shape, SkipSet
from .utils.log import get_logger

logger = get_logger("extractor")

Record = Dict[Any, Any]


def is_row_skipped(row: int, row_skip: AbstractSet[int]) -> bool:
    return row in row_skip


def is_column_skipped(column: int, column_skip: AbstractSet[int]) -> bool:
    return column in column_skip


def is_duplicate_key(key: Any, seen: AbstractSet[Any]) -> bool:
    return key in seen


def resolve_top_row(explicit_top_row: Optional[int], row_skip: AbstractSet[int]) -> int:
    """Return the header row.

    An explicit value is returned unchanged, even when it is itself skipped.
    Otherwise the first row >= 1 not present in ``row_skip`` is used.
    """

    if explicit_top_row is not None:
        return explicit_top_row
    candidate = 1
    while is_row_skipped(candidate, row_skip):
        candidate += 1
    return candidate


def _data_rows(access: CellAccess, top_row: int) -> range:
    return range(top_row + 1, access.row_count + 1)


def extract_mapping(
    access: CellAccess,
    top_row: int,
    key_column: int,
    value_column: int,
    row_skip: SkipSet = frozenset(),
) -> Dict[Any, Any]:
    """Build an ordered key -> value mapping from two columns.

    Rows with an empty key are dropped, and later rows repeating an accepted
    key are ignored (first occurrence wins). Keys compare with dict equality, so
    ``1``, ``1.0`` and ``True`` are the same key; ``"1"`` is a different one.
    """

    result: Dict[Any, Any] = {}
    for row in _data_rows(access, top_row):
        key = access.get(row, key_column)
        if not key or is_duplicate_key(key, result.keys()) or is_row_skipped(row, row_skip):
            continue
        result[key] = access.get(row, value_column)
    return result


def extract_records(
    access: CellAccess,
    top_row: int,
    row_skip: SkipSet = frozenset(),
    column_skip: SkipSet = frozenset(),
) -> List[Record]:
    """Build one record per data row keyed by the header row.

    Every data row yields a record, possibly empty. Repeated header names
    collapse to the first column carrying them, per record.
    """

    records: List[Record] = []
    for row in _data_rows(access, top_row):
        record: Record = {}
        for column in range(1, access.column_count + 1):
            header = access.get(top_row, column)
            if (
                not header
                or is_duplicate_key(header, record.keys())
                or is_row_skipped(row, row_skip)
                or is_column_skipped(column, column_skip)
            ):
                continue
            record[header] = access.get(row, column)
        records.append(record)
    return records


def extract(access: CellAccess, request: ExtractionRequest) -> Dict[Any, Any] | List[Record]:
    """Run ``request`` against ``access`` and return the shaped result."""

    top_row = resolve_top_row(request.top_row, request.row_skip)
    logger.debug(
        "Extracting worksheet",
        extra={
            "shape": request.shape.value,
            "top_row": top_row,
            "rows": access.row_count,
            "columns": access.column_count,
        },
    )
    if request.shape is Shape.MAPPING:
        return extract_mapping(
            access, top_row, request.key_column, request.value_column, request.row_skip
        )
    return extract_records(access, top_row, request.row_skip, request.column_skip)
