"""Cell access adapters consumed by the extraction core."""

# Module responsibilities:
# - Define the read-only CellAccess capability (1-indexed get + extent).
# - Provide in-memory grid and pandas DataFrame implementations.

from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd


@runtime_checkable
class CellAccess(Protocol):
    """Read-only view over a worksheet's used range."""

    @property
    def row_count(self) -> int: ...

    @property
    def column_count(self) -> int: ...

    def get(self, row: int, column: int) -> Any: ...


class GridCellAccess:
    """CellAccess backed by a list of rows.

    Ragged rows are allowed; cells beyond a row's end, or outside the grid, read
    as ``None``.
    """

    def __init__(self, rows: Iterable[Sequence[Any]]) -> None:
        self._rows: List[tuple[Any, ...]] = [tuple(row) for row in rows]
        self._column_count = max((len(row) for row in self._rows), default=0)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return self._column_count

    def get(self, row: int, column: int) -> Any:
        if row < 1 or column < 1 or row > len(self._rows):
            return None
        values = self._rows[row - 1]
        if column > len(values):
            return None
        return values[column - 1]

    def __repr__(self) -> str:
        return f"GridCellAccess(rows={self.row_count}, columns={self.column_count})"


def _normalize(value: Any) -> Optional[Any]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        # numpy scalars -> builtin Python values
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


class FrameCellAccess:
    """CellAccess over a DataFrame loaded with ``header=None``.

    Positions map directly onto ``iloc``; NaN and NaT read as ``None``.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        self._frame = frame

    @property
    def row_count(self) -> int:
        return len(self._frame.index)

    @property
    def column_count(self) -> int:
        return len(self._frame.columns)

    def get(self, row: int, column: int) -> Any:
        if not (1 <= row <= self.row_count and 1 <= column <= self.column_count):
            return None
        return _normalize(self._frame.iat[row - 1, column - 1])
