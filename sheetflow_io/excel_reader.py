"""Spreadsheet import helpers."""

# Module responsibilities:
# - Open a workbook session, select one sheet and shape it via the extraction core.
# - Guarantee the session is released on every exit path.
# - Emit structured logs for traceability and future auditing.

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from sheetflow.core.errors import SessionError

from .extractor import Record, extract
from .schema import ExtractionProfile, ExtractionRequest, Shape, SkipSpec
from .secret import SecretBuffer
from .session import PasswordLike, Sheet, open_session
from .utils.log import get_logger

logger = get_logger("excel_reader")

ImportResult = Union[Dict[Any, Any], List[Record]]


def import_with_request(
    path: Union[str, Path],
    request: ExtractionRequest,
    *,
    sheet: Optional[str] = None,
    password: PasswordLike = None,
) -> ImportResult:
    """Open ``path``, select ``sheet`` and run ``request`` against it.

    A password given as ``str``/``bytes`` is copied into a :class:`SecretBuffer`
    that is wiped before returning; a caller-supplied buffer is left untouched.

    Raises:
        OpenError: When the workbook cannot be opened.
        SessionInitError: When no backend supports the file type.
        SheetNotFoundError: When ``sheet`` is not in the workbook.
    """

    path = Path(path)
    secret = SecretBuffer.coerce(password)
    owns_secret = secret is not None and secret is not password

    logger.info(
        "Importing worksheet",
        extra={"path": str(path), "sheet": sheet, "shape": request.shape.value},
    )
    try:
        with open_session(path, secret) as session:
            selected: Sheet = session.select_sheet(sheet)
            result = extract(selected.access, request)
    except SessionError as exc:
        logger.error("Failed to import worksheet", extra={"path": str(path), "error": str(exc)})
        raise
    finally:
        if owns_secret:
            secret.wipe()

    logger.info(
        "Worksheet imported",
        extra={
            "sheet": selected.name,
            "rows": selected.row_count,
            "columns": selected.column_count,
            "entries": len(result),
        },
    )
    return result


def import_sheet(
    path: Union[str, Path],
    *,
    sheet: Optional[str] = None,
    shape: Union[str, Shape] = Shape.RECORDS,
    top_row: Optional[int] = None,
    key_column: int = 1,
    value_column: int = 2,
    skip_rows: SkipSpec = None,
    skip_columns: SkipSpec = None,
    password: PasswordLike = None,
) -> ImportResult:
    """Import one worksheet as a key/value mapping or a list of records.

    Args:
        path: Workbook or delimited text file.
        sheet: Worksheet name; defaults to the active/first sheet.
        shape: ``"mapping"`` for key/value pairs, ``"records"`` for row dictionaries.
        top_row: Header row; defaults to the first row not listed in ``skip_rows``.
        key_column: Column holding mapping keys (mapping shape only).
        value_column: Column holding mapping values (mapping shape only).
        skip_rows: Rows to ignore, e.g. ``[1, 2]`` or ``"1,4-6"``.
        skip_columns: Columns to ignore (records shape only).
        password: Password for encrypted workbooks.

    Returns:
        ``dict`` for the mapping shape, ``list`` of ``dict`` for records.
    """

    request = ExtractionRequest(
        shape=Shape.parse(shape),
        top_row=top_row,
        key_column=key_column,
        value_column=value_column,
        row_skip=skip_rows,
        column_skip=skip_columns,
    )
    return import_with_request(path, request, sheet=sheet, password=password)


def import_with_profile(
    path: Union[str, Path],
    profile: ExtractionProfile,
    password: PasswordLike = None,
) -> ImportResult:
    """Import using a named extraction profile."""

    return import_with_request(path, profile.request, sheet=profile.sheet, password=password)


def read_table(
    path: Union[str, Path],
    sheet: Optional[str] = None,
    **options: Any,
) -> pd.DataFrame:
    """Load a worksheet's records into a DataFrame.

    Columns follow the order in which headers first appear; fields missing from a
    record become NaN.
    """

    options.pop("shape", None)
    records = import_sheet(path, sheet=sheet, shape=Shape.RECORDS, **options)
    columns: List[Any] = list(dict.fromkeys(key for record in records for key in record))
    return pd.DataFrame(records, columns=columns)
