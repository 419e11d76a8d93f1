"""`sheetflow_io` top-level package exports the worksheet import helpers."""

# Module responsibilities:
# - Re-export the extraction core, sessions and high-level import functions so consumers have a stable API surface.

from __future__ import annotations

from .cell_access import CellAccess, FrameCellAccess, GridCellAccess
from .excel_reader import import_sheet, import_with_profile, import_with_request, read_table
from .extractor import (
    extract,
    extract_mapping,
    extract_records,
    is_column_skipped,
    is_duplicate_key,
    is_row_skipped,
    resolve_top_row,
)
from .schema import ExtractionProfile, ExtractionRequest, Shape, parse_skip_set
from .secret import SecretBuffer
from .session import DelimitedSession, Session, Sheet, WorkbookSession, open_session

__all__ = [
    "CellAccess",
    "GridCellAccess",
    "FrameCellAccess",
    "import_sheet",
    "import_with_profile",
    "import_with_request",
    "read_table",
    "extract",
    "extract_mapping",
    "extract_records",
    "is_row_skipped",
    "is_column_skipped",
    "is_duplicate_key",
    "resolve_top_row",
    "ExtractionProfile",
    "ExtractionRequest",
    "Shape",
    "parse_skip_set",
    "SecretBuffer",
    "Session",
    "Sheet",
    "WorkbookSession",
    "DelimitedSession",
    "open_session",
]

__version__ = "0.1.0"
