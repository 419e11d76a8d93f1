"""Workbook sessions exposing worksheets as CellAccess grids."""

# Module responsibilities:
# - Open spreadsheet files through a suffix-selected backend (openpyxl or pandas CSV).
# - Decrypt password-protected OOXML workbooks in memory.
# - Translate backend failures into SessionInitError / OpenError / SheetNotFoundError.

from __future__ import annotations

import csv
import io
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, TextIO, Tuple, Union

import msoffcrypto
import pandas as pd
from msoffcrypto.exceptions import DecryptionError, FileFormatError, InvalidKeyError, ParseError
from msoffcrypto.format.ooxml import OOXMLFile
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from sheetflow.core.errors import OpenError, SessionError, SessionInitError, SheetNotFoundError

from .cell_access import CellAccess, FrameCellAccess, GridCellAccess
from .secret import SecretBuffer
from .utils.log import get_logger

logger = get_logger("session")

PathLike = Union[str, Path]
PasswordLike = Union[None, str, bytes, SecretBuffer]

OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class Sheet:
    """A selected worksheet; delegates cell reads to its CellAccess."""

    def __init__(self, name: str, access: CellAccess) -> None:
        self.name = name
        self.access = access

    @property
    def row_count(self) -> int:
        return self.access.row_count

    @property
    def column_count(self) -> int:
        return self.access.column_count

    def get(self, row: int, column: int) -> Any:
        return self.access.get(row, column)

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r}, rows={self.row_count}, columns={self.column_count})"


class Session(ABC):
    """Open spreadsheet file. Close exactly once; usable as a context manager."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._closed = False

    @property
    @abstractmethod
    def sheet_names(self) -> List[str]:
        """Names of the worksheets in workbook order."""

    @abstractmethod
    def _default_sheet_name(self) -> str:
        """Sheet used when no name is requested."""

    @abstractmethod
    def _load_sheet(self, name: str) -> CellAccess:
        """Materialise the used range of ``name``."""

    def _release(self) -> None:
        """Free backend resources."""

    @property
    def closed(self) -> bool:
        return self._closed

    def select_sheet(self, name: Optional[str] = None) -> Sheet:
        if self._closed:
            raise SessionError(f"Session for {self.path} is already closed")
        target = name if name is not None else self._default_sheet_name()
        if target not in self.sheet_names:
            raise SheetNotFoundError(target, self.sheet_names)
        access = self._load_sheet(target)
        logger.debug(
            "Sheet selected",
            extra={"sheet": target, "rows": access.row_count, "columns": access.column_count},
        )
        return Sheet(target, access)

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._release()
        finally:
            self._closed = True
            logger.debug("Session closed", extra={"path": str(self.path)})

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _decrypt(path: Path, password: Optional[SecretBuffer]) -> BinaryIO:
    """Decrypt an OLE-wrapped OOXML workbook into memory.

    Other OLE containers (legacy ``.xls`` renamed to ``.xlsx``, Word files) are
    rejected before any password is asked for.
    """

    buffer = io.BytesIO()
    try:
        with path.open("rb") as handle:
            office_file = msoffcrypto.OfficeFile(handle)
            if not isinstance(office_file, OOXMLFile):
                raise OpenError(path, "not an encrypted OOXML workbook (legacy binary format?)")
            if not password:
                raise OpenError(path, "workbook is password protected")
            logger.info("Decrypting protected workbook", extra={"path": str(path)})
            office_file.load_key(password=password.reveal(), verify_password=True)
            office_file.decrypt(buffer)
    except InvalidKeyError as exc:
        raise OpenError(path, "incorrect password") from exc
    except (DecryptionError, FileFormatError, ParseError, OSError) as exc:
        raise OpenError(path, f"unable to decrypt workbook ({exc})") from exc
    buffer.seek(0)
    return buffer


def _is_ole_container(path: Path) -> bool:
    with path.open("rb") as handle:
        return handle.read(len(OLE_SIGNATURE)) == OLE_SIGNATURE


class WorkbookSession(Session):
    """Session over an OOXML workbook loaded with openpyxl.

    Formula cells yield their cached values. Sheets are read from A1 up to the
    worksheet's max row/column.
    """

    SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")

    def __init__(self, path: Path, password: Optional[SecretBuffer] = None) -> None:
        super().__init__(path)
        self._workbook = self._load(path, password)

    @staticmethod
    def _load(path: Path, password: Optional[SecretBuffer]) -> Workbook:
        source: Union[Path, BinaryIO] = path
        if _is_ole_container(path):
            source = _decrypt(path, password)
        elif password:
            logger.debug("Password supplied for unprotected workbook; ignoring", extra={"path": str(path)})

        try:
            return load_workbook(source, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise OpenError(path, str(exc) or exc.__class__.__name__) from exc

    @property
    def sheet_names(self) -> List[str]:
        # chartsheets carry no cells
        return [worksheet.title for worksheet in self._workbook.worksheets]

    def _default_sheet_name(self) -> str:
        names = self.sheet_names
        active = self._workbook.active
        if active is not None and active.title in names:
            return active.title
        if not names:
            raise SheetNotFoundError("<active>", names)
        return names[0]

    def _load_sheet(self, name: str) -> CellAccess:
        worksheet = self._workbook[name]
        rows = worksheet.iter_rows(
            min_row=1,
            max_row=worksheet.max_row,
            max_col=worksheet.max_column,
            values_only=True,
        )
        return GridCellAccess(rows)

    def _release(self) -> None:
        self._workbook.close()


class DelimitedSession(Session):
    """Session over a delimited text file; exposes one sheet named after the file.

    Values are read as text. Rows may differ in length; empty or missing cells
    read as ``None``. ``.txt`` delimiters are detected from the first 64 KiB.
    """

    SUFFIXES = (".csv", ".tsv", ".txt")
    SNIFF_SAMPLE_SIZE = 64 * 1024
    SNIFF_DELIMITERS = ",\t;|"

    def __init__(self, path: Path, password: Optional[SecretBuffer] = None) -> None:
        super().__init__(path)
        if password:
            logger.debug("Password ignored for delimited file", extra={"path": str(path)})
        self._frame = self._load(path)

    @classmethod
    def _delimiter(cls, path: Path, handle: TextIO) -> str:
        suffix = path.suffix.lower()
        if suffix == ".tsv":
            return "\t"
        if suffix != ".txt":
            return ","
        sample = handle.read(cls.SNIFF_SAMPLE_SIZE)
        handle.seek(0)
        try:
            return csv.Sniffer().sniff(sample, delimiters=cls.SNIFF_DELIMITERS).delimiter
        except csv.Error:
            # single-column text has nothing to detect
            logger.debug("No delimiter detected; reading as one column", extra={"path": str(path)})
            return ","

    @classmethod
    def _scan(cls, path: Path) -> Tuple[str, int]:
        """Return the delimiter and the widest row's field count."""

        with path.open("r", encoding="utf-8", newline="") as handle:
            delimiter = cls._delimiter(path, handle)
            width = max((len(row) for row in csv.reader(handle, delimiter=delimiter)), default=0)
        return delimiter, width

    @classmethod
    def _load(cls, path: Path) -> pd.DataFrame:
        try:
            delimiter, width = cls._scan(path)
            if width == 0:
                return pd.DataFrame()
            # explicit names let rows of any length through; short rows pad with NaN
            return pd.read_csv(
                path,
                header=None,
                names=list(range(width)),
                sep=delimiter,
                dtype=object,
                keep_default_na=False,
                na_values=[""],
                skip_blank_lines=False,
                encoding="utf-8",
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (pd.errors.ParserError, csv.Error, UnicodeDecodeError, OSError) as exc:
            raise OpenError(path, str(exc)) from exc

    @property
    def sheet_names(self) -> List[str]:
        return [self.path.stem]

    def _default_sheet_name(self) -> str:
        return self.path.stem

    def _load_sheet(self, name: str) -> CellAccess:
        return FrameCellAccess(self._frame)


SessionFactory = Callable[[Path, Optional[SecretBuffer]], Session]

SESSION_BACKENDS: Dict[str, SessionFactory] = {
    **{suffix: WorkbookSession for suffix in WorkbookSession.SUFFIXES},
    **{suffix: DelimitedSession for suffix in DelimitedSession.SUFFIXES},
}


def open_session(path: PathLike, password: PasswordLike = None) -> Session:
    """Open a spreadsheet file with the backend registered for its suffix.

    Raises:
        OpenError: When the file is missing, unreadable or the password is wrong.
        SessionInitError: When no backend handles the file type.
    """

    path = Path(path)
    if not path.is_file():
        raise OpenError(path, "file not found")

    factory = SESSION_BACKENDS.get(path.suffix.lower())
    if factory is None:
        supported = ", ".join(sorted(SESSION_BACKENDS))
        raise SessionInitError(
            f"No spreadsheet backend for '{path.suffix or path.name}' (supported: {supported})"
        )

    logger.info("Opening workbook", extra={"path": str(path), "backend": factory.__name__})
    return factory(path, SecretBuffer.coerce(password))
