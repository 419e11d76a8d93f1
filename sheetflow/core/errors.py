"""Custom exceptions used across SheetFlow."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class SheetFlowError(Exception):
    """Base error for the application."""


class ConfigError(SheetFlowError):
    """Configuration related error."""


class ProfileNotFoundError(ConfigError):
    """Raised when a named extraction profile is not configured."""


class SessionError(SheetFlowError):
    """Raised when a workbook session cannot serve a request."""


class SessionInitError(SessionError):
    """Raised when no backend can be started for a workbook."""


class OpenError(SessionError):
    """Raised when a workbook cannot be opened (bad path, corrupt file, wrong password)."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to open workbook {self.path}: {reason}")


class SheetNotFoundError(SessionError):
    """Raised when a named worksheet does not exist in the workbook."""

    def __init__(self, sheet: str, available: Iterable[str] = ()) -> None:
        self.sheet = sheet
        self.available = tuple(available)
        listing = ", ".join(self.available) or "<none>"
        super().__init__(f"Sheet '{sheet}' not found (available: {listing})")
