"""Shared schemas for sheet extraction requests."""

# Module responsibilities:
# - Provide strongly typed containers describing what to extract from a worksheet.
# - Normalise skip lists (ints, ranges, "a-b" strings) into frozen index sets.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Iterable, Mapping, NotRequired, Optional, TypedDict, Union

SkipSet = FrozenSet[int]
SkipSpec = Union[None, int, str, range, Iterable[Union[int, str, range]]]


class Shape(str, Enum):
    """Result shape produced by an extraction."""

    MAPPING = "mapping"
    RECORDS = "records"

    @classmethod
    def parse(cls, value: Union[str, "Shape"]) -> "Shape":
        if isinstance(value, Shape):
            return value
        normalized = str(value).strip().lower()
        aliases = {"hashtable": cls.MAPPING, "dict": cls.MAPPING, "array": cls.RECORDS}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(
                f"Unknown shape '{value}' (expected one of: mapping, records)"
            ) from exc


class ExtractionProfileConfig(TypedDict):
    """Schema for extraction profile YAML payloads."""

    shape: str
    description: NotRequired[str]
    sheet: NotRequired[str]
    top_row: NotRequired[int]
    key_column: NotRequired[int]
    value_column: NotRequired[int]
    skip_rows: NotRequired[list[Union[int, str]]]
    skip_columns: NotRequired[list[Union[int, str]]]


def _positive(value: int, source: object) -> int:
    if isinstance(value, bool) or value < 1:
        raise ValueError(f"Skip indices must be positive integers, got {source!r}")
    return value


def _expand_token(token: str) -> Iterable[int]:
    text = token.strip()
    if not text:
        return ()
    if "-" in text[1:]:
        start_text, end_text = text.split("-", 1)
        try:
            start, end = int(start_text), int(end_text)
        except ValueError as exc:
            raise ValueError(f"Invalid skip range: {token!r}") from exc
        if end < start:
            raise ValueError(f"Skip range end precedes start: {token!r}")
        return range(_positive(start, token), end + 1)
    try:
        return (_positive(int(text), token),)
    except ValueError as exc:
        raise ValueError(f"Invalid skip index: {token!r}") from exc


def parse_skip_set(skips: SkipSpec) -> SkipSet:
    """Expand a skip specification into a frozen set of 1-indexed positions.

    Accepts ``None``, a single int, a ``range``, a comma separated string such as
    ``"1,3-5"`` or any iterable mixing those forms.

    Raises:
        ValueError: When an entry is malformed or not a positive integer.
    """

    if skips is None:
        return frozenset()
    if isinstance(skips, bool):
        raise ValueError(f"Invalid skip specification: {skips!r}")
    if isinstance(skips, int):
        return frozenset((_positive(skips, skips),))
    if isinstance(skips, range):
        return frozenset(_positive(index, skips) for index in skips)
    if isinstance(skips, str):
        indices: set[int] = set()
        for token in skips.split(","):
            indices.update(_expand_token(token))
        return frozenset(indices)

    collected: set[int] = set()
    for item in skips:
        collected.update(parse_skip_set(item))
    return frozenset(collected)


@dataclass(frozen=True)
class ExtractionRequest:
    """Parameters describing one worksheet extraction."""

    shape: Shape = Shape.RECORDS
    top_row: Optional[int] = None
    key_column: int = 1
    value_column: int = 2
    row_skip: SkipSet = field(default_factory=frozenset)
    column_skip: SkipSet = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", Shape.parse(self.shape))
        object.__setattr__(self, "row_skip", parse_skip_set(self.row_skip))
        object.__setattr__(self, "column_skip", parse_skip_set(self.column_skip))
        if self.top_row is not None and self.top_row < 1:
            raise ValueError(f"top_row must be a positive integer, got {self.top_row}")
        if self.key_column < 1 or self.value_column < 1:
            raise ValueError("key_column and value_column must be positive integers")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExtractionRequest":
        """Build a request from a profile payload (YAML or CLI options)."""

        top_row = payload.get("top_row")
        return cls(
            shape=Shape.parse(payload.get("shape", Shape.RECORDS)),
            top_row=int(top_row) if top_row is not None else None,
            key_column=int(payload.get("key_column", 1)),
            value_column=int(payload.get("value_column", 2)),
            row_skip=parse_skip_set(payload.get("skip_rows")),
            column_skip=parse_skip_set(payload.get("skip_columns")),
        )


@dataclass(frozen=True)
class ExtractionProfile:
    """Named, reusable extraction settings loaded from configuration."""

    name: str
    request: ExtractionRequest
    sheet: Optional[str] = None
    description: str = ""

    @classmethod
    def from_config(cls, name: str, payload: ExtractionProfileConfig) -> "ExtractionProfile":
        sheet = payload.get("sheet")
        return cls(
            name=name,
            request=ExtractionRequest.from_mapping(payload),
            sheet=str(sheet) if sheet is not None else None,
            description=str(payload.get("description", "")),
        )
