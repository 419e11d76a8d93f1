"""Mutable secret holder for workbook passwords."""

# Module responsibilities:
# - Keep passwords in a bytearray that can be zeroed once the workbook is decrypted.
# - Offer constant-time comparison and a repr that never leaks the value.

from __future__ import annotations

import hmac
from typing import Optional, Union


class SecretBuffer:
    """Password bytes that are wiped on ``wipe()`` or when leaving a ``with`` block."""

    __slots__ = ("_data",)

    def __init__(self, value: Union[str, bytes, bytearray]) -> None:
        if isinstance(value, str):
            self._data = bytearray(value.encode("utf-8"))
        else:
            self._data = bytearray(value)

    @classmethod
    def coerce(cls, value: Union[None, str, bytes, bytearray, "SecretBuffer"]) -> Optional["SecretBuffer"]:
        if value is None or isinstance(value, SecretBuffer):
            return value
        return cls(value)

    @property
    def wiped(self) -> bool:
        return not self._data

    def reveal(self) -> str:
        """Decode the secret for a single library call; do not keep the result."""

        if self.wiped:
            raise ValueError("Secret has already been wiped")
        return self._data.decode("utf-8")

    def matches(self, other: Union[str, bytes, bytearray, "SecretBuffer"]) -> bool:
        if isinstance(other, SecretBuffer):
            candidate = bytes(other._data)
        elif isinstance(other, str):
            candidate = other.encode("utf-8")
        else:
            candidate = bytes(other)
        return hmac.compare_digest(bytes(self._data), candidate)

    def wipe(self) -> None:
        for index in range(len(self._data)):
            self._data[index] = 0
        self._data.clear()

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __bool__(self) -> bool:
        return not self.wiped

    def __repr__(self) -> str:
        return "SecretBuffer(<wiped>)" if self.wiped else "SecretBuffer(****)"
