"""Unit tests for the password buffer."""

from __future__ import annotations

import pytest

from sheetflow_io.secret import SecretBuffer


def test_secret_reveal_and_compare() -> None:
    secret = SecretBuffer("s3cret")

    assert secret.reveal() == "s3cret"
    assert secret.matches("s3cret")
    assert secret.matches(b"s3cret")
    assert secret.matches(SecretBuffer("s3cret"))
    assert not secret.matches("other")
    assert "s3cret" not in repr(secret)


def test_secret_wiped_on_context_exit() -> None:
    raw = bytearray(b"pw")
    with SecretBuffer(raw) as secret:
        assert secret
    assert secret.wiped
    assert not secret
    assert repr(secret) == "SecretBuffer(<wiped>)"
    with pytest.raises(ValueError):
        secret.reveal()
    # the caller's buffer is copied, not borrowed
    assert raw == bytearray(b"pw")


def test_coerce_passes_through_buffers_and_none() -> None:
    existing = SecretBuffer("x")

    assert SecretBuffer.coerce(None) is None
    assert SecretBuffer.coerce(existing) is existing
    assert SecretBuffer.coerce("x").matches("x")
