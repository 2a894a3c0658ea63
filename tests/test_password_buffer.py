"""Tests for the zeroing password buffer."""

from __future__ import annotations

from rtop.engine.password import PasswordBuffer, wipe


def test_append_and_payload() -> None:
    buf = PasswordBuffer()
    buf.append("hunter2")
    assert len(buf) == 7
    assert buf.char_count == 7
    payload = buf.stdin_payload()
    assert payload == bytearray(b"hunter2\n")
    wipe(payload)
    assert not any(payload)


def test_clear_zeroes_storage() -> None:
    buf = PasswordBuffer()
    buf.append("secret")
    buf.clear()
    assert len(buf) == 0
    assert not buf
    assert buf.is_zeroed()


def test_pop_removes_whole_characters() -> None:
    buf = PasswordBuffer()
    buf.append("aé")
    assert len(buf) == 3
    buf.pop()
    assert buf.char_count == 1
    assert buf.stdin_payload() == bytearray(b"a\n")
    buf.pop()
    buf.pop()
    assert buf.is_zeroed()


def test_growth_keeps_contents_and_wipes_old_storage() -> None:
    buf = PasswordBuffer(capacity=16)
    old = buf._storage
    buf.append("x" * 40)
    assert buf._storage is not old
    assert not any(old)
    assert buf.stdin_payload() == bytearray(b"x" * 40 + b"\n")


def test_repr_never_shows_contents() -> None:
    buf = PasswordBuffer()
    buf.append("topsecret")
    assert "topsecret" not in repr(buf)
    assert "topsecret" not in str(buf)
    assert repr(buf) == "<PasswordBuffer chars=9>"
