"""Write-only buffer for a sudo password.

The bytes live in a single ``bytearray`` that is overwritten with zeros
on ``clear()`` and whenever it has to grow, so no copy of the secret is
left behind for the garbage collector to release at its leisure.
"""
from __future__ import annotations

_INITIAL_CAPACITY = 128


class PasswordBuffer:
    """Masked, append-only password storage with explicit zeroing."""

    __slots__ = ("_storage", "_length", "_char_sizes")

    def __init__(self, capacity: int = _INITIAL_CAPACITY) -> None:
        self._storage = bytearray(max(16, capacity))
        self._length = 0
        self._char_sizes: list[int] = []

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    def __repr__(self) -> str:
        return f"<PasswordBuffer chars={len(self._char_sizes)}>"

    __str__ = __repr__

    @property
    def char_count(self) -> int:
        """Number of characters typed, for the masked prompt."""
        return len(self._char_sizes)

    def append(self, text: str) -> None:
        for char in text:
            encoded = char.encode("utf-8")
            self._ensure_capacity(self._length + len(encoded))
            self._storage[self._length:self._length + len(encoded)] = encoded
            self._length += len(encoded)
            self._char_sizes.append(len(encoded))

    def pop(self) -> None:
        """Drop the last character typed (Backspace)."""
        if not self._char_sizes:
            return
        size = self._char_sizes.pop()
        start = self._length - size
        for i in range(start, self._length):
            self._storage[i] = 0
        self._length = start

    def clear(self) -> None:
        """Zero every byte of storage and forget the length."""
        for i in range(len(self._storage)):
            self._storage[i] = 0
        self._length = 0
        self._char_sizes.clear()

    def is_zeroed(self) -> bool:
        return self._length == 0 and not any(self._storage)

    def stdin_payload(self) -> bytearray:
        """Return the password followed by a newline, for a child's stdin.

        The caller owns the returned buffer and must zero it after use
        (see ``wipe``).
        """
        payload = bytearray(self._length + 1)
        with memoryview(self._storage) as view:
            payload[:self._length] = view[:self._length]
        payload[self._length] = 0x0A
        return payload

    def _ensure_capacity(self, needed: int) -> None:
        if needed <= len(self._storage):
            return
        size = len(self._storage)
        while size < needed:
            size *= 2
        grown = bytearray(size)
        with memoryview(self._storage) as view:
            grown[:self._length] = view[:self._length]
        wipe(self._storage)
        self._storage = grown


def wipe(buf: bytearray) -> None:
    """Overwrite a bytearray with zeros in place."""
    for i in range(len(buf)):
        buf[i] = 0
