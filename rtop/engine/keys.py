"""Translate Textual key names into the bytes a shell expects."""
from __future__ import annotations

# xterm sequences for the non-printing keys the shell understands
_SPECIAL_KEYS: dict[str, bytes] = {
    "enter": b"\n",
    "backspace": b"\x7f",
    "tab": b"\t",
    "shift+tab": b"\x1b[Z",
    "escape": b"\x1b",
    "space": b" ",
    "up": b"\x1b[A",
    "down": b"\x1b[B",
    "right": b"\x1b[C",
    "left": b"\x1b[D",
    "home": b"\x1b[H",
    "end": b"\x1b[F",
    "pageup": b"\x1b[5~",
    "pagedown": b"\x1b[6~",
    "insert": b"\x1b[2~",
    "delete": b"\x1b[3~",
}

_CTRL_SYMBOLS: dict[str, int] = {
    "@": 0x00,
    "at": 0x00,
    "space": 0x00,
    "[": 0x1B,
    "left_square_bracket": 0x1B,
    "\\": 0x1C,
    "backslash": 0x1C,
    "]": 0x1D,
    "right_square_bracket": 0x1D,
    "^": 0x1E,
    "circumflex_accent": 0x1E,
    "_": 0x1F,
    "underscore": 0x1F,
}


def shell_bytes(key: str, character: str | None = None) -> bytes | None:
    """Bytes to send for a key press, or None when the key has no encoding."""
    special = _SPECIAL_KEYS.get(key)
    if special is not None:
        return special

    if key.startswith("ctrl+") and key.count("+") == 1:
        name = key[len("ctrl+"):]
        if len(name) == 1 and name.isalpha() and name.isascii():
            return bytes([ord(name.upper()) - ord("@")])
        code = _CTRL_SYMBOLS.get(name)
        if code is not None:
            return bytes([code])
        return None

    if character and character.isprintable():
        return character.encode("utf-8")
    return None
