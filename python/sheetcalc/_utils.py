"""A1-style cell coordinate helpers."""

from __future__ import annotations


def column_index(letters: str) -> int:
    """``"a"`` -> 1, ``"z"`` -> 26, ``"aa"`` -> 27."""
    if not letters or not letters.isalpha() or not letters.isascii():
        raise ValueError(f"Invalid column letters: {letters!r}")
    idx = 0
    for ch in letters.lower():
        idx = idx * 26 + (ord(ch) - ord("a") + 1)
    return idx


def column_letters(col: int) -> str:
    """1 -> ``"a"``, 27 -> ``"aa"``."""
    if col < 1:
        raise ValueError(f"Column index must be >= 1, got {col}")
    letters = ""
    while col:
        col, rem = divmod(col - 1, 26)
        letters = chr(ord("a") + rem) + letters
    return letters

