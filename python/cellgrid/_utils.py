"""Cell addressing: column letters, cell names and positions.

Columns are encoded as plain base-26 digits (``A`` = 0 ... ``Z`` = 25,
``BA`` = 26). Rows are zero-based, so ``A0`` is the top-left cell.
"""

from __future__ import annotations

import string

_LETTERS = string.ascii_uppercase


def column_letter(index: int) -> str:
    """Column index -> letters, e.g. ``0`` -> ``"A"``, ``27`` -> ``"BB"``."""
    if index < 0:
        raise ValueError(f"Column index must not be negative: {index}")
    letters: list[str] = []
    while index >= 26:
        letters.append(_LETTERS[index % 26])
        index //= 26
    letters.append(_LETTERS[index])
    return "".join(reversed(letters))


def column_index(name: str) -> int:
    """Letters -> column index (case-insensitive).

    Raises ValueError for an empty string or any non-ASCII-letter character.
    """
    if not name:
        raise ValueError("Empty column name")
    result = 0
    for ch in name:
        if ch not in string.ascii_letters:
            raise ValueError(f"Invalid column name: {name!r}")
        result = result * 26 + (ord(ch.upper()) - ord("A"))
    return result


def a1_to_position(name: str) -> tuple[int, int]:
    """Convert a cell name like ``"C12"`` to a ``(column, row)`` tuple.

    The column part must be upper-case letters and the row part must be a
    plain run of decimal digits with nothing after it.
    """
    column = 0
    i = 0
    while i < len(name) and name[i] in _LETTERS:
        column = column * 26 + (ord(name[i]) - ord("A"))
        i += 1
    if i == 0:
        raise ValueError(f"Invalid cell name: {name!r}")
    row_part = name[i:]
    if not row_part or not all(ch in string.digits for ch in row_part):
        raise ValueError(f"Invalid cell name: {name!r}")
    return column, int(row_part)


def position_to_a1(column: int, row: int) -> str:
    """Convert ``(column, row)`` to a cell name like ``"C12"``."""
    if row < 0:
        raise ValueError(f"Row must not be negative: {row}")
    return f"{column_letter(column)}{row}"
