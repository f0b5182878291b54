"""Formula reference engine: tokenize raw formula text, relocate formulas.

A formula is kept as its raw text plus two derived pieces: the Python
expression handed to the evaluator, and the references in the order they
appear in the raw text. Relocation rewrites the raw text in place and then
re-parses it to check that both views still agree.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from typing import Union

from cellgrid._cell import Position
from cellgrid._utils import a1_to_position, column_index, column_letter

logger = logging.getLogger(__name__)

SEPARATORS = frozenset(" ()*-+/,.;[]%!")
RANGE_SEPARATOR = ":"

# Characters that may sit directly next to a reference in raw text.
_BOUNDARIES = SEPARATORS | {RANGE_SEPARATOR}


class FormulaSyntaxError(ValueError):
    """A range whose first endpoint is a cell but whose second is neither a
    cell nor a row number, e.g. ``A1:foo``."""


class ReferenceOutOfBounds(ValueError):
    """Relocating a formula would move a reference off the grid."""


class RelocationError(RuntimeError):
    """The relocated raw text no longer parses to the shifted references."""


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CellReference:
    position: Position

    @property
    def text(self) -> str:
        return self.position.name

    def shifted(self, dx: int, dy: int, grid_size: tuple[int, int]) -> CellReference:
        column, row = self.position.column + dx, self.position.row + dy
        if column < 0 or row < 0:
            raise ReferenceOutOfBounds(
                f"Reference {self.text} cannot move by ({dx}, {dy})"
            )
        return CellReference(Position(column, row))


@dataclass(frozen=True)
class RowReference:
    row: int

    @property
    def text(self) -> str:
        return str(self.row)

    def shifted(self, dx: int, dy: int, grid_size: tuple[int, int]) -> RowReference:
        if self.row + dy < 0:
            raise ReferenceOutOfBounds(f"Row reference {self.text} cannot move by {dy}")
        return RowReference(self.row + dy)


@dataclass(frozen=True)
class ColumnReference:
    column: int

    @property
    def text(self) -> str:
        return column_letter(self.column)

    def shifted(self, dx: int, dy: int, grid_size: tuple[int, int]) -> ColumnReference:
        # Column names past the grid width are not references when re-parsed.
        column = self.column + dx
        if column < 0 or column >= grid_size[0]:
            raise ReferenceOutOfBounds(
                f"Column reference {self.text} cannot move by {dx}"
            )
        return ColumnReference(column)


Reference = Union[CellReference, RowReference, ColumnReference]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _try_cell(token: str) -> Position | None:
    try:
        return Position(*a1_to_position(token))
    except ValueError:
        return None


def _column_slice(column: int, start: int, stop: int) -> str:
    return f"{column_letter(column)}[{start}:{stop}]"


def _resolve_range(start: Position, token: str, references: list[Reference]) -> str:
    """Emit references for ``start:token`` and return its expression."""
    references.append(CellReference(start))
    end = _try_cell(token)
    if end is not None:
        references.append(CellReference(end))
        return " + ".join(
            _column_slice(x, start.row, end.row + 1)
            for x in range(start.column, end.column + 1)
        )
    if token and all(ch in string.digits for ch in token):
        row = int(token)
        references.append(RowReference(row))
        return _column_slice(start.column, start.row, row + 1)
    raise FormulaSyntaxError(f"Invalid range end after {start.name}: {token!r}")


def _resolve_token(token: str, width: int, references: list[Reference]) -> str:
    cell = _try_cell(token)
    if cell is not None:
        references.append(CellReference(cell))
        return token
    # Lower-case names (math, sum, ...) are left to the evaluator.
    if not all(ch in string.ascii_uppercase for ch in token):
        return token
    try:
        column = column_index(token)
    except ValueError:
        return token
    if column < width:
        references.append(ColumnReference(column))
    return token


def parse_raw(raw: str, grid_size: tuple[int, int]) -> tuple[str, tuple[Reference, ...]]:
    """Split *raw* (formula text without ``=``) into expression and references.

    Cell names become references and are kept as-is in the expression.
    Ranges are rewritten to column slices: ``A1:B3`` becomes
    ``A[1:4] + B[1:4]`` and ``A1:5`` becomes ``A[1:6]``. Bare column names
    are references only when they fall inside the grid width.

    References are returned in the order they occur in *raw*.
    """
    width = grid_size[0]
    expression = ""
    token = ""
    range_start: Position | None = None
    references: list[Reference] = []

    for ch in raw:
        if ch == RANGE_SEPARATOR:
            range_start = _try_cell(token)
            token = ""
        elif ch in SEPARATORS:
            if range_start is not None:
                expression += _resolve_range(range_start, token, references)
                range_start = None
            else:
                expression += _resolve_token(token, width, references)
            token = ""
            # Leading whitespace is dropped.
            if expression or not ch.isspace():
                expression += ch
        else:
            token += ch

    if range_start is not None:
        expression += _resolve_range(range_start, token, references)
    else:
        expression += _resolve_token(token, width, references)

    return expression, tuple(references)


# ---------------------------------------------------------------------------
# Relocation
# ---------------------------------------------------------------------------


def _find_reference(raw: str, text: str, start: int) -> int:
    """Index of the next whole-token occurrence of *text* at or after *start*."""
    index = raw.find(text, start)
    while index >= 0:
        end = index + len(text)
        before_ok = index == 0 or raw[index - 1] in _BOUNDARIES
        after_ok = end == len(raw) or raw[end] in _BOUNDARIES
        if before_ok and after_ok:
            return index
        index = raw.find(text, index + 1)
    return -1


def relocate(
    raw: str,
    references: tuple[Reference, ...],
    offset: tuple[int, int],
    grid_size: tuple[int, int],
) -> tuple[str, str, tuple[Reference, ...]]:
    """Shift every reference in *raw* by *offset* = ``(dx, dy)``.

    Walks *references* in order, replacing each one's next occurrence after
    a cursor that only moves forward. The rewritten text is parsed again and
    must yield exactly the shifted references.

    Returns ``(raw, expression, references)``.
    """
    dx, dy = offset
    cursor = 0
    shifted: list[Reference] = []
    new_raw = raw
    for ref in references:
        moved = ref.shifted(dx, dy, grid_size)
        old_text, new_text = ref.text, moved.text
        index = _find_reference(new_raw, old_text, cursor)
        if index < 0:
            raise RelocationError(
                f"Reference {old_text!r} not found in {new_raw!r} after offset {cursor}"
            )
        new_raw = new_raw[:index] + new_text + new_raw[index + len(old_text):]
        cursor = index + len(new_text)
        shifted.append(moved)

    expression, reparsed = parse_raw(new_raw, grid_size)
    if reparsed != tuple(shifted):
        raise RelocationError(
            f"Relocated references {shifted!r} do not match re-parsed {list(reparsed)!r} "
            f"(raw {raw!r} -> {new_raw!r}, expression {expression!r})"
        )
    logger.debug("Relocated %r by %s -> %r", raw, offset, new_raw)
    return new_raw, expression, tuple(shifted)
