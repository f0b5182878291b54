"""Cell contents: empty, text, integer, decimal and formula.

Contents are immutable. Editing a cell replaces its content with the result
of :meth:`CellContent.input_char`, which implements the typing rules::

    Empty  --digit-->  Number  --'.'-->  FloatNumber
      |                  |                   |
      |'='               +--other--> Text <--+--other
      v
    Formula (text is appended and re-parsed)
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from cellgrid._cell import Position
from cellgrid.calc._evaluator import build_bindings, coerce_value
from cellgrid.calc._parser import FormulaSyntaxError, Reference, parse_raw, relocate
from cellgrid.calc._protocol import ERROR, FormulaError, Scalar, Value

if TYPE_CHECKING:
    from cellgrid._grid import Grid
    from cellgrid.calc._protocol import ExpressionEvaluator

logger = logging.getLogger(__name__)

EMPTY_PLACEHOLDER = "Insert text.."
ERROR_DISPLAY = "#error"

_DIGITS = "0123456789"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def format_float(value: float) -> str:
    """Render a float the way cells show it: ``1.0`` -> ``"1"``, ``1.5`` -> ``"1.5"``."""
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def format_value(value: Value) -> str:
    if value is None:
        return ""
    if isinstance(value, FormulaError):
        return ERROR_DISPLAY
    if isinstance(value, float):
        return format_float(value)
    return str(value)


class CellContent:
    """Base class of all cell contents."""

    __slots__ = ()

    @staticmethod
    def parse(raw: str, position: Position, grid_size: tuple[int, int]) -> CellContent:
        """Build content from stored text (CSV field, workbook value, ...).

        ``""`` is empty, a leading ``=`` makes a formula, then integers and
        decimals are recognised; anything else is text.
        """
        if not raw:
            return Empty()
        if raw.startswith("="):
            return Formula.parse(raw[1:], position, grid_size)
        if _INT_RE.fullmatch(raw):
            return Number(int(raw))
        if _FLOAT_RE.fullmatch(raw) and math.isfinite(float(raw)):
            return FloatNumber(float(raw))
        return Text(raw)

    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        raise NotImplementedError

    def is_empty(self) -> bool:
        return False

    def is_error(self) -> bool:
        return False

    def is_right_aligned(self) -> bool:
        return False

    def display(self) -> str:
        """Short form: the scalar, or a formula's current value."""
        raise NotImplementedError

    def long_display(self) -> str:
        """Editable form: ``=raw`` for formulas, the scalar otherwise."""
        return self.display()

    def status_display(self) -> str:
        return self.long_display()

    def to_scalar(self) -> Optional[Scalar]:
        """The value other formulas see, or None when there is none."""
        return None

    def evaluated(self, grid: Grid, evaluator: ExpressionEvaluator) -> CellContent:
        return self


@dataclass(frozen=True)
class Empty(CellContent):
    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        if ch in _DIGITS:
            return Number(int(ch))
        if ch == "=":
            return Formula.new_at(position)
        if ch == ".":
            return FloatNumber(0.0, 1)
        return Text(ch)

    def is_empty(self) -> bool:
        return True

    def display(self) -> str:
        return ""

    def status_display(self) -> str:
        return EMPTY_PLACEHOLDER


@dataclass(frozen=True)
class Text(CellContent):
    text: str

    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        return Text(self.text + ch)

    def display(self) -> str:
        return self.text

    def to_scalar(self) -> Optional[Scalar]:
        return self.text


@dataclass(frozen=True)
class Number(CellContent):
    value: int

    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        if ch in _DIGITS:
            return Number(self.value * 10 + int(ch))
        if ch == ".":
            return FloatNumber(float(self.value), 1)
        return Text(f"{self.value}{ch}")

    def is_right_aligned(self) -> bool:
        return True

    def display(self) -> str:
        return str(self.value)

    def to_scalar(self) -> Optional[Scalar]:
        return self.value


@dataclass(frozen=True)
class FloatNumber(CellContent):
    """A decimal number.

    ``digits`` is typing state, not precision: the power of ten the next
    typed digit is divided by. Parsed numbers start at 0.
    """

    value: float
    digits: int = 0

    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        if ch in _DIGITS:
            return FloatNumber(self.value + int(ch) / 10**self.digits, self.digits + 1)
        return Text(f"{format_float(self.value)}{ch}")

    def is_right_aligned(self) -> bool:
        return True

    def display(self) -> str:
        return format_float(self.value)

    def to_scalar(self) -> Optional[Scalar]:
        return self.value


@dataclass(frozen=True)
class Formula(CellContent):
    """A formula cell.

    ``raw`` is the text after ``=``; ``parsed`` the Python expression given
    to the evaluator; ``references`` are in raw-text order. ``value`` is the
    result of the last evaluation pass (None until evaluated).
    """

    position: Position
    raw: str = ""
    parsed: str = ""
    references: tuple[Reference, ...] = ()
    value: Value = None

    @classmethod
    def new_at(cls, position: Position) -> Formula:
        return cls(position)

    @classmethod
    def parse(cls, raw: str, position: Position, grid_size: tuple[int, int]) -> Formula:
        """Formula with expression and references derived from *raw*.

        Text that does not parse, such as a half typed range (``A1:``), is
        kept as-is; the formula then has no expression and no references.
        """
        try:
            parsed, references = parse_raw(raw, grid_size)
        except FormulaSyntaxError as e:
            logger.debug("Incomplete formula %r at %s: %s", raw, position.name, e)
            return cls(position, raw)
        return cls(position, raw, parsed, references)

    def input_char(
        self, ch: str, position: Position, grid_size: tuple[int, int]
    ) -> CellContent:
        return self.push_char(ch, grid_size)

    def push_char(self, ch: str, grid_size: tuple[int, int]) -> Formula:
        """Append *ch* to the raw text and re-derive expression and references."""
        typed = Formula.parse(self.raw + ch, self.position, grid_size)
        return dataclasses.replace(typed, value=self.value)

    def moved_to(self, position: Position, grid_size: tuple[int, int]) -> Formula:
        """Copy of this formula at *position* with every reference shifted.

        Raises ReferenceOutOfBounds if a reference would leave the grid and
        RelocationError if the rewritten text disagrees with the shift. The
        copy has no value and must be evaluated again. Incomplete formulas
        have nothing to shift and are copied unchanged.
        """
        if not self.parsed:
            return Formula.parse(self.raw, position, grid_size)
        raw, parsed, references = relocate(
            self.raw, self.references, position - self.position, grid_size
        )
        return Formula(position, raw, parsed, references)

    def evaluated(self, grid: Grid, evaluator: ExpressionEvaluator) -> Formula:
        if not self.parsed:
            return dataclasses.replace(self, value=None)
        bindings, columns = build_bindings(grid, self.position)
        try:
            value = coerce_value(evaluator.evaluate(self.parsed, bindings, columns))
        except Exception as e:
            logger.debug("Cannot evaluate %r in %s: %s", self.parsed, self.position.name, e)
            value = ERROR
        return dataclasses.replace(self, value=value)

    def is_error(self) -> bool:
        return self.value is ERROR

    def is_right_aligned(self) -> bool:
        return self.value is ERROR or _is_number(self.value)

    def display(self) -> str:
        return format_value(self.value)

    def long_display(self) -> str:
        return f"={self.raw}"

    def to_scalar(self) -> Optional[Scalar]:
        if isinstance(self.value, (str, int, float)):
            return self.value
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

_VOID, _EMPTY, _NUMBER, _TEXT = range(4)


def _rank(content: CellContent) -> tuple[int, Any]:
    if isinstance(content, Empty):
        return _EMPTY, None
    if isinstance(content, Text):
        return _TEXT, content.text
    if isinstance(content, (Number, FloatNumber)):
        return _NUMBER, content.value
    if isinstance(content, Formula):
        if isinstance(content.value, str):
            return _TEXT, content.value
        if _is_number(content.value):
            return _NUMBER, content.value
        return _VOID, None
    raise TypeError(f"Unknown cell content: {content!r}")


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_content(a: CellContent, b: CellContent) -> int:
    """Sort order of cell contents: ``-1``, ``0`` or ``1``.

    Empty < numbers < text. Numbers compare by value, text in reverse
    alphabetical order. A formula compares by its value; a formula with no
    value or an error value is less than everything, including another such
    formula, so this is not a strict total order.
    """
    rank_a, value_a = _rank(a)
    rank_b, value_b = _rank(b)
    if rank_a == _VOID:
        return -1
    if rank_a == _EMPTY:
        return 0 if rank_b == _EMPTY else -1
    if rank_b in (_EMPTY, _VOID):
        return 1
    if rank_a == _TEXT:
        return _cmp(value_b, value_a) if rank_b == _TEXT else 1
    if rank_b == _TEXT:
        return -1
    return _cmp(float(value_a), float(value_b))


content_sort_key = functools.cmp_to_key(compare_content)
