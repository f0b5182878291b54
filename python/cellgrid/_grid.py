"""Grid: a dense, row-major array of cells plus cursor and layout state.

Evaluation is a whole-grid pass: every formula is evaluated against the
grid as it was before the pass, and the results are swapped in together.
A chain of N dependent formulas therefore needs N passes to settle.
There is no dependency tracking, so circular references never settle.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import unicodedata
from collections.abc import Iterator
from typing import TYPE_CHECKING, Union

from cellgrid._cell import Cell, Position
from cellgrid._content import (
    CellContent,
    Empty,
    FloatNumber,
    Formula,
    Number,
    Text,
    content_sort_key,
)
from cellgrid._csv import KNOWN_SEPARATORS, QUOTE, CsvFile
from cellgrid.calc._evaluator import PythonExpressionEvaluator

if TYPE_CHECKING:
    from cellgrid.calc._protocol import ExpressionEvaluator

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_WIDTH = 10

PositionLike = Union[Position, tuple[int, int]]


class GridInvariantError(RuntimeError):
    """The cell array no longer matches ``width * height``."""


def display_width(text: str) -> int:
    """Terminal columns taken by *text* (wide East Asian characters count 2)."""
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text)


def _quote_field(text: str, separator: str) -> str:
    if separator in text or QUOTE in text or "\n" in text:
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


class Grid:
    """Rectangular spreadsheet grid.

    Usage::

        grid = Grid.from_csv("1,=A0+1\\n")
        grid.cell_at((1, 0)).display()  # "2"
        grid.set_cursor((0, 1))
        for ch in "42":
            grid.input_char(ch)
    """

    __slots__ = (
        "_width", "_height", "_cells", "_cursor", "_column_widths",
        "_used", "_fixed_rows", "_path", "_evaluator",
    )

    def __init__(
        self,
        width: int,
        height: int,
        evaluator: ExpressionEvaluator | None = None,
    ) -> None:
        self._width = width
        self._height = height
        self._cells = [
            Cell(Empty(), Position(x, y)) for y in range(height) for x in range(width)
        ]
        self._cursor = Position(0, 0)
        self._column_widths = [DEFAULT_COLUMN_WIDTH] * width
        self._used = Position(0, 0)
        self._fixed_rows = 0
        self._path: str | None = None
        self._evaluator: ExpressionEvaluator = evaluator or PythonExpressionEvaluator()

    @classmethod
    def _from_cells(
        cls,
        width: int,
        height: int,
        cells: list[Cell],
        evaluator: ExpressionEvaluator | None = None,
    ) -> Grid:
        grid = cls(0, 0, evaluator)
        grid._width = width
        grid._height = height
        grid._cells = cells
        grid._column_widths = [DEFAULT_COLUMN_WIDTH] * width
        grid._used = Position(max(width - 1, 0), max(height - 1, 0))
        grid._check_size()
        return grid

    @classmethod
    def from_csv(cls, text: str, evaluator: ExpressionEvaluator | None = None) -> Grid:
        """Build a grid from delimited text, evaluating formulas until settled.

        Fields are stripped of surrounding whitespace and parsed with
        :meth:`CellContent.parse`.
        """
        csv = CsvFile.from_text(text)
        size = (csv.width, csv.height)
        cells: list[Cell] = []
        has_formulas = False
        for index, field in enumerate(csv.cells):
            position = Position.from_index(index, csv.width)
            raw = field.strip()
            content = CellContent.parse(raw, position, size)
            has_formulas = has_formulas or isinstance(content, Formula)
            cells.append(Cell(content, position))

        grid = cls._from_cells(csv.width, csv.height, cells, evaluator)
        if has_formulas:
            grid.settle()
        return grid

    @classmethod
    def load_xlsx(
        cls, path: str | os.PathLike[str], evaluator: ExpressionEvaluator | None = None
    ) -> Grid:
        from cellgrid._workbook import load_xlsx

        return load_xlsx(path, evaluator)

    def save_xlsx(self, path: str | os.PathLike[str]) -> None:
        from cellgrid._workbook import save_xlsx

        save_xlsx(self, path)
        self._path = str(path)

    # ------------------------------------------------------------------
    # Size and layout
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def used_bounds(self) -> Position:
        """Highest column and row written to; bounds :meth:`serialize_as_csv`."""
        return self._used

    @property
    def fixed_rows(self) -> int:
        return self._fixed_rows

    @property
    def evaluator(self) -> ExpressionEvaluator:
        return self._evaluator

    def fix_rows(self, count: int) -> None:
        """Pin the first *count* rows; they are left out of sorting."""
        self._fixed_rows = count

    def column_width(self, column: int) -> int:
        return self._column_widths[column]

    def set_column_width(self, column: int, width: int) -> None:
        self._column_widths[column] = width

    def fit_column_width(self, column: int) -> None:
        """Set a column's width to its widest displayed content plus one."""
        widest = max((display_width(row[column].display()) for row in self.rows()), default=0)
        self.set_column_width(column, widest + 1)

    def resize(self, width: int, height: int) -> None:
        """Grow the grid to ``width x height``; new cells are empty."""
        if width < self._width or height < self._height:
            raise ValueError(
                f"Cannot shrink grid from {self._width}x{self._height} to {width}x{height}"
            )
        cells: list[Cell] = []
        for y in range(height):
            for x in range(width):
                if x < self._width and y < self._height:
                    cells.append(self._cells[self._index(x, y)])
                else:
                    cells.append(Cell(Empty(), Position(x, y)))
        self._column_widths.extend([DEFAULT_COLUMN_WIDTH] * (width - self._width))
        self._cells = cells
        self._width = width
        self._height = height
        self._check_size()

    def _check_size(self) -> None:
        if len(self._cells) != self._width * self._height:
            raise GridInvariantError(
                f"Grid holds {len(self._cells)} cells, expected {self._width}x{self._height}"
            )

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def _index(self, column: int, row: int) -> int:
        return row * self._width + column

    def cell_at(self, position: PositionLike) -> Cell:
        column, row = position
        return self._cells[self._index(column, row)]

    def rows(self) -> list[list[Cell]]:
        return [
            self._cells[start:start + self._width]
            for start in range(0, len(self._cells), self._width)
        ] if self._width else []

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"<Grid {self._width}x{self._height} cursor={self._cursor.name}>"

    # ------------------------------------------------------------------
    # Cursor and editing
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, position: PositionLike) -> None:
        self._cursor = Position(*position)

    def current_cell(self) -> Cell:
        return self.cell_at(self._cursor)

    def move_cursor(self, dx: int, dy: int) -> bool:
        """Move the cursor, clamped to the grid. Returns False if clamped.

        On a grid without cells the cursor stays at ``A0``.
        """
        if not self._width or not self._height:
            return dx == 0 and dy == 0
        moved = True
        x = self._cursor.column + dx
        y = self._cursor.row + dy
        if x < 0 or x >= self._width:
            moved = False
            x = min(max(x, 0), self._width - 1)
        if y < 0 or y >= self._height:
            moved = False
            y = min(max(y, 0), self._height - 1)
        self._cursor = Position(x, y)
        return moved

    def _mark_used(self, position: Position) -> None:
        self._used = Position(
            max(position.column, self._used.column), max(position.row, self._used.row)
        )

    def input_char(self, ch: str) -> None:
        """Type *ch* into the cell under the cursor."""
        self._mark_used(self._cursor)
        cell = self.current_cell()
        cell.content = cell.content.input_char(ch, cell.position, self.size)

    def clear_current_cell(self) -> None:
        self.current_cell().content = Empty()

    def update_cell_at(self, position: PositionLike, content: CellContent) -> None:
        cell = self.cell_at(position)
        self._mark_used(cell.position)
        cell.content = content

    def recommended_cell_content(self, source: PositionLike) -> CellContent:
        """Content to paste at the cursor when copying from *source*.

        Integers count up by the distance moved, formulas have their
        references shifted, everything else is copied unchanged.
        """
        content = self.cell_at(source).content
        dx, dy = self._cursor - Position(*source)
        if isinstance(content, Number):
            return Number(content.value + dx + dy)
        if isinstance(content, Formula):
            return content.moved_to(self._cursor, self.size)
        if isinstance(content, (Empty, Text, FloatNumber)):
            return content
        raise TypeError(f"Unknown cell content: {content!r}")

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def sort_column(self, column: int) -> None:
        """Sort the unpinned rows by *column*, largest first.

        Rows are sorted ascending and then reversed, so text ends up on top,
        then numbers, then empty cells.
        """
        rows = self.rows()
        pinned, body = rows[:self._fixed_rows], rows[self._fixed_rows:]
        body.sort(key=lambda row: content_sort_key(row[column].content))
        body.reverse()
        cells = [cell for row in pinned + body for cell in row]
        for index, cell in enumerate(cells):
            cell.position = Position.from_index(index, self._width)
            if isinstance(cell.content, Formula):
                # Keep the formula's own position in step with its cell.
                cell.content = dataclasses.replace(cell.content, position=cell.position)
        self._cells = cells

    def find(self, text: str) -> Position | None:
        """Next text cell after the cursor containing *text*, wrapping around.

        The cell under the cursor itself is skipped, so moving the cursor to
        each result steps through every match.
        """
        start = self._index(*self._cursor)
        candidates = self._cells[start + 1:] + self._cells[:start]
        for cell in candidates:
            if isinstance(cell.content, Text) and text in cell.content.text:
                return cell.position
        return None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self) -> None:
        """Run one evaluation pass over every cell.

        All formulas read the grid as it was before the pass; the new
        contents replace the old ones only once every cell is done.
        """
        cells = [
            Cell(cell.content.evaluated(self, self._evaluator), cell.position, cell.unit)
            for cell in self._cells
        ]
        self._cells = cells

    def settle(self, passes: int | None = None) -> None:
        """Evaluate repeatedly; by default once per cell.

        Enough passes for any chain of dependent formulas no longer than the
        number of cells. Circular references do not settle.
        """
        if passes is None:
            passes = self._width * self._height
        for _ in range(passes):
            self.evaluate()
        logger.debug("Ran %d evaluation passes over %r", passes, self)

    # ------------------------------------------------------------------
    # Text output
    # ------------------------------------------------------------------

    def serialize_as_csv(self, separator: str = KNOWN_SEPARATORS[0]) -> str:
        """Write the used part of the grid as delimited text.

        Formulas are written as ``=raw`` so the text loads back with
        :meth:`from_csv`.
        """
        lines: list[str] = []
        for row in self.rows()[:self._used.row + 1]:
            fields = [
                _quote_field(cell.long_display(), separator)
                for cell in row[:self._used.column + 1]
            ]
            lines.append(separator.join(fields))
        return "".join(line + "\n" for line in lines)
