"""Workbook adapter: load/save a Grid as .xlsx via openpyxl.

Only the first worksheet is used. Workbook coordinates are 1-based with
bijective column letters (``AA`` follows ``Z``); grid coordinates are
0-based, so conversion goes through numeric indices, never through names.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import openpyxl
from openpyxl.utils.cell import column_index_from_string, coordinate_from_string, get_column_letter

from cellgrid._cell import Cell, Position
from cellgrid._content import CellContent, Empty, FloatNumber, Formula, Number, Text
from cellgrid._grid import DEFAULT_COLUMN_WIDTH, Grid
from cellgrid._units import UnitKind

if TYPE_CHECKING:
    from cellgrid.calc._protocol import ExpressionEvaluator

logger = logging.getLogger(__name__)

SHEET_TITLE = "Sheet1"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _unit_of(number_format: str | None) -> UnitKind:
    try:
        return UnitKind.from_number_format(number_format)
    except ValueError:
        return UnitKind.NONE


def _workbook_value(content: CellContent) -> Any:
    """The value written to the workbook for *content*."""
    if isinstance(content, Empty):
        return None
    if isinstance(content, (Number, FloatNumber)):
        return content.value
    if isinstance(content, Text):
        return content.text
    if isinstance(content, Formula):
        return content.long_display()
    raise TypeError(f"Unknown cell content: {content!r}")


def _active_position(coordinate: str | None, width: int, height: int) -> Position:
    if not coordinate:
        return Position(0, 0)
    # "A1:B2" style selections start at the first cell.
    letters, row = coordinate_from_string(coordinate.split(":")[0].split(" ")[0])
    column = column_index_from_string(letters) - 1
    return Position(min(column, max(width - 1, 0)), min(row - 1, max(height - 1, 0)))


def load_xlsx(
    path: str | os.PathLike[str], evaluator: ExpressionEvaluator | None = None
) -> Grid:
    """Read the first worksheet of an .xlsx file into a Grid.

    Formulas are evaluated until settled. Column widths that the workbook
    does not set default to ``DEFAULT_COLUMN_WIDTH``; number formats other
    than general and US dollars are shown without a unit.
    """
    logger.info("Loading workbook %s", path)
    wb = openpyxl.load_workbook(str(path))
    try:
        ws = wb.worksheets[0]
        width, height = ws.max_column, ws.max_row
        size = (width, height)
        cells: list[Cell] = []
        has_formulas = False
        for y in range(height):
            for x in range(width):
                source = ws.cell(row=y + 1, column=x + 1)
                position = Position(x, y)
                content = CellContent.parse(_cell_text(source.value), position, size)
                has_formulas = has_formulas or isinstance(content, Formula)
                cells.append(Cell(content, position, _unit_of(source.number_format)))

        grid = Grid._from_cells(width, height, cells, evaluator)  # noqa: SLF001
        for x in range(width):
            letter = get_column_letter(x + 1)
            if letter in ws.column_dimensions and ws.column_dimensions[letter].width:
                grid.set_column_width(x, int(ws.column_dimensions[letter].width))
            else:
                grid.set_column_width(x, DEFAULT_COLUMN_WIDTH)
        grid.set_cursor(_active_position(ws.active_cell, width, height))
        grid._path = str(path)  # noqa: SLF001
    finally:
        wb.close()

    if has_formulas:
        grid.settle()
    return grid


def save_xlsx(grid: Grid, path: str | os.PathLike[str]) -> None:
    """Write *grid* to an .xlsx file.

    Formulas are stored as ``=raw`` text, numbers as numbers, and each
    cell's unit as its number format.
    """
    logger.info("Saving %r to %s", grid, path)
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    for x in range(grid.width):
        ws.column_dimensions[get_column_letter(x + 1)].width = grid.column_width(x)
        for y in range(grid.height):
            cell = grid.cell_at((x, y))
            target = ws.cell(row=y + 1, column=x + 1)
            target.value = _workbook_value(cell.content)
            target.number_format = cell.unit.number_format

    cursor = grid.cursor
    coordinate = f"{get_column_letter(cursor.column + 1)}{cursor.row + 1}"
    selection = ws.sheet_view.selection[0]
    selection.activeCell = coordinate
    selection.sqref = coordinate
    wb.save(str(path))
