"""cellgrid: a grid of typed cells with relocatable formulas.

Usage::

    from cellgrid import Grid

    grid = Grid.from_csv("price;qty;total\\n3;4;=A1*B1\\n")
    print(grid.cell_at((2, 1)).display())  # 12

    # Copy the formula one row down: references shift with it.
    grid.resize(3, 3)
    grid.update_cell_at((0, 2), grid.cell_at((0, 1)).content)
    grid.set_cursor((2, 2))
    grid.update_cell_at((2, 2), grid.recommended_cell_content((2, 1)))
    grid.cell_at((2, 2)).long_display()  # "=A2*B2"
"""

from cellgrid._cell import Cell, Position
from cellgrid._content import (
    CellContent,
    Empty,
    FloatNumber,
    Formula,
    Number,
    Text,
    compare_content,
    content_sort_key,
)
from cellgrid._csv import CsvFile, CsvParseError, InvalidEscaping, NoCellsFound, UnfinishedEscaping
from cellgrid._grid import DEFAULT_COLUMN_WIDTH, Grid, GridInvariantError
from cellgrid._units import UnitKind
from cellgrid._utils import a1_to_position, column_index, column_letter, position_to_a1
from cellgrid._workbook import load_xlsx, save_xlsx
from cellgrid.calc import (
    ERROR,
    ExpressionEvaluator,
    FormulaSyntaxError,
    PythonExpressionEvaluator,
    ReferenceOutOfBounds,
    RelocationError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Cell",
    "CellContent",
    "CsvFile",
    "CsvParseError",
    "DEFAULT_COLUMN_WIDTH",
    "ERROR",
    "Empty",
    "ExpressionEvaluator",
    "FloatNumber",
    "Formula",
    "FormulaSyntaxError",
    "Grid",
    "GridInvariantError",
    "InvalidEscaping",
    "NoCellsFound",
    "Number",
    "Position",
    "PythonExpressionEvaluator",
    "ReferenceOutOfBounds",
    "RelocationError",
    "Text",
    "UnfinishedEscaping",
    "UnitKind",
    "a1_to_position",
    "column_index",
    "column_letter",
    "compare_content",
    "content_sort_key",
    "load_xlsx",
    "position_to_a1",
    "save_xlsx",
]
