"""Grid positions and cells."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cellgrid._units import UnitKind
from cellgrid._utils import a1_to_position, position_to_a1

if TYPE_CHECKING:
    from cellgrid._content import CellContent


@functools.total_ordering
@dataclass(frozen=True)
class Position:
    """Zero-based ``(column, row)`` address, ordered row-major."""

    column: int
    row: int

    @classmethod
    def parse(cls, name: str) -> Position:
        return cls(*a1_to_position(name))

    @classmethod
    def from_index(cls, index: int, width: int) -> Position:
        return cls(index % width, index // width)

    @property
    def name(self) -> str:
        return position_to_a1(self.column, self.row)

    def shifted(self, dx: int, dy: int) -> Position:
        return Position(self.column + dx, self.row + dy)

    def __sub__(self, other: Position) -> tuple[int, int]:
        return self.column - other.column, self.row - other.row

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return (self.row, self.column) < (other.row, other.column)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter((self.column, self.row))


@functools.total_ordering
class Cell:
    """A grid cell. Identity is positional: equality, ordering and hashing
    only look at ``position``."""

    __slots__ = ("content", "position", "unit")

    def __init__(
        self,
        content: CellContent,
        position: Position,
        unit: UnitKind = UnitKind.NONE,
    ) -> None:
        self.content = content
        self.position = position
        self.unit = unit

    @property
    def column(self) -> int:
        return self.position.column

    @property
    def row(self) -> int:
        return self.position.row

    @property
    def name(self) -> str:
        return self.position.name

    def is_empty(self) -> bool:
        return self.content.is_empty()

    def is_error(self) -> bool:
        return self.content.is_error()

    def is_right_aligned(self) -> bool:
        return self.content.is_right_aligned()

    def display(self) -> str:
        """Short display form, honouring the cell's unit."""
        return self.unit.display(self.content)

    def long_display(self) -> str:
        return self.content.long_display()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self.position == other.position

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self.position < other.position

    def __hash__(self) -> int:
        return hash(self.position)

    def __repr__(self) -> str:
        return f"<Cell {self.name} {self.content!r}>"
