"""Display units attached to cells (mapped to workbook number formats)."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from openpyxl.styles.numbers import FORMAT_CURRENCY_USD, FORMAT_GENERAL

if TYPE_CHECKING:
    from cellgrid._content import CellContent


class UnitKind(enum.Enum):
    NONE = ""
    DOLLAR = "$"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_number_format(cls, number_format: str | None) -> UnitKind:
        """Map a workbook number format code to a unit.

        Raises ValueError for formats without a matching unit.
        """
        if number_format is None or number_format == FORMAT_GENERAL:
            return cls.NONE
        if number_format == FORMAT_CURRENCY_USD:
            return cls.DOLLAR
        raise ValueError(f"Unsupported number format: {number_format!r}")

    @property
    def number_format(self) -> str:
        if self is UnitKind.DOLLAR:
            return FORMAT_CURRENCY_USD
        return FORMAT_GENERAL

    def format_integer(self, value: int) -> str:
        # Dollar amounts are stored as integer cents.
        if self is UnitKind.DOLLAR:
            return f"$ {value * 0.01:.2f}"
        return str(value)

    def display(self, content: CellContent) -> str:
        """Short display of *content* in this unit."""
        from cellgrid._content import Formula, Number

        if isinstance(content, Number):
            return self.format_integer(content.value)
        if isinstance(content, Formula) and type(content.value) is int:
            return self.format_integer(content.value)
        return content.display()
