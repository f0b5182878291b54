"""Delimited-text ingestion with separator auto-detection.

Each known separator is tried with a sizing pass; the one giving the most
columns (then the most rows) wins and the text is parsed again with it::

    csv = CsvFile.from_text("a;b;c\\n1;2;3\\n")
    csv.separator, csv.width, csv.height  # (";", 3, 2)
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)

KNOWN_SEPARATORS = (",", ";", "\t")
QUOTE = '"'


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CsvParseError(ValueError):
    """Delimited text could not be parsed with ``separator``."""

    def __init__(self, message: str, separator: str | None = None, line: int | None = None) -> None:
        super().__init__(message)
        self.separator = separator
        self.line = line


class NoCellsFound(CsvParseError):
    """The text has no rows or no columns."""


class InvalidEscaping(CsvParseError):
    """Text right after the closing quote of a quoted field."""


class UnfinishedEscaping(CsvParseError):
    """A line ended inside a quoted field."""


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class _State(enum.Enum):
    NEW_CELL = enum.auto()
    IN_CELL = enum.auto()
    IN_CELL_ESCAPED = enum.auto()
    IN_CELL_END_ESCAPE = enum.auto()


def _lines(text: str) -> Iterator[str]:
    """Split on ``\\n`` (dropping a trailing ``\\r``); no line after a final newline."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for line in lines:
        yield line[:-1] if line.endswith("\r") else line


def _split_line(line: str, separator: str, line_number: int) -> tuple[list[str], bool]:
    """Split one line into fields.

    Returns ``(fields, has_content)`` where *has_content* is False for a line
    made of nothing but separators.
    """
    fields: list[str] = []
    current: list[str] = []
    has_content = False
    state = _State.NEW_CELL

    def fail(error: type[CsvParseError], message: str) -> CsvParseError:
        return error(
            f"{message} (line {line_number}, separator {separator!r})",
            separator=separator,
            line=line_number,
        )

    for ch in line:
        if ch == QUOTE:
            has_content = True
            if state is _State.IN_CELL:
                # Literal quote inside an unquoted field.
                current.append(QUOTE)
            elif state is _State.IN_CELL_ESCAPED:
                state = _State.IN_CELL_END_ESCAPE
            else:
                if state is _State.IN_CELL_END_ESCAPE:
                    # Doubled quote inside a quoted field.
                    current.append(QUOTE)
                state = _State.IN_CELL_ESCAPED
        elif ch == separator and state is not _State.IN_CELL_ESCAPED:
            fields.append("".join(current))
            current = []
            state = _State.NEW_CELL
        else:
            if state is _State.IN_CELL_END_ESCAPE:
                raise fail(InvalidEscaping, f"Unexpected {ch!r} after closing quote")
            if state is _State.NEW_CELL:
                state = _State.IN_CELL
            has_content = True
            current.append(ch)

    if state is _State.IN_CELL_ESCAPED:
        raise fail(UnfinishedEscaping, "Line ends inside a quoted field")
    fields.append("".join(current))
    return fields, has_content


def _rows(text: str, separator: str) -> Iterator[list[str]]:
    for line_number, line in enumerate(_lines(text), start=1):
        fields, has_content = _split_line(line, separator, line_number)
        if has_content:
            yield fields


def size_of(text: str, separator: str) -> tuple[int, int]:
    """Sizing pass: ``(width, height)`` of *text* split on *separator*.

    Raises a CsvParseError subclass when the text does not parse.
    """
    width = 0
    height = 0
    for fields in _rows(text, separator):
        width = max(width, len(fields))
        height += 1
    if width == 0 or height == 0:
        raise NoCellsFound("No cells found", separator=separator)
    return width, height


# ---------------------------------------------------------------------------
# CsvFile
# ---------------------------------------------------------------------------


@dataclass
class CsvFile:
    """A rectangular grid of string fields, row-major."""

    cells: list[str]
    width: int
    height: int
    separator: str

    @classmethod
    def from_text(cls, text: str) -> CsvFile:
        """Detect the separator and parse *text*.

        Raises the most telling error of the attempts when no separator works:
        an escaping error if one occurred, else the first error.
        """
        sizes: list[tuple[tuple[int, int], str]] = []
        errors: list[CsvParseError] = []
        for separator in KNOWN_SEPARATORS:
            try:
                sizes.append((size_of(text, separator), separator))
            except CsvParseError as e:
                logger.debug("Separator %r rejected: %s", separator, e)
                errors.append(e)

        if not sizes:
            escaping = [e for e in errors if not isinstance(e, NoCellsFound)]
            raise (escaping or errors)[0]

        # max() keeps the first of equal sizes, so earlier separators win ties.
        (width, height), separator = max(sizes, key=lambda item: item[0])
        return cls.parse(text, separator, width, height)

    @classmethod
    def parse(cls, text: str, separator: str, width: int, height: int) -> CsvFile:
        """Parse pass with a known separator and size; short rows are padded."""
        cells: list[str] = []
        for fields in _rows(text, separator):
            cells.extend(fields)
            cells.extend([""] * (width - len(fields)))
        if len(cells) != width * height:
            raise RuntimeError(
                f"Parsed {len(cells)} fields, expected {width}x{height} with {separator!r}"
            )
        return cls(cells, width, height, separator)

    def rows(self) -> Iterator[list[str]]:
        for start in range(0, len(self.cells), self.width):
            yield self.cells[start:start + self.width]

    def __getitem__(self, position: tuple[int, int]) -> str:
        column, row = position
        return self.cells[row * self.width + column]
