"""Evaluator bindings and the default Python expression evaluator.

Formula expressions produced by :func:`cellgrid.calc.parse_raw` are plain
Python: cell names are variables (``A1 + B2``) and columns are lists that
ranges slice into (``sum(A[0:3])``). :class:`PythonExpressionEvaluator`
executes them with ``eval`` against a namespace holding only the bindings,
a few safe builtins and the configured modules.
"""

from __future__ import annotations

import builtins
import importlib
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from cellgrid._utils import column_letter
from cellgrid.calc._protocol import ERROR, FormulaError, Scalar, Value

if TYPE_CHECKING:
    from cellgrid._cell import Position
    from cellgrid._grid import Grid

logger = logging.getLogger(__name__)

DEFAULT_MODULES = ("math", "random")

_SAFE_BUILTINS = {
    name: getattr(builtins, name)
    for name in (
        "abs", "all", "any", "bool", "divmod", "enumerate", "filter", "float",
        "int", "len", "list", "map", "max", "min", "pow", "range", "reversed",
        "round", "sorted", "str", "sum", "tuple", "zip",
    )
}


def build_bindings(
    grid: Grid, exclude: Position
) -> tuple[dict[str, Scalar], dict[str, list[Scalar]]]:
    """Collect evaluator bindings from *grid*, skipping the cell at *exclude*.

    Returns ``(bindings, columns)``: every non-empty cell's scalar under its
    upper- and lower-case name, and per column (both cases) the list of
    non-empty scalars in row order.
    """
    bindings: dict[str, Scalar] = {}
    column_values: list[list[Scalar]] = [[] for _ in range(grid.width)]
    for cell in grid:
        if cell.position == exclude:
            continue
        value = cell.content.to_scalar()
        if value is None:
            continue
        name = cell.name
        bindings[name] = value
        bindings[name.lower()] = value
        column_values[cell.column].append(value)

    columns: dict[str, list[Scalar]] = {}
    for index, values in enumerate(column_values):
        name = column_letter(index)
        columns[name] = list(values)
        columns[name.lower()] = list(values)
    return bindings, columns


def coerce_value(result: Any) -> Value:
    """Map an evaluation result onto a formula Value.

    Strings, integers and floats pass through (booleans become integers);
    :data:`ERROR` stays an error; anything else is not a scalar and becomes
    :data:`ERROR`.
    """
    if isinstance(result, FormulaError):
        return ERROR
    if isinstance(result, bool):
        return int(result)
    if isinstance(result, (str, int, float)):
        return result
    return ERROR


class PythonExpressionEvaluator:
    """Evaluates expressions as Python with a restricted namespace.

    Expressions naming dunder attributes (``__class__`` ...) are refused.
    This is not a sandbox: loading a CSV or workbook evaluates every formula
    in it, so do not open untrusted files with this evaluator.

    Usage::

        evaluator = PythonExpressionEvaluator(modules=("math",))
        evaluator.evaluate("math.sqrt(A0)", {"A0": 16}, {})  # -> 4.0
    """

    def __init__(self, modules: Iterable[str] = DEFAULT_MODULES) -> None:
        self._modules = {name: importlib.import_module(name) for name in modules}

    @property
    def modules(self) -> tuple[str, ...]:
        return tuple(self._modules)

    def evaluate(
        self,
        expression: str,
        bindings: dict[str, Scalar],
        columns: dict[str, list[Scalar]],
    ) -> Value:
        if "__" in expression:
            raise ValueError(f"Dunder names are not allowed: {expression!r}")
        namespace: dict[str, Any] = {"__builtins__": _SAFE_BUILTINS}
        namespace.update(self._modules)
        namespace.update(bindings)
        namespace.update(columns)
        return coerce_value(eval(expression, namespace))  # noqa: S307

    def __repr__(self) -> str:
        return f"<PythonExpressionEvaluator modules={list(self._modules)}>"
