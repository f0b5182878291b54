"""Formula values and the ExpressionEvaluator protocol."""

from __future__ import annotations

from typing import Protocol, Union, runtime_checkable


class FormulaError:
    """Terminal error value of a formula, displayed as ``#error``.

    A single shared instance, :data:`ERROR`, is used everywhere; it is a
    value stored in the cell, never raised.
    """

    __slots__ = ()
    _instance: FormulaError | None = None

    def __new__(cls) -> FormulaError:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ERROR"

    def __str__(self) -> str:
        return "#error"

    def __reduce__(self) -> str:
        return "ERROR"


ERROR = FormulaError()

# Scalars are what cells expose to formulas; a Value is what a formula holds.
Scalar = Union[str, int, float]
Value = Union[str, int, float, FormulaError, None]


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Executes a prepared formula expression.

    ``bindings`` maps every other cell's name (upper- and lower-case) to its
    scalar; ``columns`` maps each column name (both cases) to the ordered
    non-empty scalars of that column. Implementations return a Value or
    raise; the caller turns any exception into :data:`ERROR`.
    """

    def evaluate(
        self,
        expression: str,
        bindings: dict[str, Scalar],
        columns: dict[str, list[Scalar]],
    ) -> Value:
        ...
