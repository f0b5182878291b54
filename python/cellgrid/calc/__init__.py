"""cellgrid.calc - formula reference engine and expression evaluation."""

from cellgrid.calc._evaluator import PythonExpressionEvaluator, build_bindings, coerce_value
from cellgrid.calc._parser import (
    CellReference,
    ColumnReference,
    FormulaSyntaxError,
    Reference,
    ReferenceOutOfBounds,
    RelocationError,
    RowReference,
    parse_raw,
    relocate,
)
from cellgrid.calc._protocol import ERROR, ExpressionEvaluator, FormulaError, Scalar, Value

__all__ = [
    "CellReference",
    "ColumnReference",
    "ERROR",
    "ExpressionEvaluator",
    "FormulaError",
    "FormulaSyntaxError",
    "PythonExpressionEvaluator",
    "Reference",
    "ReferenceOutOfBounds",
    "RelocationError",
    "RowReference",
    "Scalar",
    "Value",
    "build_bindings",
    "coerce_value",
    "parse_raw",
    "relocate",
]
