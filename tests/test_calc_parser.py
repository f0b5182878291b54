"""Tests for cellgrid.calc formula parsing and relocation."""

from __future__ import annotations

import pytest

from cellgrid import Formula, Position
from cellgrid.calc._parser import (
    CellReference,
    ColumnReference,
    FormulaSyntaxError,
    ReferenceOutOfBounds,
    RelocationError,
    RowReference,
    parse_raw,
    relocate,
)

SIZE = (5, 10)


def cell(name: str) -> CellReference:
    return CellReference(Position.parse(name))


class TestCellReferences:
    def test_simple_refs(self) -> None:
        expr, refs = parse_raw("A1+B2", SIZE)
        assert expr == "A1+B2"
        assert refs == (cell("A1"), cell("B2"))

    def test_order_of_occurrence_kept(self) -> None:
        _, refs = parse_raw("C3 * A1 - B2 + A1", SIZE)
        assert refs == (cell("C3"), cell("A1"), cell("B2"), cell("A1"))

    def test_lowercase_names_are_not_refs(self) -> None:
        expr, refs = parse_raw("a1+b2", SIZE)
        assert expr == "a1+b2"
        assert refs == ()

    def test_leading_whitespace_dropped(self) -> None:
        expr, _ = parse_raw("   A1 + 2", SIZE)
        assert expr == "A1 + 2"

    def test_function_call(self) -> None:
        expr, refs = parse_raw("math.sqrt(A1)", SIZE)
        assert expr == "math.sqrt(A1)"
        assert refs == (cell("A1"),)

    def test_ref_outside_grid_is_still_a_ref(self) -> None:
        _, refs = parse_raw("Z99", SIZE)
        assert refs == (cell("Z99"),)


class TestColumnReferences:
    def test_bare_column(self) -> None:
        expr, refs = parse_raw("sum(B)", SIZE)
        assert expr == "sum(B)"
        assert refs == (ColumnReference(1),)

    def test_column_outside_width_is_only_text(self) -> None:
        expr, refs = parse_raw("sum(Z)", SIZE)
        assert expr == "sum(Z)"
        assert refs == ()

    def test_mixed_with_cells(self) -> None:
        _, refs = parse_raw("max(A) - B0", SIZE)
        assert refs == (ColumnReference(0), cell("B0"))


class TestRanges:
    def test_single_column_range(self) -> None:
        expr, refs = parse_raw("sum(A1:A3)", SIZE)
        assert expr == "sum(A[1:4])"
        assert refs == (cell("A1"), cell("A3"))

    def test_block_range_sums_column_slices(self) -> None:
        expr, refs = parse_raw("sum(A0:C2)", SIZE)
        assert expr == "sum(A[0:3] + B[0:3] + C[0:3])"
        assert refs == (cell("A0"), cell("C2"))

    def test_range_at_end_of_text(self) -> None:
        expr, refs = parse_raw("B2:B4", SIZE)
        assert expr == "B[2:5]"
        assert refs == (cell("B2"), cell("B4"))

    def test_row_range(self) -> None:
        expr, refs = parse_raw("sum(A1:5)", SIZE)
        assert expr == "sum(A[1:6])"
        assert refs == (cell("A1"), RowReference(5))

    def test_invalid_range_end(self) -> None:
        with pytest.raises(FormulaSyntaxError, match="A1"):
            parse_raw("sum(A1:foo)", SIZE)

    def test_unfinished_range(self) -> None:
        with pytest.raises(FormulaSyntaxError):
            parse_raw("A1:", SIZE)

    def test_invalid_range_start_is_dropped(self) -> None:
        expr, refs = parse_raw("x:B2", SIZE)
        assert expr == "B2"
        assert refs == (cell("B2"),)


class TestRelocate:
    def test_shifts_cells(self) -> None:
        raw, expr, refs = relocate("A1+B2", (cell("A1"), cell("B2")), (1, 2), SIZE)
        assert raw == "B3+C4"
        assert expr == "B3+C4"
        assert refs == (cell("B3"), cell("C4"))

    def test_shifted_name_colliding_with_later_ref(self) -> None:
        # A1 -> A2 must not be found again when looking for the old A2.
        raw, _, refs = relocate("A1+A2", (cell("A1"), cell("A2")), (0, 1), SIZE)
        assert raw == "A2+A3"
        assert refs == (cell("A2"), cell("A3"))

    def test_repeated_ref(self) -> None:
        raw, _, _ = relocate("A1*A1", (cell("A1"), cell("A1")), (1, 0), SIZE)
        assert raw == "B1*B1"

    def test_range_and_row_range(self) -> None:
        _, refs = parse_raw("sum(A1:B3)+sum(C0:4)", SIZE)
        raw, expr, moved = relocate("sum(A1:B3)+sum(C0:4)", refs, (1, 1), SIZE)
        assert raw == "sum(B2:C4)+sum(D1:5)"
        assert expr == "sum(B[2:5] + C[2:5])+sum(D[1:6])"
        assert moved == (cell("B2"), cell("C4"), cell("D1"), RowReference(5))

    def test_column_reference(self) -> None:
        raw, _, refs = relocate("sum(A)", (ColumnReference(0),), (2, 5), SIZE)
        assert raw == "sum(C)"
        assert refs == (ColumnReference(2),)

    def test_ref_inside_longer_token_is_skipped(self) -> None:
        # "A1" also appears inside "xA1", which is not a reference.
        _, refs = parse_raw("xA1+A1", SIZE)
        assert refs == (cell("A1"),)
        raw, _, _ = relocate("xA1+A1", refs, (0, 1), SIZE)
        assert raw == "xA1+A2"

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(ReferenceOutOfBounds):
            relocate("A0", (cell("A0"),), (0, -1), SIZE)

    def test_column_past_width_rejected(self) -> None:
        with pytest.raises(ReferenceOutOfBounds):
            relocate("sum(E)", (ColumnReference(4),), (1, 0), SIZE)

    def test_inconsistent_references_fail_loudly(self) -> None:
        with pytest.raises(RelocationError):
            relocate("A1+B1", (cell("A1"),), (0, 1), SIZE)

    def test_missing_reference_fails_loudly(self) -> None:
        with pytest.raises(RelocationError, match="not found"):
            relocate("A1", (cell("C3"),), (0, 1), SIZE)


class TestFormulaMovedTo:
    def test_moved_formula_has_shifted_refs_and_no_value(self) -> None:
        formula = Formula.parse("A1*2+sum(B)", Position(2, 2), SIZE)
        formula = Formula(formula.position, formula.raw, formula.parsed, formula.references, 7)
        moved = formula.moved_to(Position(3, 4), SIZE)
        assert moved.position == Position(3, 4)
        assert moved.raw == "B3*2+sum(C)"
        assert moved.references == (cell("B3"), ColumnReference(2))
        assert moved.value is None

    @pytest.mark.parametrize("dx, dy", [(0, 0), (1, 0), (0, 3), (2, 1), (4, 5)])
    def test_reparse_matches_shift(self, dx: int, dy: int) -> None:
        start = Position(0, 0)
        formula = Formula.parse("A0 + sum(A1:B2) - C3", start, SIZE)
        moved = formula.moved_to(start.shifted(dx, dy), SIZE)
        expected = tuple(
            CellReference(ref.position.shifted(dx, dy)) for ref in formula.references
        )
        assert moved.references == expected
        assert parse_raw(moved.raw, SIZE)[1] == expected
