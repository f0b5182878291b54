"""Tests for cellgrid addressing helpers."""

from __future__ import annotations

import pytest

from cellgrid import Cell, Empty, Number, Position, Text, UnitKind
from cellgrid._utils import a1_to_position, column_index, column_letter, position_to_a1


class TestColumnLetter:
    def test_single_letters(self) -> None:
        assert column_letter(0) == "A"
        assert column_letter(25) == "Z"

    def test_plain_base_26(self) -> None:
        # Not the bijective spreadsheet numbering: 26 is "BA", not "AA".
        assert column_letter(26) == "BA"
        assert column_letter(27) == "BB"
        assert column_letter(26 * 26) == "BAA"

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            column_letter(-1)


class TestColumnIndex:
    def test_simple(self) -> None:
        assert column_index("A") == 0
        assert column_index("C") == 2

    def test_case_insensitive(self) -> None:
        assert column_index("ba") == column_index("BA") == 26

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError, match="Empty"):
            column_index("")

    def test_non_letter_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid column"):
            column_index("A1")

    def test_round_trip(self) -> None:
        for i in range(5000):
            assert column_index(column_letter(i)) == i


class TestCellNames:
    def test_zero_based_rows(self) -> None:
        assert a1_to_position("A0") == (0, 0)
        assert a1_to_position("C12") == (2, 12)

    def test_multi_letter_column(self) -> None:
        assert a1_to_position("BA3") == (26, 3)

    @pytest.mark.parametrize("name", ["", "1A", "A1x", "A", "12", "a1", "A-1", "A 1"])
    def test_invalid(self, name: str) -> None:
        with pytest.raises(ValueError):
            a1_to_position(name)

    def test_position_to_a1(self) -> None:
        assert position_to_a1(2, 12) == "C12"
        assert position_to_a1(0, 0) == "A0"

    def test_position_name_round_trip(self) -> None:
        for column in range(0, 800, 7):
            for row in (0, 1, 9, 10, 99, 12345):
                assert Position.parse(Position(column, row).name) == Position(column, row)


class TestPosition:
    def test_row_major_ordering(self) -> None:
        assert Position(5, 0) < Position(0, 1)
        assert Position(0, 1) < Position(1, 1)
        assert sorted([Position(1, 1), Position(0, 2), Position(3, 0)]) == [
            Position(3, 0),
            Position(1, 1),
            Position(0, 2),
        ]

    def test_subtraction_is_signed_offset(self) -> None:
        assert Position(1, 5) - Position(3, 2) == (-2, 3)

    def test_from_index(self) -> None:
        assert Position.from_index(7, 3) == Position(1, 2)

    def test_unpacks_like_a_tuple(self) -> None:
        column, row = Position(4, 9)
        assert (column, row) == (4, 9)


class TestCellIdentity:
    def test_equality_and_hash_ignore_content(self) -> None:
        a = Cell(Empty(), Position(1, 0))
        b = Cell(Number(7), Position(1, 0), UnitKind.DOLLAR)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_ordering_by_position_only(self) -> None:
        first = Cell(Text("zzz"), Position(3, 0))
        second = Cell(Empty(), Position(0, 1))
        assert first < second
        assert first <= second
        assert second > first
        assert second >= first
        assert first <= Cell(Number(1), Position(3, 0))
        assert sorted([second, first]) == [first, second]
