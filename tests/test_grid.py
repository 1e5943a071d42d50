"""Tests for the 9x9 position -> role mapping."""

from collections import Counter

import pytest

from harada.services import grid
from harada.services.grid import (
    ACTION,
    BEHAVIOR,
    BEHAVIOR_MIRROR,
    GOAL,
    behavior_position_of,
    classify,
    section_of_behavior,
    section_positions,
)

ALL_POSITIONS = [(r, c) for r in range(9) for c in range(9)]


class TestRoleCounts:
    def test_every_position_has_exactly_one_role(self):
        roles = [classify(r, c).role for r, c in ALL_POSITIONS]
        assert len(roles) == 81
        assert set(roles) <= set(grid.CELL_ROLES)

    def test_role_totals(self):
        counts = Counter(classify(r, c).role for r, c in ALL_POSITIONS)
        assert counts[GOAL] == 1
        assert counts[BEHAVIOR] == 8
        assert counts[BEHAVIOR_MIRROR] == 8
        assert counts[ACTION] == 64

    def test_goal_is_the_centre(self):
        assert classify(4, 4).role == GOAL
        assert classify(4, 4).section is None
        assert grid.positions(GOAL) == [(4, 4)]

    def test_behaviors_fill_the_centre_block(self):
        expected = [(r, c) for r in range(3, 6) for c in range(3, 6) if (r, c) != (4, 4)]
        assert grid.positions(BEHAVIOR) == expected
        assert all(classify(r, c).section is None for r, c in expected)

    def test_each_section_has_eight_actions_and_one_mirror(self):
        per_section = Counter(
            (classify(r, c).section, classify(r, c).role)
            for r, c in ALL_POSITIONS
            if classify(r, c).role in (ACTION, BEHAVIOR_MIRROR)
        )
        for section in range(8):
            assert per_section[(section, ACTION)] == 8
            assert per_section[(section, BEHAVIOR_MIRROR)] == 1


class TestSectionNumbering:
    @pytest.mark.parametrize(
        "position, section",
        [
            ((0, 0), 0),
            ((2, 5), 1),
            ((0, 8), 2),
            ((4, 0), 3),
            ((3, 8), 4),
            ((8, 0), 5),
            ((6, 4), 6),
            ((8, 8), 7),
        ],
    )
    def test_corner_and_edge_positions(self, position, section):
        metadata = classify(*position)
        assert metadata.role == ACTION
        assert metadata.section == section

    def test_section_positions_cover_the_outer_blocks(self):
        seen = []
        for section in range(8):
            block = section_positions(section)
            assert len(block) == 9
            assert {classify(r, c).section for r, c in block} == {section}
            seen.extend(block)
        assert len(set(seen)) == 72


class TestBehaviorPositions:
    def test_table(self):
        assert [behavior_position_of(i) for i in range(8)] == [
            (3, 3), (3, 4), (3, 5), (4, 3), (4, 5), (5, 3), (5, 4), (5, 5),
        ]

    def test_behavior_position_is_aligned_with_its_section(self):
        for row, col in grid.positions(BEHAVIOR):
            # The outer block in the same direction from the centre
            block_row, block_col = (row - 3) * 3, (col - 3) * 3
            section = classify(block_row, block_col).section
            assert behavior_position_of(section) == (row, col)
            assert section_of_behavior(row, col) == section

    def test_mirrors_point_at_their_section_behavior(self):
        for row, col in grid.positions(BEHAVIOR_MIRROR):
            metadata = classify(row, col)
            assert (row % 3, col % 3) == (1, 1)
            assert metadata.mirrors == behavior_position_of(metadata.section)
            assert not metadata.editable

    def test_editable_roles(self):
        assert classify(4, 4).editable
        assert classify(3, 3).editable
        assert classify(0, 0).editable
        assert not classify(1, 1).editable


class TestInvalidInput:
    @pytest.mark.parametrize("row, col", [(-1, 0), (0, 9), (9, 9), (4, -3)])
    def test_out_of_range_position(self, row, col):
        with pytest.raises(ValueError):
            classify(row, col)

    @pytest.mark.parametrize("section", [-1, 8, 42])
    def test_out_of_range_section(self, section):
        with pytest.raises(ValueError):
            behavior_position_of(section)

    def test_section_of_non_behavior(self):
        with pytest.raises(ValueError):
            section_of_behavior(0, 0)

    def test_unknown_role_filter(self):
        with pytest.raises(ValueError):
            grid.positions("mystery")
