"""Position -> role mapping for the 9x9 Harada chart.

Layout of the eight outer sections (the centre block holds the goal and the
eight behaviors)::

    0  1  2
    3  X  4
    5  6  7

The centre cell of every outer section is a read-only mirror of the behavior
that section serves, so each section holds eight actions (64 in total).
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

GRID_SIZE = 9
GOAL_POSITION = (4, 4)

GOAL = "goal"
BEHAVIOR = "behavior"
BEHAVIOR_MIRROR = "behavior_mirror"
ACTION = "action"

CELL_ROLES = (GOAL, BEHAVIOR, BEHAVIOR_MIRROR, ACTION)

# Roles that are stored as cells; mirrors are derived from their behavior.
EDITABLE_ROLES = (GOAL, BEHAVIOR, ACTION)

# Indexed by section number.
BEHAVIOR_POSITIONS: Tuple[Tuple[int, int], ...] = (
    (3, 3),  # top-left
    (3, 4),  # top-center
    (3, 5),  # top-right
    (4, 3),  # middle-left
    (4, 5),  # middle-right
    (5, 3),  # bottom-left
    (5, 4),  # bottom-center
    (5, 5),  # bottom-right
)


@dataclass(frozen=True)
class CellMetadata:
    role: str
    section: Optional[int] = None
    mirrors: Optional[Tuple[int, int]] = None

    @property
    def editable(self) -> bool:
        return self.role in EDITABLE_ROLES


def _check_position(row: int, col: int) -> None:
    if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
        raise ValueError(f"Position ({row}, {col}) is outside the {GRID_SIZE}x{GRID_SIZE} grid")


def section_index(row: int, col: int) -> int:
    """Section number (0-7) of an outer-section position."""
    section_row, section_col = row // 3, col // 3
    if section_row == 0:
        return section_col
    if section_row == 1:
        if section_col == 1:
            raise ValueError(f"Position ({row}, {col}) is in the centre block")
        return 3 if section_col == 0 else 4
    return 5 + section_col


def classify(row: int, col: int) -> CellMetadata:
    _check_position(row, col)

    if (row, col) == GOAL_POSITION:
        return CellMetadata(GOAL)

    if 3 <= row <= 5 and 3 <= col <= 5:
        return CellMetadata(BEHAVIOR)

    section = section_index(row, col)
    if row % 3 == 1 and col % 3 == 1:
        return CellMetadata(BEHAVIOR_MIRROR, section, behavior_position_of(section))
    return CellMetadata(ACTION, section)


def behavior_position_of(section: int) -> Tuple[int, int]:
    if not 0 <= section < len(BEHAVIOR_POSITIONS):
        raise ValueError(f"Section index must be between 0 and 7, got {section}")
    return BEHAVIOR_POSITIONS[section]


def section_of_behavior(row: int, col: int) -> int:
    """Inverse of behavior_position_of for the eight behavior cells."""
    try:
        return BEHAVIOR_POSITIONS.index((row, col))
    except ValueError:
        raise ValueError(f"Position ({row}, {col}) is not a behavior cell") from None


def section_positions(section: int) -> List[Tuple[int, int]]:
    """All nine positions of an outer section, row-major."""
    behavior_row, behavior_col = behavior_position_of(section)
    # The behavior's offset from the grid centre points at its outer section.
    top = (behavior_row - 3) * 3
    left = (behavior_col - 3) * 3
    return [(top + r, left + c) for r in range(3) for c in range(3)]


def positions(role: Optional[str] = None) -> List[Tuple[int, int]]:
    """Every grid position, optionally limited to one role."""
    if role is not None and role not in CELL_ROLES:
        raise ValueError(f"Unknown cell role: {role}")
    return [
        (row, col)
        for row in range(GRID_SIZE)
        for col in range(GRID_SIZE)
        if role is None or classify(row, col).role == role
    ]
