"""
Grid world used by the Q-learning playground.

The world is a small square board:
- Empty cells the agent can stand on
- Walls that block movement
- One goal cell (+10, ends the episode)
- One pit cell (-10, ends the episode)

Every cell carries four Q-values, one per action, stored in a single numpy
table so the learning step can update one entry in place.

Positions are (x, y): x grows to the right, y grows downward.

    S . . . . .
    . . . # . .
    . . # . . .
    . P # . . .
    . . . . G .
    . . . . . .
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

import numpy as np


Position = Tuple[int, int]


# ---------------------------------------------------------------------------
# Actions and cell types
# ---------------------------------------------------------------------------

class Action(IntEnum):
    """The four cardinal directions, in Q-table column order."""
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def delta(self) -> Tuple[int, int]:
        """(dx, dy) displacement for this action."""
        return {
            Action.UP: (0, -1),
            Action.RIGHT: (1, 0),
            Action.DOWN: (0, 1),
            Action.LEFT: (-1, 0),
        }[self]

    @property
    def label(self) -> str:
        return ACTION_GLYPHS[self.value]

    @staticmethod
    def all() -> List["Action"]:
        return [Action.UP, Action.RIGHT, Action.DOWN, Action.LEFT]


ACTION_GLYPHS = ("↑", "→", "↓", "←")
NUM_ACTIONS = len(ACTION_GLYPHS)


class CellType(IntEnum):
    """What occupies a grid cell."""
    EMPTY = 0
    WALL = 1
    GOAL = 2
    PIT = 3

    @property
    def is_terminal(self) -> bool:
        return self in (CellType.GOAL, CellType.PIT)


@dataclass(frozen=True)
class Cell:
    """Read-only view of one cell: where it is, what it is, its Q-values."""
    position: Position
    type: CellType
    values: np.ndarray  # [Up, Right, Down, Left]


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

DEFAULT_GRID_SIZE = 6


@dataclass(frozen=True)
class GridLayout:
    """Fixed topology of a grid: where walls, goal, pit and start are."""
    size: int = DEFAULT_GRID_SIZE
    walls: Tuple[Position, ...] = ((2, 2), (2, 3), (3, 1))
    goal: Position = (4, 4)
    pit: Position = (1, 3)
    start: Position = (0, 0)

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError("size must be >= 1")
        features = {"goal": [self.goal], "pit": [self.pit],
                    "start": [self.start], "wall": list(self.walls)}
        for name, positions in features.items():
            for x, y in positions:
                if not (0 <= x < self.size and 0 <= y < self.size):
                    raise ValueError(
                        f"{name} at {(x, y)} lies outside a "
                        f"{self.size}x{self.size} grid"
                    )
        occupied = [self.goal, self.pit, *self.walls]
        if len(set(occupied)) != len(occupied):
            raise ValueError("walls, goal and pit must not overlap")
        if self.start in occupied:
            raise ValueError("start cell must be empty")


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

class Grid:
    """
    An N×N board of cells with a per-cell, per-action value table.

    Cell types never change after construction. The value table is mutated
    only through set_q(), one (cell, action) entry at a time.
    """

    def __init__(self, layout: GridLayout):
        self.layout = layout
        self.size = layout.size
        self._types = np.full((self.size, self.size), CellType.EMPTY, dtype=int)
        for x, y in layout.walls:
            self._types[y, x] = CellType.WALL
        self._types[layout.goal[1], layout.goal[0]] = CellType.GOAL
        self._types[layout.pit[1], layout.pit[0]] = CellType.PIT
        self._types.setflags(write=False)

        self.q_table = np.zeros((self.size, self.size, NUM_ACTIONS), dtype=float)

    @property
    def start(self) -> Position:
        return self.layout.start

    @property
    def types(self) -> np.ndarray:
        """Read-only [y, x] array of CellType values."""
        return self._types

    def in_bounds(self, pos: Position) -> bool:
        x, y = pos
        return 0 <= x < self.size and 0 <= y < self.size

    def cell_type(self, pos: Position) -> CellType:
        x, y = pos
        return CellType(self._types[y, x])

    def is_wall(self, pos: Position) -> bool:
        return self.cell_type(pos) == CellType.WALL

    def is_open(self, pos: Position) -> bool:
        """True if the agent may occupy pos (in bounds and not a wall)."""
        return self.in_bounds(pos) and not self.is_wall(pos)

    def q_values(self, pos: Position) -> np.ndarray:
        """Read-only view of the four action values at pos."""
        x, y = pos
        view = self.q_table[y, x]
        view.setflags(write=False)
        return view

    def max_q(self, pos: Position) -> float:
        x, y = pos
        return float(self.q_table[y, x].max())

    def set_q(self, pos: Position, action: Action, value: float) -> None:
        x, y = pos
        self.q_table[y, x, int(action)] = value

    def cells(self) -> Iterator[Cell]:
        """Iterate all cells row by row (y outer, x inner)."""
        for y in range(self.size):
            for x in range(self.size):
                yield Cell((x, y), CellType(self._types[y, x]),
                           self.q_values((x, y)))

    def render(self, agent: Optional[Position] = None) -> str:
        """ASCII rendering of the board for debugging."""
        symbols = {
            CellType.EMPTY: ".",
            CellType.WALL: "#",
            CellType.GOAL: "G",
            CellType.PIT: "P",
        }
        lines = []
        for y in range(self.size):
            row_str = ""
            for x in range(self.size):
                if (x, y) == agent:
                    row_str += "A"
                else:
                    row_str += symbols[CellType(self._types[y, x])]
            lines.append(row_str)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Pre-built board
# ---------------------------------------------------------------------------

MIN_DEFAULT_GRID_SIZE = 5


def make_default_grid(size: int = DEFAULT_GRID_SIZE) -> Grid:
    """
    The hardcoded demo board: goal at (4,4), walls at (2,2), (2,3), (3,1),
    pit at (1,3), start at (0,0).

    The feature coordinates do not scale with size, so boards too small to
    hold them are rejected. Larger boards keep the same features in the
    top-left corner.
    """
    if size < MIN_DEFAULT_GRID_SIZE:
        raise ValueError(
            f"default layout needs a grid of at least "
            f"{MIN_DEFAULT_GRID_SIZE}x{MIN_DEFAULT_GRID_SIZE}, got {size}"
        )
    return Grid(GridLayout(size=size))
