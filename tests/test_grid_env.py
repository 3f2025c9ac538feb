"""Tests for the grid world board and Q table."""

import unittest

import numpy as np

from dqn_explainer.worlds.grid_env import (
    Action, CellType, Grid, GridLayout, make_default_grid,
)


class TestAction(unittest.TestCase):
    """Test action mechanics."""

    def test_action_deltas(self):
        self.assertEqual(Action.UP.delta(), (0, -1))
        self.assertEqual(Action.RIGHT.delta(), (1, 0))
        self.assertEqual(Action.DOWN.delta(), (0, 1))
        self.assertEqual(Action.LEFT.delta(), (-1, 0))

    def test_all_actions_in_table_order(self):
        self.assertEqual([int(a) for a in Action.all()], [0, 1, 2, 3])

    def test_labels(self):
        self.assertEqual([a.label for a in Action.all()], ["↑", "→", "↓", "←"])


class TestDefaultGrid(unittest.TestCase):
    """Test the hardcoded demo topology."""

    def setUp(self):
        self.grid = make_default_grid()

    def test_size(self):
        self.assertEqual(self.grid.size, 6)
        self.assertEqual(self.grid.q_table.shape, (6, 6, 4))

    def test_topology(self):
        self.assertEqual(self.grid.cell_type((4, 4)), CellType.GOAL)
        self.assertEqual(self.grid.cell_type((1, 3)), CellType.PIT)
        for wall in [(2, 2), (2, 3), (3, 1)]:
            self.assertTrue(self.grid.is_wall(wall))
        self.assertEqual(self.grid.cell_type((0, 0)), CellType.EMPTY)
        self.assertEqual(self.grid.start, (0, 0))

    def test_exactly_one_goal_and_pit(self):
        kinds = [cell.type for cell in self.grid.cells()]
        self.assertEqual(kinds.count(CellType.GOAL), 1)
        self.assertEqual(kinds.count(CellType.PIT), 1)
        self.assertEqual(kinds.count(CellType.WALL), 3)
        self.assertEqual(len(kinds), 36)

    def test_values_start_at_zero(self):
        self.assertTrue(np.all(self.grid.q_table == 0.0))

    def test_cell_types_are_immutable(self):
        with self.assertRaises(ValueError):
            self.grid.types[0, 0] = CellType.WALL

    def test_q_values_view_is_read_only(self):
        values = self.grid.q_values((0, 0))
        with self.assertRaises(ValueError):
            values[0] = 1.0

    def test_set_q_touches_one_entry(self):
        self.grid.set_q((1, 0), Action.DOWN, 2.5)
        self.assertEqual(self.grid.q_values((1, 0))[Action.DOWN], 2.5)
        self.assertEqual(np.count_nonzero(self.grid.q_table), 1)
        self.assertEqual(self.grid.max_q((1, 0)), 2.5)

    def test_bounds(self):
        self.assertTrue(self.grid.in_bounds((5, 5)))
        self.assertFalse(self.grid.in_bounds((6, 0)))
        self.assertFalse(self.grid.in_bounds((0, -1)))
        self.assertFalse(self.grid.is_open((2, 2)))
        self.assertTrue(self.grid.is_open((1, 3)))

    def test_fresh_grids_do_not_share_values(self):
        other = make_default_grid()
        other.set_q((0, 0), Action.UP, 1.0)
        self.assertEqual(self.grid.q_values((0, 0))[Action.UP], 0.0)

    def test_render(self):
        rendered = self.grid.render(agent=(0, 0))
        lines = rendered.splitlines()
        self.assertEqual(len(lines), 6)
        self.assertEqual(lines[0][0], "A")
        self.assertEqual(lines[4][4], "G")
        self.assertEqual(lines[3][1], "P")
        self.assertEqual(lines[2][2], "#")


class TestGridSizes(unittest.TestCase):
    """Test how the fixed layout copes with other board sizes."""

    def test_rejects_boards_too_small_for_layout(self):
        with self.assertRaises(ValueError):
            make_default_grid(4)

    def test_larger_board_keeps_features(self):
        grid = make_default_grid(8)
        self.assertEqual(grid.size, 8)
        self.assertEqual(grid.cell_type((4, 4)), CellType.GOAL)
        self.assertEqual(grid.cell_type((7, 7)), CellType.EMPTY)

    def test_layout_validation(self):
        with self.assertRaises(ValueError):
            GridLayout(size=6, goal=(6, 6))
        with self.assertRaises(ValueError):
            GridLayout(size=6, walls=((4, 4),))
        with self.assertRaises(ValueError):
            GridLayout(size=6, start=(1, 3))

    def test_custom_layout(self):
        layout = GridLayout(size=3, walls=((1, 1),), goal=(2, 2), pit=(2, 0))
        grid = Grid(layout)
        self.assertEqual(grid.cell_type((2, 2)), CellType.GOAL)
        self.assertTrue(grid.is_wall((1, 1)))


if __name__ == "__main__":
    unittest.main()
