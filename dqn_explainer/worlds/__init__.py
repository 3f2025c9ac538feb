"""
Grid-world Q-learning: the live simulation behind the demo page.

An agent starts in the top-left corner of a 6x6 board and learns, one step
at a time, which way leads to the goal and which way leads into the pit.
Its knowledge is a Q table with four values per cell, updated online by the
one-step Q-learning rule and shown to the user as it changes.

- grid_env:   board topology and the Q table
- agent:      epsilon-greedy action selection and epsilon decay
- simulation: the learning step, control operations and snapshots
- scheduler:  the timed loop that drives training
"""

from dqn_explainer.worlds.grid_env import (
    Action, CellType, Grid, GridLayout, make_default_grid,
)
from dqn_explainer.worlds.agent import EpsilonSchedule, select_action
from dqn_explainer.worlds.simulation import (
    Experience, ExperienceLog, GridWorldSimulation, SimulationConfig,
    SimulationSnapshot, StepResult,
)
from dqn_explainer.worlds.scheduler import TrainingScheduler, step_delay_ms

__all__ = [
    "Action",
    "CellType",
    "Grid",
    "GridLayout",
    "make_default_grid",
    "EpsilonSchedule",
    "select_action",
    "Experience",
    "ExperienceLog",
    "GridWorldSimulation",
    "SimulationConfig",
    "SimulationSnapshot",
    "StepResult",
    "TrainingScheduler",
    "step_delay_ms",
]
