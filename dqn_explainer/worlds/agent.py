"""
Agent controller — epsilon-greedy action selection over the Q table.

With probability epsilon the agent explores (uniform random action);
otherwise it exploits the best-known action. When several actions share the
maximum value the choice is uniform among them, so an untrained cell (all
zeros) does not always pick UP.

Epsilon starts at 1.0 (pure exploration) and, when automatic decay is on,
shrinks once per finished episode towards a floor:

    epsilon ← max(floor, epsilon × decay)
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from dqn_explainer.worlds.grid_env import Action


def clamp_epsilon(value: float) -> float:
    """Clamp an exploration rate into [0, 1]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, float(value)))


def greedy_actions(values: Sequence[float]) -> List[Action]:
    """All actions whose value equals the maximum (the tie set)."""
    arr = np.asarray(values, dtype=float)
    best = np.flatnonzero(arr == arr.max())
    return [Action(int(i)) for i in best]


def select_action(values: Sequence[float], epsilon: float,
                  rng: random.Random) -> Action:
    """
    Epsilon-greedy choice for one cell.

    Does not touch the grid; the only side effect is advancing rng.
    """
    if rng.random() < epsilon:
        return rng.choice(Action.all())
    return rng.choice(greedy_actions(values))


@dataclass(frozen=True)
class EpsilonSchedule:
    """Per-episode multiplicative decay with a floor."""
    decay: float = 0.98
    floor: float = 0.01

    def __post_init__(self) -> None:
        if not 0.0 < self.decay <= 1.0:
            raise ValueError("decay must be in (0, 1]")
        if not 0.0 <= self.floor <= 1.0:
            raise ValueError("floor must be in [0, 1]")

    def next(self, epsilon: float) -> float:
        return max(self.floor, epsilon * self.decay)
