"""
Grid-world Q-learning simulation — the live state behind the demo.

One learning step is the whole algorithm:

    1. pick an action (epsilon-greedy over the current cell)
    2. move, unless the target is off the board or a wall
    3. reward: +10 goal, -10 pit, -0.1 otherwise
    4. Q(s,a) ← Q(s,a) + α [r + γ max Q(s',·) − Q(s,a)]
    5. push (s, a, r, s') onto the replay log
    6. on goal/pit: back to start, next episode, maybe decay epsilon

The replay log is for display only; learning is one online update per step.

State lives in a single SimulationState object owned by GridWorldSimulation.
Every read and write goes through the simulation's lock, and the scheduler
tick calls step() on the simulation itself, so a tick always sees the latest
state, epsilon and speed. Renderers get immutable SimulationSnapshot copies.
"""

from __future__ import annotations

import itertools
import logging
import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterator, List, Optional, Tuple

import numpy as np

from dqn_explainer.worlds.agent import (
    EpsilonSchedule, clamp_epsilon, select_action,
)
from dqn_explainer.worlds.grid_env import (
    Action, CellType, Grid, Position, make_default_grid, DEFAULT_GRID_SIZE,
)
from dqn_explainer.worlds.scheduler import (
    TrainingScheduler, clamp_speed, step_delay_ms,
    MIN_DELAY_MS, MAX_DELAY_MS,
)

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 90.0
EPISODE_HISTORY_LIMIT = 100


@dataclass
class SimulationConfig:
    """Learning constants and knobs for one simulation."""
    grid_size: int = DEFAULT_GRID_SIZE
    alpha: float = 0.2                 # Learning rate
    gamma: float = 0.9                 # Discount factor
    living_penalty: float = -0.1       # Reward for every non-terminal step
    goal_reward: float = 10.0
    pit_reward: float = -10.0
    initial_epsilon: float = 1.0       # Full exploration after reset
    epsilon_decay: float = 0.98        # Per finished episode
    min_epsilon: float = 0.01
    auto_decay: bool = True
    replay_capacity: int = 8           # Shown and enforced
    speed: float = DEFAULT_SPEED
    min_delay_ms: float = MIN_DELAY_MS
    max_delay_ms: float = MAX_DELAY_MS
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 < self.alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1]")
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError("gamma must be in [0, 1]")
        if not 0.0 <= self.initial_epsilon <= 1.0:
            raise ValueError("initial_epsilon must be in [0, 1]")
        if self.replay_capacity < 1:
            raise ValueError("replay_capacity must be >= 1")
        if not 0.0 < self.min_delay_ms <= self.max_delay_ms:
            raise ValueError("need 0 < min_delay_ms <= max_delay_ms")

    @property
    def epsilon_schedule(self) -> EpsilonSchedule:
        return EpsilonSchedule(decay=self.epsilon_decay, floor=self.min_epsilon)


# ---------------------------------------------------------------------------
# Experience log
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Experience:
    """One completed transition (s, a, r, s')."""
    id: int
    state: Position
    action: Action
    reward: float
    next_state: Position

    @property
    def action_label(self) -> str:
        return self.action.label

    def __repr__(self) -> str:
        return (f"Exp#{self.id}({self.state} {self.action_label} "
                f"r={self.reward:+.1f} -> {self.next_state})")


class ExperienceLog:
    """Most-recent-first list of experiences, evicting the oldest."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: Deque[Experience] = deque(maxlen=capacity)

    def push(self, experience: Experience) -> None:
        self._items.appendleft(experience)

    @property
    def latest(self) -> Optional[Experience]:
        return self._items[0] if self._items else None

    def to_tuple(self) -> Tuple[Experience, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Experience]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Experience:
        return self._items[index]


# ---------------------------------------------------------------------------
# State, results, snapshots
# ---------------------------------------------------------------------------

@dataclass
class SimulationState:
    """Everything that changes while training. Replaced wholesale on reset."""
    grid: Grid
    agent_pos: Position
    replay: ExperienceLog
    score: float = 0.0
    episode: int = 1
    epsilon: float = 1.0
    auto_decay: bool = True
    training: bool = False
    episode_steps: int = 0
    total_steps: int = 0


@dataclass(frozen=True)
class StepResult:
    """Outcome of one learning step."""
    experience: Experience
    done: bool
    outcome: Optional[str]   # "goal", "pit" or None
    hit_wall: bool


@dataclass(frozen=True)
class EpisodeStats:
    """Summary of one finished episode."""
    episode: int
    steps: int
    total_reward: float
    outcome: str             # "goal", "pit" or "timeout"


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only copy of the simulation for renderers."""
    q_table: np.ndarray          # [y, x, action], not writeable
    cell_types: np.ndarray       # [y, x], not writeable
    agent_pos: Position
    score: float
    episode: int
    epsilon: float
    auto_decay: bool
    training: bool
    speed: float
    step_delay_ms: float
    experiences: Tuple[Experience, ...]
    replay_capacity: int
    total_steps: int

    @property
    def grid_size(self) -> int:
        return self.cell_types.shape[0]

    def cell_type(self, pos: Position) -> CellType:
        x, y = pos
        return CellType(self.cell_types[y, x])

    def q_values(self, pos: Position) -> np.ndarray:
        x, y = pos
        return self.q_table[y, x]


Listener = Callable[[SimulationSnapshot], None]


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class GridWorldSimulation:
    """
    Tabular Q-learning on the demo grid, with start/pause/reset controls.

    Parameters
    ----------
    config : Optional[SimulationConfig]
        Learning constants; defaults match the demo page.

    Control inputs (epsilon, speed) are clamped rather than rejected so a
    front end can pass slider values through unchecked.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.rng = random.Random(self.config.seed)
        self.schedule = self.config.epsilon_schedule
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._listeners: List[Listener] = []
        self._speed = clamp_speed(self.config.speed)
        self._state = self._fresh_state(self.config.auto_decay)
        self.episode_history: Deque[EpisodeStats] = deque(
            maxlen=EPISODE_HISTORY_LIMIT)
        self._scheduler = TrainingScheduler(
            self._tick, lambda: self.step_delay_ms, lock=self._lock,
        )

    def _fresh_state(self, auto_decay: bool) -> SimulationState:
        grid = make_default_grid(self.config.grid_size)
        return SimulationState(
            grid=grid,
            agent_pos=grid.start,
            replay=ExperienceLog(self.config.replay_capacity),
            epsilon=self.config.initial_epsilon,
            auto_decay=auto_decay,
        )

    # -- read access -------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return self._state.grid

    @property
    def agent_pos(self) -> Position:
        return self._state.agent_pos

    @property
    def score(self) -> float:
        return self._state.score

    @property
    def episode(self) -> int:
        return self._state.episode

    @property
    def epsilon(self) -> float:
        return self._state.epsilon

    @property
    def auto_decay(self) -> bool:
        return self._state.auto_decay

    @property
    def is_training(self) -> bool:
        return self._state.training

    @property
    def replay(self) -> ExperienceLog:
        return self._state.replay

    @property
    def total_steps(self) -> int:
        return self._state.total_steps

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def step_delay_ms(self) -> float:
        return step_delay_ms(self._speed, self.config.min_delay_ms,
                             self.config.max_delay_ms)

    def snapshot(self) -> SimulationSnapshot:
        with self._lock:
            state = self._state
            q_table = state.grid.q_table.copy()
            q_table.setflags(write=False)
            return SimulationSnapshot(
                q_table=q_table,
                cell_types=state.grid.types,
                agent_pos=state.agent_pos,
                score=state.score,
                episode=state.episode,
                epsilon=state.epsilon,
                auto_decay=state.auto_decay,
                training=state.training,
                speed=self._speed,
                step_delay_ms=self.step_delay_ms,
                experiences=state.replay.to_tuple(),
                replay_capacity=state.replay.capacity,
                total_steps=state.total_steps,
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with a fresh snapshot after every change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # -- learning step -----------------------------------------------------

    def step(self, action: Optional[Action] = None) -> StepResult:
        """
        Run one learning step.

        If action is given the policy is bypassed (scripted moves); the
        update rule is the same either way.
        """
        with self._lock:
            result = self._step(action)
            self._notify()
            return result

    def _step(self, action: Optional[Action]) -> StepResult:
        cfg = self.config
        state = self._state
        grid = state.grid
        origin = state.agent_pos

        if action is None:
            action = select_action(grid.q_values(origin), state.epsilon,
                                   self.rng)
        else:
            action = Action(action)

        # Resolve target; blocked moves leave the agent in place
        dx, dy = action.delta()
        target = (origin[0] + dx, origin[1] + dy)
        hit_wall = not grid.is_open(target)
        next_pos = origin if hit_wall else target

        cell = grid.cell_type(next_pos)
        outcome = None
        reward = cfg.living_penalty
        if cell == CellType.GOAL:
            reward = cfg.goal_reward
            outcome = "goal"
        elif cell == CellType.PIT:
            reward = cfg.pit_reward
            outcome = "pit"
        done = outcome is not None

        # Bootstrap from the table as it was before this update
        old_q = float(grid.q_values(origin)[action])
        td_error = reward + cfg.gamma * grid.max_q(next_pos) - old_q
        grid.set_q(origin, action, old_q + cfg.alpha * td_error)

        experience = Experience(
            id=next(self._ids),
            state=origin,
            action=action,
            reward=reward,
            next_state=next_pos,
        )
        state.replay.push(experience)
        state.total_steps += 1
        state.episode_steps += 1

        if done:
            self._end_episode(outcome, state.score + reward)
        else:
            state.agent_pos = next_pos
            state.score += reward

        assert grid.is_open(state.agent_pos), (
            f"agent left the board or entered a wall at {state.agent_pos}")
        assert not grid.cell_type(state.agent_pos).is_terminal, (
            f"agent resting on terminal cell {state.agent_pos}")

        return StepResult(
            experience=experience,
            done=done,
            outcome=outcome,
            hit_wall=hit_wall,
        )

    def _end_episode(self, outcome: str, total_reward: float) -> EpisodeStats:
        """Record the episode, send the agent back to start, maybe decay."""
        state = self._state
        stats = EpisodeStats(
            episode=state.episode,
            steps=state.episode_steps,
            total_reward=total_reward,
            outcome=outcome,
        )
        self.episode_history.append(stats)
        logger.debug("episode %d ended (%s) after %d steps, epsilon=%.3f",
                     state.episode, outcome, state.episode_steps,
                     state.epsilon)
        state.agent_pos = state.grid.start
        state.episode += 1
        state.score = 0.0
        state.episode_steps = 0
        if state.auto_decay:
            state.epsilon = self.schedule.next(state.epsilon)
        return stats

    def run(self, steps: int) -> List[StepResult]:
        """Run several learning steps back to back, without the scheduler."""
        return [self.step() for _ in range(steps)]

    def run_episodes(self, episodes: int, max_steps: int = 500,
                     verbose: bool = False) -> List[EpisodeStats]:
        """
        Train headless for `episodes` more episodes.

        An episode that reaches neither goal nor pit within max_steps is
        ended as a "timeout": the agent goes back to start, the episode
        counter advances and epsilon decays as for any other episode.
        """
        finished: List[EpisodeStats] = []
        for i in range(episodes):
            with self._lock:
                for _ in range(max_steps):
                    if self.step().done:
                        stats = self.episode_history[-1]
                        break
                else:
                    stats = self._end_episode("timeout", self._state.score)
                    self._notify()
            finished.append(stats)

            if verbose and i % 10 == 0:
                last = stats
                mark = "✓" if last.outcome == "goal" else "✗"
                print(
                    f"  [ep {last.episode:4d}] {mark} "
                    f"steps={last.steps:4d}  "
                    f"reward={last.total_reward:7.1f}  "
                    f"epsilon={self.epsilon:.3f}"
                )
        return finished

    # -- control operations ------------------------------------------------

    def _tick(self) -> None:
        if self._state.training:
            self.step()

    def start_training(self) -> None:
        with self._lock:
            self._state.training = True
            self._scheduler.arm()
            self._notify()

    def pause_training(self) -> None:
        with self._lock:
            self._state.training = False
            self._scheduler.cancel()
            self._notify()

    def toggle_training(self) -> bool:
        """Flip between training and paused; returns the new flag."""
        with self._lock:
            if self._state.training:
                self.pause_training()
            else:
                self.start_training()
            return self._state.training

    def reset(self) -> None:
        """
        Fresh grid, agent at start, score 0, episode 1, epsilon 1.0,
        training off, empty replay log. Keeps the auto-decay choice.
        """
        with self._lock:
            self._scheduler.cancel()
            self._state = self._fresh_state(self._state.auto_decay)
            self.episode_history.clear()
            self._notify()

    def set_exploration_rate(self, value: float) -> None:
        with self._lock:
            self._state.epsilon = clamp_epsilon(value)
            self._notify()

    def set_automatic_decay(self, enabled: bool) -> None:
        with self._lock:
            self._state.auto_decay = bool(enabled)
            self._notify()

    def set_speed(self, value: float) -> None:
        """Change tick speed; a running scheduler picks it up next tick."""
        with self._lock:
            self._speed = clamp_speed(value)
            if self._state.training:
                self._scheduler.arm()
            self._notify()

    def close(self) -> None:
        """Stop the scheduler; state is kept."""
        self.pause_training()

    def __enter__(self) -> "GridWorldSimulation":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- reporting ---------------------------------------------------------

    def summary(self) -> str:
        """Human-readable training summary."""
        history = list(self.episode_history)
        lines = [
            "═" * 55,
            "  Grid World Q-Learning — Training Summary",
            "═" * 55,
            f"  Episode:           {self.episode}",
            f"  Total steps:       {self.total_steps}",
            f"  Epsilon:           {self.epsilon:.3f}"
            f" ({'auto' if self.auto_decay else 'fixed'})",
        ]
        if history:
            goals = [e for e in history if e.outcome == "goal"]
            lines.append(f"  Avg reward:        "
                         f"{np.mean([e.total_reward for e in history]):.2f}")
            lines.append(f"  Goal reached:      {len(goals)}/{len(history)}"
                         f" recent episodes")
            if goals:
                lines.append(f"  Avg goal path:     "
                             f"{np.mean([e.steps for e in goals]):.1f} steps")
                lines.append(f"  Best goal path:    "
                             f"{min(e.steps for e in goals)} steps")
        lines.append("═" * 55)
        return "\n".join(lines)
