"""
Text rendering of simulation snapshots.

The renderer only reads SimulationSnapshot objects; it never feeds anything
back into the simulation. Symbols:

    A  agent       #  wall       G  goal       P  pit
    ↑→↓←  best action learned so far     +  tie     .  untrained
"""

from __future__ import annotations

from typing import List

import numpy as np

from dqn_explainer.concepts import ARCHITECTURE_HIGHLIGHTS, ARCHITECTURE_STAGES
from dqn_explainer.worlds.agent import greedy_actions
from dqn_explainer.worlds.grid_env import CellType
from dqn_explainer.worlds.simulation import SimulationSnapshot

# Q-value range mapped onto colour opacity
Q_COLOR_MIN = -2.0
Q_COLOR_MAX = 10.0


def q_opacity(q: float) -> float:
    """Opacity in [0.05, 0.9] for a Q-value, assuming roughly -2..10."""
    val = (q - Q_COLOR_MIN) / (Q_COLOR_MAX - Q_COLOR_MIN)
    return max(0.05, min(0.9, val))


def q_color(q: float) -> str:
    """CSS colour for one action triangle: green if positive, else red."""
    if q > 0:
        return f"rgba(34, 197, 94, {q_opacity(q):.2f})"
    return f"rgba(239, 68, 68, {q_opacity(abs(q)):.2f})"


def speed_band(speed: float) -> str:
    if speed < 20:
        return "Slow"
    if speed > 80:
        return "Fast"
    return "Normal"


def _policy_symbol(values: np.ndarray) -> str:
    if not np.any(values):
        return "."
    best = greedy_actions(values)
    return best[0].label if len(best) == 1 else "+"


def render_grid(snapshot: SimulationSnapshot) -> str:
    """ASCII board with the agent and the greedy policy."""
    symbols = {CellType.WALL: "#", CellType.GOAL: "G", CellType.PIT: "P"}
    lines = []
    for y in range(snapshot.grid_size):
        row = []
        for x in range(snapshot.grid_size):
            pos = (x, y)
            kind = snapshot.cell_type(pos)
            if pos == snapshot.agent_pos:
                row.append("A")
            elif kind in symbols:
                row.append(symbols[kind])
            else:
                row.append(_policy_symbol(snapshot.q_values(pos)))
        lines.append(" ".join(row))
    return "\n".join(lines)


def render_q_table(snapshot: SimulationSnapshot, precision: int = 2) -> str:
    """One line per open cell: position and its four action values."""
    lines = ["  (x,y)      ↑        →        ↓        ←"]
    for y in range(snapshot.grid_size):
        for x in range(snapshot.grid_size):
            if snapshot.cell_type((x, y)) != CellType.EMPTY:
                continue
            values = "".join(f"{q:9.{precision}f}"
                             for q in snapshot.q_values((x, y)))
            lines.append(f"  ({x},{y}) {values}")
    return "\n".join(lines)


def render_replay_log(snapshot: SimulationSnapshot) -> str:
    """Replay log, newest first, with a Size: n/capacity header."""
    lines = [f"Replay Buffer  Size: {len(snapshot.experiences)}"
             f"/{snapshot.replay_capacity}"]
    if not snapshot.experiences:
        lines.append("  (no experience yet, start training to collect some)")
    for exp in snapshot.experiences:
        lines.append(
            f"  ({exp.state[0]},{exp.state[1]}) {exp.action_label} "
            f"{exp.reward:+6.1f} -> ({exp.next_state[0]},{exp.next_state[1]})"
        )
    return "\n".join(lines)


def render_status(snapshot: SimulationSnapshot) -> str:
    mode = "auto" if snapshot.auto_decay else "fixed"
    state = "training" if snapshot.training else "paused"
    return (f"Episode: {snapshot.episode}  "
            f"Speed: {speed_band(snapshot.speed)} "
            f"({snapshot.step_delay_ms:.0f} ms)  "
            f"Epsilon: {snapshot.epsilon:.2f} ({mode})  "
            f"Reward: {snapshot.score:.1f}  [{state}]")


def render(snapshot: SimulationSnapshot) -> str:
    """Status line, board and replay log together."""
    parts: List[str] = [
        render_status(snapshot),
        render_grid(snapshot),
        render_replay_log(snapshot),
    ]
    return "\n\n".join(parts)


def render_architecture(active: str = "") -> str:
    """The DQN pipeline as one line of blocks, plus the active stage's text."""
    blocks = []
    for stage in ARCHITECTURE_STAGES:
        marker = "*" if stage.id == active else " "
        blocks.append(f"[{marker}{stage.title} {stage.shape}]")
    lines = [" -> ".join(blocks), ""]
    for stage in ARCHITECTURE_STAGES:
        if stage.id == active:
            lines.append(f"{stage.title} ({stage.subtitle})")
            lines.append(f"  {stage.description}")
            break
    else:
        lines.append("Pick a stage to see what it does in a DQN.")
    lines.append("")
    lines.extend(f"  {card.title}: {card.content}"
                 for card in ARCHITECTURE_HIGHLIGHTS)
    return "\n".join(lines)
