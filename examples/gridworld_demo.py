"""
Grid world demo: watch tabular Q-learning find the goal.

The agent starts with an empty Q table and full exploration. Each finished
episode decays epsilon a little, so it drifts from wandering at random to
walking the path it has learned.
"""

from dqn_explainer import GridWorldSimulation, SimulationConfig, render
from dqn_explainer.render import render_q_table


def main():
    print("=" * 60)
    print("  DQN Explainer — Grid World Q-Learning")
    print("=" * 60)

    sim = GridWorldSimulation(SimulationConfig(seed=42))
    print()
    print(sim.grid.render(agent=sim.agent_pos))
    print()

    sim.run_episodes(300, verbose=True)
    print()
    print(sim.summary())

    snapshot = sim.snapshot()
    print()
    print(render(snapshot))
    print()
    print(render_q_table(snapshot))


if __name__ == "__main__":
    main()
