"""
Live demo: let the scheduler drive training for a few seconds.

The speed is raised halfway through to show that a running scheduler picks
up the new interval without being restarted.
"""

import time

from dqn_explainer import GridWorldSimulation, SimulationConfig
from dqn_explainer.render import render_grid, render_status


def main():
    with GridWorldSimulation(SimulationConfig(seed=7, speed=50)) as sim:
        sim.start_training()
        for second in range(6):
            if second == 3:
                sim.set_speed(100)
            time.sleep(1.0)
            snapshot = sim.snapshot()
            print(render_status(snapshot))
            print(render_grid(snapshot))
            print()
        sim.pause_training()
        print(f"Stopped after {sim.total_steps} steps.")


if __name__ == "__main__":
    main()
