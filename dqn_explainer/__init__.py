"""
DQN Explainer: an interactive walk through Deep Q-Networks.

The centre of the explainer is a live grid world in which an agent learns by
tabular Q-learning, the algorithm a DQN generalises. Around it sit concept
cards, a text renderer for the board and Q-values, and a chat session
contract for asking a tutor questions.
"""

from dqn_explainer.worlds.grid_env import Action, CellType, Grid, make_default_grid
from dqn_explainer.worlds.simulation import (
    Experience, GridWorldSimulation, SimulationConfig, SimulationSnapshot,
)
from dqn_explainer.concepts import DQN_CONCEPTS, Concept
from dqn_explainer.render import render
from dqn_explainer.tutor import ChatSession, GeminiTransport, Message

__version__ = "0.1.0"
__all__ = [
    "Action",
    "CellType",
    "Grid",
    "make_default_grid",
    "Experience",
    "GridWorldSimulation",
    "SimulationConfig",
    "SimulationSnapshot",
    "DQN_CONCEPTS",
    "Concept",
    "render",
    "ChatSession",
    "Message",
    "GeminiTransport",
]
