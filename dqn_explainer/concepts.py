"""
Explanatory content shown next to the simulation.

Short concept cards on how tabular Q-learning grows into a Deep Q-Network,
the stages of the DQN network diagram, and the section list used for page
navigation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List


class Section(Enum):
    """Top-level pages of the explainer."""
    INTRO = "INTRO"
    ARCHITECTURE = "ARCH"
    SIMULATION = "SIM"
    CHAT = "CHAT"


SECTIONS: List[Section] = list(Section)


@dataclass(frozen=True)
class Concept:
    """One explanatory card."""
    title: str
    content: str


DQN_CONCEPTS: List[Concept] = [
    Concept(
        "Q-Learning basics",
        "Q-Learning is a value-based reinforcement learning algorithm. It "
        "keeps a Q-table holding, for every state and action, the expected "
        "cumulative reward of taking that action in that state. Update rule: "
        "Q(s,a) ← Q(s,a) + α[r + γ max Q(s',a') − Q(s,a)]",
    ),
    Concept(
        "From Q-table to neural network",
        "When the state space is huge (for example the raw pixels of a video "
        "game) a table is no longer practical. A DQN approximates the Q "
        "function with a deep neural network: the input is the state, the "
        "output is one Q-value per action.",
    ),
    Concept(
        "Experience replay",
        "A DQN stores the agent's transitions (state, action, reward, next "
        "state) in a replay buffer and trains on random mini-batches drawn "
        "from it. This breaks the correlation between consecutive samples "
        "and makes training more stable.",
    ),
    Concept(
        "Target network",
        "Computing targets with the same network that is being trained makes "
        "them move at every update. A DQN keeps two networks: the online "
        "network picks actions, a target network computes target Q-values, "
        "and its weights are copied over from the online network "
        "periodically.",
    ),
]


def find_concept(title: str) -> Concept:
    """Look up a concept card by title (case-insensitive)."""
    for concept in DQN_CONCEPTS:
        if concept.title.lower() == title.lower():
            return concept
    raise KeyError(title)


# ---------------------------------------------------------------------------
# Network diagram
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArchitectureStage:
    """One block of the DQN pipeline diagram, from pixels to Q-values."""
    id: str
    title: str
    subtitle: str
    shape: str          # Tensor shape or label shown under the block
    description: str


ARCHITECTURE_STAGES: List[ArchitectureStage] = [
    ArchitectureStage(
        "input", "State (Input)", "Input Frame", "[84, 84, 4]",
        "The game screen or environment state is turned into a matrix of "
        "numbers. In DQN this is usually a preprocessed 84x84 greyscale "
        "image, with the last four frames stacked.",
    ),
    ArchitectureStage(
        "conv", "Convolution", "Feature Extraction", "Features",
        "Convolutional layers scan the image and extract features such as "
        "edges, shapes and object positions. Nothing is hand-designed; the "
        "network learns the features itself.",
    ),
    ArchitectureStage(
        "fc", "Fully Connected", "Reasoning", "Vector [512]",
        "Fully connected layers combine the extracted features into a "
        "reading of the current situation, for example: \"there is an "
        "obstacle ahead and a reward to the right\".",
    ),
    ArchitectureStage(
        "output", "Q-Values (Output)", "Action Scores", "Select Max Q",
        "The output layer gives one Q-value per possible action. A higher "
        "Q-value means a higher expected total reward after taking that "
        "action.",
    ),
]

ARCHITECTURE_HIGHLIGHTS: List[Concept] = [
    Concept("End-to-End", "Straight from pixels to actions"),
    Concept("Approximation", "A neural network fits the Q-table"),
    Concept("Loss Function", "MSE(Target Q - Predicted Q)"),
]


def find_stage(stage_id: str) -> ArchitectureStage:
    """Look up a diagram stage by id ("input", "conv", "fc", "output")."""
    for stage in ARCHITECTURE_STAGES:
        if stage.id == stage_id:
            return stage
    raise KeyError(stage_id)
