"""
Environment Interface
=====================

The contract between an environment and the Agent/Trainer. The trainer only
talks to environments through these members, so any BaseGame subclass can
be trained.

Step contract:
    step(action) -> (next_state, reward, done, info)
    - next_state: float32 feature vector of length state_size
    - reward:     shaped reward for this tick
    - done:       True once the episode is over
    - info:       extra diagnostics (at least 'score')
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np


class BaseGame(ABC):
    """Abstract reinforcement learning environment with discrete actions."""

    @property
    @abstractmethod
    def state_size(self) -> int:
        """Length of the feature vector."""

    @property
    @abstractmethod
    def action_size(self) -> int:
        """Number of discrete actions."""

    @property
    @abstractmethod
    def score(self) -> int:
        """Score of the game in progress."""

    @abstractmethod
    def reset(self) -> np.ndarray:
        """Start a new episode and return its first state."""

    @abstractmethod
    def step(self, action: int) -> Tuple[np.ndarray, float, bool, dict]:
        """Advance exactly one tick with the given action."""

    @abstractmethod
    def get_state(self) -> np.ndarray:
        """Features of the current situation, without advancing the game."""

    @abstractmethod
    def render(self, screen) -> None:
        """Draw the game on a pygame surface."""

    def close(self) -> None:
        """Release resources held by the environment."""

    def seed(self, seed: Optional[int]) -> None:
        """Reseed the environment's own random generator."""
