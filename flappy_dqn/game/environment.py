"""
Flappy Bird RL Environment
==========================

Adapter between the FlappyBird simulation and the learning agent.

State vector (4 features, not clipped):
    - bird_speed:    vertical speed / 2
    - tube_distance: (closest tube x - bird x) / width
    - gap_offset:    (gap center y - bird center y) / height
                     (positive = bird is above the gap center)
    - bird_y:        bird y / height

Reward per tick:
    +0.1   staying alive
    +5.0   passing a tube (replaces the alive reward)
    -10.0  dying (replaces the others), with a further -5.0 when the last
           action pushed the bird away from the gap center
    While alive, 0.01 per unit of distance to the gap center is subtracted.
"""

from typing import Optional, Tuple

import numpy as np
import pygame

from config import Config
from .base_game import BaseGame
from .flappy_bird import FlappyBird


class FlappyEnvironment(BaseGame):
    """
    Flappy Bird as a reinforcement learning environment.

    Actions:
        0 = STAY (do nothing)
        1 = FLAP

    Example:
        >>> env = FlappyEnvironment()
        >>> state = env.reset()
        >>> next_state, reward, done, info = env.step(FlappyEnvironment.FLAP)
    """

    STAY = 0
    FLAP = 1
    ACTION_NAMES = ['STAY', 'FLAP']

    def __init__(
        self,
        config: Optional[Config] = None,
        game: Optional[FlappyBird] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the environment.

        Args:
            config: Configuration object (uses default if None)
            game: Simulation to wrap (a new one is created if None)
            seed: Seed for the created simulation
        """
        self.config = config or Config()
        self.game = game or FlappyBird(self.config, seed=seed)
        self.previous_score = 0
        self.last_action = self.STAY

        # Pre-computed normalization constants
        self._inv_width = 1.0 / self.game.width
        self._inv_height = 1.0 / self.game.height

    @property
    def state_size(self) -> int:
        return 4

    @property
    def action_size(self) -> int:
        return 2

    @property
    def score(self) -> int:
        return self.game.score

    def reset(self) -> np.ndarray:
        """Start a new game and return the initial state."""
        self.game.reset()
        self.previous_score = 0
        self.last_action = self.STAY
        return self.get_state()

    def gap_offset(self) -> float:
        """Vertical distance from the bird's center to the closest gap center, in game units."""
        tube = self.game.closest_tube()
        return tube.gap_center - self.game.bird_center_y

    def get_state(self) -> np.ndarray:
        tube = self.game.closest_tube()
        return np.array([
            self.game.bird_y_speed / 2.0,
            (tube.x - self.game.bird_x) * self._inv_width,
            self.gap_offset() * self._inv_height,
            self.game.bird_y * self._inv_height,
        ], dtype=np.float32)

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, dict]:
        """
        Apply an action for one simulation tick.

        Args:
            action: 0 = STAY, 1 = FLAP

        Returns:
            (next_state, reward, done, info)
        """
        if self.game.game_over:
            return self.get_state(), 0.0, True, self._get_info()

        if action == self.FLAP:
            self.game.jump()
        self.last_action = action

        self.game.update()

        reward = self._calculate_reward()
        done = self.game.game_over

        return self.get_state(), reward, done, self._get_info()

    def _calculate_reward(self) -> float:
        reward = self.config.REWARD_ALIVE

        if self.game.score > self.previous_score:
            reward = self.config.REWARD_PASS_TUBE
            self.previous_score = self.game.score

        offset = self.gap_offset()
        if self.game.game_over:
            reward = self.config.REWARD_DEATH

            # Flapped while above the gap, or stayed while below it
            if offset > 0 and self.last_action == self.FLAP:
                reward += self.config.REWARD_WRONG_SIDE
            elif offset < 0 and self.last_action == self.STAY:
                reward += self.config.REWARD_WRONG_SIDE
        else:
            reward -= abs(offset) * self.config.REWARD_OFFSET_PENALTY

        return float(reward)

    def _get_info(self) -> dict:
        tube = self.game.closest_tube()
        return {
            'score': self.game.score,
            'tube_x': tube.x,
            'gap_offset': self.gap_offset(),
        }

    def render(self, screen: pygame.Surface) -> None:
        self.game.render(screen)

    def seed(self, seed: int) -> None:
        self.game.seed(seed)
