"""
Flappy Bird Simulation
======================

A tiny Flappy Bird clone on a 32x32 grid, designed for AI training.

Key Features:
- Integer tube positions so scoring happens on an exact tick
- Rectangle collision between the bird and the pipes
- Seedable tube placement for reproducible episodes
- Optional rendering with Pygame (plain rectangles, no sprites)

Game Rules:
- The bird falls under gravity; flapping sets an upward speed
- Tubes scroll left one unit per tick and respawn on the right
- Passing a tube scores one point
- Hitting a pipe or the ground ends the game
"""

import math
from enum import Enum
from typing import List, Optional

import numpy as np
import pygame

from config import Config


class GameState(Enum):
    """Lifecycle of a single game."""
    HOME = 0
    PLAYING = 1
    GAME_OVER = 2


class Tube:
    """
    One pipe column: upper pipe, gap, lower pipe.

    `y` is the top of the whole column and may be negative; the gap center
    sits TUBE_UPPER_HEIGHT + TUBE_GAP / 2 below it.
    """

    def __init__(self, x: int, y: int, width: int, upper_height: int, gap: int, total_height: int):
        self.x = x
        self.y = y
        self.width = width
        self.upper_height = upper_height
        self.gap = gap
        self.total_height = total_height

    @property
    def gap_center(self) -> float:
        return self.y + self.upper_height + self.gap / 2

    @property
    def upper_rect(self) -> pygame.Rect:
        return pygame.Rect(self.x, self.y, self.width, self.upper_height)

    @property
    def lower_rect(self) -> pygame.Rect:
        top = self.y + self.upper_height + self.gap
        return pygame.Rect(self.x, top, self.width, self.total_height - self.upper_height - self.gap)


class FlappyBird:
    """
    Flappy Bird game physics.

    This class only simulates; reward shaping and state features live in
    FlappyEnvironment.

    Example:
        >>> game = FlappyBird()
        >>> game.reset()
        >>> game.jump()
        >>> game.update()
        >>> game.score
        0
    """

    # Background, ground, bird, pipe
    COLOR_SKY = (112, 197, 206)
    COLOR_GROUND = (222, 216, 149)
    COLOR_BIRD = (250, 200, 40)
    COLOR_PIPE = (115, 191, 46)

    def __init__(self, config: Optional[Config] = None, seed: Optional[int] = None):
        """
        Initialize the simulation in the HOME state.

        Args:
            config: Configuration object (uses default if None)
            seed: Seed for tube placement (random if None)
        """
        self.config = config or Config()
        self.width = self.config.GAME_WIDTH
        self.height = self.config.GAME_HEIGHT

        self.bird_x = self.config.BIRD_X
        self.bird_width = self.config.BIRD_WIDTH
        self.bird_height = self.config.BIRD_HEIGHT
        self.bird_y = self.config.BIRD_START_Y
        self.bird_y_speed = 0.0

        self.tubes: List[Tube] = []
        self.state = GameState.HOME
        self.score = 0

        self._rng = np.random.default_rng(seed)
        self._font: Optional[pygame.font.Font] = None

        self.initialize()

    def seed(self, seed: Optional[int]) -> None:
        """Reseed tube placement."""
        self._rng = np.random.default_rng(seed)

    @property
    def game_over(self) -> bool:
        return self.state is GameState.GAME_OVER

    def reset(self) -> None:
        """Start a new game immediately (PLAYING state)."""
        self._reset_bird()
        self.state = GameState.PLAYING
        self._reset_tubes()

    def initialize(self) -> None:
        """Put the game back on the HOME screen."""
        self._reset_bird()
        self.state = GameState.HOME
        self._reset_tubes()

    def _reset_bird(self) -> None:
        self.bird_y = self.config.BIRD_START_Y
        self.bird_y_speed = 0.0
        self.score = 0

    def _reset_tubes(self) -> None:
        self.tubes = []
        for i in range(self.config.TUBE_COUNT):
            tube = Tube(
                x=self.config.TUBE_START_X + i * self.config.TUBE_SPACING,
                y=0,
                width=self.config.TUBE_WIDTH,
                upper_height=self.config.TUBE_UPPER_HEIGHT,
                gap=self.config.TUBE_GAP,
                total_height=self.config.TUBE_TOTAL_HEIGHT,
            )
            self._place_tube(tube)
            self.tubes.append(tube)

    def _place_tube(self, tube: Tube) -> None:
        """Pick a random gap center inside the play area and position the column around it."""
        gap_half = self.config.TUBE_GAP / 2
        min_center = int(self.config.TUBE_EDGE_MARGIN + gap_half)
        max_center = int(self.height - 1 - self.config.TUBE_EDGE_MARGIN - gap_half)
        gap_center = int(self._rng.integers(min_center, max_center + 1))
        tube.y = int(round(gap_center - (self.config.TUBE_UPPER_HEIGHT + gap_half)))

    def jump(self) -> None:
        """Flap. Starts the game when called from the HOME screen."""
        if self.state is GameState.HOME:
            self.state = GameState.PLAYING
            self.bird_y_speed = self.config.JUMP_SPEED
        elif self.state is GameState.PLAYING:
            self.bird_y_speed = self.config.JUMP_SPEED

    def update(self) -> None:
        """Advance the simulation by one tick."""
        if self.state is not GameState.PLAYING:
            return

        # Bird physics
        self.bird_y += self.bird_y_speed
        self.bird_y_speed += self.config.GRAVITY

        if self.bird_y < 0:
            self.bird_y = 0.0
            self.bird_y_speed = 0.0
        if math.floor(self.bird_y) + self.bird_height > self.height - 1:
            self.bird_y = float(self.height - self.bird_height - 1)
            self.state = GameState.GAME_OVER

        for tube in self.tubes:
            tube.x -= 1
            if tube.x <= -tube.width:
                tube.x = self.config.TUBE_RESPAWN_X
                self._place_tube(tube)

            # Tube's right edge just cleared the bird's left edge
            if tube.x == self.bird_x - tube.width:
                self.score += 1

        self._check_collision()

    @property
    def bird_rect(self) -> pygame.Rect:
        return pygame.Rect(self.bird_x, math.floor(self.bird_y), self.bird_width, self.bird_height)

    @property
    def bird_center_y(self) -> float:
        return self.bird_y + self.bird_height / 2

    def _check_collision(self) -> None:
        bird = self.bird_rect
        for tube in self.tubes:
            if bird.colliderect(tube.upper_rect) or bird.colliderect(tube.lower_rect):
                self.state = GameState.GAME_OVER
                return

    def closest_tube(self) -> Tube:
        """Return the nearest tube that the bird has not fully passed."""
        closest = self.tubes[0]
        for tube in self.tubes:
            if tube.x + tube.width > self.bird_x:
                if tube.x < closest.x or closest.x + closest.width <= self.bird_x:
                    closest = tube
        return closest

    def render(self, screen: pygame.Surface) -> None:
        """Draw the game scaled by RENDER_SCALE."""
        scale = self.config.RENDER_SCALE

        def to_screen(rect: pygame.Rect) -> pygame.Rect:
            return pygame.Rect(rect.x * scale, rect.y * scale, rect.width * scale, rect.height * scale)

        screen.fill(self.COLOR_SKY)
        for tube in self.tubes:
            pygame.draw.rect(screen, self.COLOR_PIPE, to_screen(tube.upper_rect))
            pygame.draw.rect(screen, self.COLOR_PIPE, to_screen(tube.lower_rect))

        ground = pygame.Rect(0, self.height - 1, self.width, 1)
        pygame.draw.rect(screen, self.COLOR_GROUND, to_screen(ground))
        pygame.draw.rect(screen, self.COLOR_BIRD, to_screen(self.bird_rect))

        if self.state is not GameState.HOME:
            if self._font is None:
                pygame.font.init()
                self._font = pygame.font.Font(None, 28)
            text = self._font.render(f"Score: {self.score}", True, (255, 255, 255))
            screen.blit(text, (10, 10))
