"""
Game Module
===========

Contains the Flappy Bird simulation and its RL environment adapter.

Classes:
    FlappyBird        - Game physics (bird, tubes, scoring)
    FlappyEnvironment - State features and reward shaping for the agent
    BaseGame          - Abstract interface for environments
"""

from .base_game import BaseGame
from .flappy_bird import FlappyBird, GameState, Tube
from .environment import FlappyEnvironment


__all__ = [
    'BaseGame',
    'FlappyBird',
    'FlappyEnvironment',
    'GameState',
    'Tube',
]
