"""
Flappy Bird DQN - Source Package
================================

This package contains all the components for training an agent to play
Flappy Bird with Deep Q-Learning.

Modules:
    game/   - Flappy Bird simulation and its RL environment
    ai/     - Neural network, value model, agent and training logic
    utils/  - Logging
"""

__version__ = "1.0.0"
