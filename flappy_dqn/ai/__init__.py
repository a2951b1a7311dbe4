"""
AI Module
=========

Deep Reinforcement Learning components for game playing.

Classes:
    DQN          - Deep Q-Network neural network architecture
    ValueModel   - Q-function with optional target network (SINGLE/DOUBLE)
    Agent        - DQN agent with epsilon-greedy exploration
    ReplayBuffer - Experience replay memory
    Trainer      - Training loop orchestration with pause/resume
"""

from .network import DQN
from .value_model import ModelVariant, ValueModel
from .agent import Agent, ModelFormatError
from .replay_buffer import ReplayBuffer, Transition
from .trainer import EpisodeState, EpisodeStats, Trainer, TrainerState, TrainingMetrics

__all__ = [
    'DQN',
    'ModelVariant',
    'ValueModel',
    'Agent',
    'ModelFormatError',
    'ReplayBuffer',
    'Transition',
    'Trainer',
    'TrainerState',
    'EpisodeState',
    'EpisodeStats',
    'TrainingMetrics',
]
