"""
Configuration file for Flappy Bird DQN
======================================

All hyperparameters, game settings, and training options are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.GAMMA)
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional
import torch


# Hyperparameter names accepted by Config.from_hyperparameters(), mapped to
# the Config fields they set. These are the keys used by saved snapshots.
HYPERPARAMETER_FIELDS: Dict[str, str] = {
    'gamma': 'GAMMA',
    'epsilon': 'EPSILON_START',
    'epsilonDecay': 'EPSILON_DECAY',
    'epsilonMin': 'EPSILON_END',
    'batchSize': 'BATCH_SIZE',
    'memoryMaxLen': 'MEMORY_SIZE',
    'targetUpdateFreq': 'TARGET_UPDATE',
}


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Game Settings - Flappy Bird simulation parameters
    2. Rewards - Reward shaping for the environment
    3. Neural Network - Architecture configuration
    4. Training - Learning hyperparameters
    5. Exploration - Epsilon-greedy settings
    6. System - Hardware and paths
    """

    # =========================================================================
    # GAME SETTINGS
    # =========================================================================

    # Play field, in simulation units (one unit = one sprite pixel)
    GAME_WIDTH: int = 32
    GAME_HEIGHT: int = 32

    # Bird
    BIRD_X: int = 5
    BIRD_START_Y: float = 14.0
    BIRD_WIDTH: int = 5
    BIRD_HEIGHT: int = 3
    GRAVITY: float = 0.25        # Added to vertical speed every tick
    JUMP_SPEED: float = -1.4     # Vertical speed right after a flap (negative = up)

    # Tubes (upper pipe, gap, lower pipe stacked in one column)
    TUBE_COUNT: int = 2
    TUBE_WIDTH: int = 6
    TUBE_GAP: int = 12
    TUBE_UPPER_HEIGHT: int = 17
    TUBE_TOTAL_HEIGHT: int = 44
    TUBE_START_X: int = 48
    TUBE_SPACING: int = 19
    TUBE_RESPAWN_X: int = 32
    TUBE_EDGE_MARGIN: int = 4    # Keep gap centers away from the top/bottom

    # Window scale for the optional debug renderer
    RENDER_SCALE: int = 10
    FPS: int = 30

    # =========================================================================
    # REWARD SHAPING
    # =========================================================================

    REWARD_ALIVE: float = 0.1            # Every tick the bird survives
    REWARD_PASS_TUBE: float = 5.0        # Tick on which the score increases
    REWARD_DEATH: float = -10.0          # Terminal tick
    REWARD_WRONG_SIDE: float = -5.0      # Extra on death if the last action pushed away from the gap
    REWARD_OFFSET_PENALTY: float = 0.01  # Per unit of distance from the gap center, while alive

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # First hidden layer width; the second hidden layer is twice as wide
    HIDDEN_DIM: int = 64

    # Learning rate for Adam
    LEARNING_RATE: float = 0.001

    # Gradient clipping (0 = disabled)
    GRAD_CLIP: float = 0.0

    # =========================================================================
    # TRAINING HYPERPARAMETERS
    # =========================================================================

    # Discount factor (gamma) - How much to value future rewards
    GAMMA: float = 0.99

    # Batch size - Number of transitions replayed after each episode
    BATCH_SIZE: int = 32

    # Replay buffer capacity
    MEMORY_SIZE: int = 10_000

    # Target network sync period, in episodes (Double variant only)
    TARGET_UPDATE: int = 10

    # Use a separate target network for bootstrapped targets
    USE_DOUBLE_DQN: bool = True

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    EPSILON_START: float = 0.3
    EPSILON_END: float = 0.01

    # epsilon *= EPSILON_DECAY after each completed episode
    EPSILON_DECAY: float = 0.9995

    # Random actions are biased towards not flapping
    EXPLORE_NOOP_PROB: float = 0.75

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Episodes per train() call
    MAX_EPISODES: int = 10_000

    # Maximum steps per episode (prevents endless games)
    MAX_STEPS_PER_EPISODE: int = 30_000

    # Pause after each tick (seconds), for watching the agent play
    TRAINING_DELAY: float = 0.0

    # Log stats every N episodes
    LOG_EVERY: int = 10

    # Number of episodes used for running averages
    STATS_WINDOW: int = 100

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # The network is tiny, so the CPU beats any accelerator transfer overhead
    FORCE_CPU: bool = True

    @property
    def DEVICE(self) -> torch.device:
        """Auto-detect CUDA/MPS/CPU, or force CPU if configured."""
        if self.FORCE_CPU:
            return torch.device('cpu')
        if torch.cuda.is_available():
            return torch.device('cuda')
        elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            return torch.device('mps')
        return torch.device('cpu')

    # Paths
    LOG_DIR: str = 'logs'

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation."""
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert 0 < self.GAMMA <= 1, "Gamma must be in (0, 1]"
        assert self.BATCH_SIZE > 0, "Batch size must be positive"
        assert self.MEMORY_SIZE >= self.BATCH_SIZE, "Memory size must hold at least one batch"
        assert self.TARGET_UPDATE > 0, "Target update period must be positive"
        assert 0 <= self.EPSILON_END <= self.EPSILON_START <= 1, "Epsilon must satisfy 0 <= end <= start <= 1"
        assert 0 < self.EPSILON_DECAY <= 1, "Epsilon decay must be in (0, 1]"
        assert 0 <= self.EXPLORE_NOOP_PROB <= 1, "EXPLORE_NOOP_PROB must be a probability"
        assert self.HIDDEN_DIM > 0, "Hidden dimension must be positive"
        assert self.MAX_STEPS_PER_EPISODE > 0, "MAX_STEPS_PER_EPISODE must be positive"
        assert self.TRAINING_DELAY >= 0, "Training delay cannot be negative"

    @classmethod
    def from_hyperparameters(cls, params: Mapping[str, Any], **overrides: Any) -> 'Config':
        """
        Build a config from the agent hyperparameter names.

        Args:
            params: Any of gamma, epsilon, epsilonDecay, epsilonMin,
                    batchSize, memoryMaxLen, targetUpdateFreq
            **overrides: Extra Config fields set by their own name

        Raises:
            ValueError: On an unknown hyperparameter or field name
        """
        values: Dict[str, Any] = {}
        for key, value in params.items():
            if key not in HYPERPARAMETER_FIELDS:
                raise ValueError(f"Unknown hyperparameter: {key}")
            values[HYPERPARAMETER_FIELDS[key]] = value

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise ValueError(f"Unknown config field: {key}")
            values[key] = value

        return cls(**values)

    def hyperparameters(self) -> Dict[str, Any]:
        """Return the agent hyperparameters under their snapshot names."""
        return {key: getattr(self, name) for key, name in HYPERPARAMETER_FIELDS.items()}


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("Flappy Bird DQN - Configuration Summary")
    print("=" * 60)
    print(f"\nGame: {cfg.GAME_WIDTH}x{cfg.GAME_HEIGHT}, gap={cfg.TUBE_GAP}")
    print(f"\nNeural Network:")
    print(f"   Hidden: {cfg.HIDDEN_DIM} -> {cfg.HIDDEN_DIM * 2}")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Batch size: {cfg.BATCH_SIZE}")
    print(f"   Gamma: {cfg.GAMMA}")
    print(f"   Double DQN: {cfg.USE_DOUBLE_DQN} (sync every {cfg.TARGET_UPDATE} episodes)")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_START} -> {cfg.EPSILON_END}")
    print(f"   Decay: {cfg.EPSILON_DECAY}")
    print(f"\nDevice: {cfg.DEVICE}")
    print("=" * 60)
