"""
DQN Agent
=========

The agent that learns to play Flappy Bird using Deep Q-Learning.

Key Components:
    1. Value Model     - Q-network (plus target network for the DOUBLE variant)
    2. Replay Buffer   - Stores transitions for training
    3. Epsilon-Greedy  - Balances exploration vs exploitation

Training Algorithm (per episode):
    1. Observe state s
    2. Choose action a (epsilon-greedy, random actions biased towards STAY)
    3. Execute action, observe reward r and next state s'
    4. Store (s, a, r, s', done) in replay buffer
    5. At the end of the episode, sample a batch from the buffer
    6. Calculate target: y = r + γ * max_a' Q_target(s', a')  (y = r if done)
    7. Update the network: minimize (Q(s,a) - y)²
    8. Decay epsilon; periodically sync the target network (done by Trainer)

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

import math
import random
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import numpy as np

from config import Config
from .replay_buffer import ReplayBuffer
from .value_model import ModelVariant, ValueModel
from ..utils.logger import get_logger, log_model_event

logger = get_logger(__name__)


class ModelFormatError(ValueError):
    """A model snapshot is missing data or does not fit the network."""


class Agent:
    """
    DQN Agent for reinforcement learning.

    Action Selection:
        - With probability epsilon: random action, STAY with probability
          EXPLORE_NOOP_PROB, FLAP otherwise (exploration)
        - With probability (1-epsilon): best Q-value action (exploitation)

    Attributes:
        model: Value model used for action selection and learning
        memory: Experience replay buffer
        epsilon: Current exploration rate

    Example:
        >>> agent = Agent(state_size=4, action_size=2)
        >>> action = agent.act(state)
        >>> agent.remember(state, action, reward, next_state, done)
        >>> loss = agent.replay()
    """

    def __init__(
        self,
        state_size: int,
        action_size: int,
        config: Optional[Config] = None,
        variant: Optional[ModelVariant] = None
    ):
        """
        Initialize the DQN agent.

        Args:
            state_size: Dimension of state vector
            action_size: Number of possible actions
            config: Configuration object
            variant: SINGLE or DOUBLE (default from config.USE_DOUBLE_DQN)
        """
        self.config = config or Config()
        self.state_size = state_size
        self.action_size = action_size

        if variant is None:
            variant = ModelVariant.DOUBLE if self.config.USE_DOUBLE_DQN else ModelVariant.SINGLE
        self.variant = variant
        self.model = self._build_model()

        self.memory = ReplayBuffer(capacity=self.config.MEMORY_SIZE, state_size=state_size)

        # Exploration
        self.epsilon = self.config.EPSILON_START

        # Number of completed learning steps
        self.learn_steps = 0

    def _build_model(self, hidden_dim: Optional[int] = None) -> ValueModel:
        return ValueModel(
            self.state_size,
            self.action_size,
            config=self.config,
            variant=self.variant,
            hidden_dim=hidden_dim
        )

    @property
    def hidden_dim(self) -> int:
        return self.model.hidden_dim

    def act(self, state: np.ndarray, training: bool = True) -> int:
        """
        Select an action using the epsilon-greedy policy.

        Args:
            state: Current game state
            training: If True, use exploration; if False, use greedy

        Returns:
            Selected action index
        """
        if training and random.random() < self.epsilon:
            # Random actions are intentionally biased towards STAY
            if random.random() < self.config.EXPLORE_NOOP_PROB:
                return 0
            return 1

        q_values = self.model.predict(state.reshape(1, -1))
        return int(q_values.argmax(axis=1)[0])

    def get_q_values(self, state: np.ndarray) -> np.ndarray:
        """Q-values for all actions of a single state."""
        return self.model.predict(state.reshape(1, -1))[0]

    def remember(
        self,
        state: np.ndarray,
        action: int,
        reward: float,
        next_state: np.ndarray,
        done: bool
    ) -> None:
        """Store a transition in the replay buffer."""
        self.memory.push(state, action, reward, next_state, done)

    def compute_targets(
        self,
        states: np.ndarray,
        actions: np.ndarray,
        rewards: np.ndarray,
        next_states: np.ndarray,
        dones: np.ndarray
    ) -> np.ndarray:
        """
        Regression targets for a batch of transitions.

        Only the taken action's value is replaced; the other actions keep
        their current prediction so the update does not push them.
        """
        targets = self.model.predict(states).copy()

        if self.model.has_target:
            next_q = self.model.predict_target(next_states)
        else:
            next_q = self.model.predict(next_states)
        max_next_q = next_q.max(axis=1)

        rows = np.arange(len(actions))
        terminal = dones.astype(bool)
        bootstrapped = rewards + self.config.GAMMA * max_next_q
        targets[rows, actions] = np.where(terminal, rewards, bootstrapped)
        return targets

    def replay(self) -> Optional[float]:
        """
        Perform one learning step on a sampled batch.

        Returns:
            Loss value if training occurred, None when the buffer holds
            fewer than BATCH_SIZE transitions
        """
        batch_size = self.config.BATCH_SIZE
        if not self.memory.is_ready(batch_size):
            return None

        states, actions, rewards, next_states, dones = self.memory.sample(batch_size)
        targets = self.compute_targets(states, actions, rewards, next_states, dones)

        loss = self.model.update(states, targets)
        self.learn_steps += 1
        return loss

    def update_target_network(self) -> None:
        """Sync the target network (no-op for the SINGLE variant)."""
        self.model.update_target()

    def decay_epsilon(self) -> None:
        """epsilon = max(EPSILON_END, epsilon * EPSILON_DECAY)."""
        self.epsilon = max(
            self.config.EPSILON_END,
            self.epsilon * self.config.EPSILON_DECAY
        )

    def reset(self, new_model: bool = False) -> None:
        """
        Forget all experience and restore the initial exploration rate.

        Args:
            new_model: Also replace the network with a freshly initialized one
        """
        self.memory.clear()
        self.epsilon = self.config.EPSILON_START
        self.learn_steps = 0
        if new_model:
            old_model = self.model
            self.model = self._build_model(old_model.hidden_dim)
            old_model.dispose()

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def export_model(self, episode: int = 0, statistics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Serializable snapshot of the live network and training progress.

        Returns:
            {'weights': nested lists, 'config': {episode, epsilon, memorySize,
             hiddenDim, statistics, timestamp}}

        Kernels are written (in, out), one row per input feature.
        """
        return {
            'weights': [_to_snapshot_layout(w).tolist() for w in self.model.get_weights()],
            'config': {
                'episode': episode,
                'epsilon': self.epsilon,
                'memorySize': len(self.memory),
                'hiddenDim': self.model.hidden_dim,
                'statistics': statistics or {},
                'timestamp': datetime.now().isoformat(),
            }
        }

    def import_model(self, data: Mapping[str, Any], source: str = 'snapshot') -> Dict[str, Any]:
        """
        Replace the network with the one described by a snapshot.

        Everything is validated on a new model first; the agent is only
        modified once the snapshot is known to be good.

        Args:
            data: Snapshot as produced by export_model()
            source: Label used in log messages

        Returns:
            The applied settings: {'hidden_dim', 'epsilon'}

        Raises:
            ModelFormatError: If the snapshot is malformed
        """
        if not isinstance(data, Mapping):
            raise ModelFormatError("Invalid model file format: expected an object")

        weights = data.get('weights')
        if not isinstance(weights, list) or not weights:
            raise ModelFormatError("Invalid model file format: 'weights' must be a non-empty list")

        cfg = data.get('config') or {}
        if not isinstance(cfg, Mapping):
            raise ModelFormatError("Invalid model file format: 'config' must be an object")

        hidden_dim = cfg.get('hiddenDim')
        if not _is_number(hidden_dim) or hidden_dim <= 0 or int(hidden_dim) != hidden_dim:
            hidden_dim = self.config.HIDDEN_DIM
        hidden_dim = int(hidden_dim)

        epsilon = cfg.get('epsilon')
        if not _is_number(epsilon):
            epsilon = self.epsilon

        candidate = self._build_model(hidden_dim)
        try:
            arrays = [_to_snapshot_layout(np.asarray(w, dtype=np.float32)) for w in weights]
            candidate.set_weights(arrays)
        except (ValueError, TypeError) as e:
            candidate.dispose()
            raise ModelFormatError(f"Invalid model weights: {e}") from e
        candidate.update_target()

        old_model = self.model
        self.model = candidate
        old_model.dispose()
        self.epsilon = float(epsilon)

        log_model_event('import', source, hidden_dim=hidden_dim, epsilon=f"{self.epsilon:.4f}")
        return {'hidden_dim': hidden_dim, 'epsilon': self.epsilon}


def _is_number(value: Any) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def _to_snapshot_layout(array: np.ndarray) -> np.ndarray:
    # torch keeps Linear kernels as (out, in); snapshots hold (in, out)
    return array.T if array.ndim == 2 else array
