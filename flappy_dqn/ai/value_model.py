"""
Value Model
===========

Wraps the DQN network with everything the agent needs from a Q-function:
prediction, one-step regression updates, and an optional frozen target copy.

Variants:
    SINGLE - One network is used both to act and to compute targets.
    DOUBLE - A second "target" network, synced from the live one on demand,
             supplies the max future value for bootstrapped targets. This
             decouples the value being updated from the value used to
             estimate its own future, which reduces overestimation.
"""

from enum import Enum
from typing import List, Optional

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from config import Config
from .network import DQN


class ModelVariant(Enum):
    """Which capabilities a ValueModel provides."""
    SINGLE = 'single'
    DOUBLE = 'double'


class ValueModel:
    """
    Q-value approximator with an optional target network.

    Attributes:
        variant: ModelVariant.SINGLE or ModelVariant.DOUBLE
        policy_net: Network trained by update()
        target_net: Frozen copy (DOUBLE only, None otherwise)

    Example:
        >>> model = ValueModel(4, 2, variant=ModelVariant.DOUBLE)
        >>> q = model.predict(np.zeros((1, 4), dtype=np.float32))
        >>> model.update(states, targets)
        >>> model.update_target()
    """

    def __init__(
        self,
        state_size: int,
        action_size: int,
        config: Optional[Config] = None,
        variant: ModelVariant = ModelVariant.DOUBLE,
        hidden_dim: Optional[int] = None
    ):
        """
        Initialize the model.

        Args:
            state_size: Dimension of state vector
            action_size: Number of possible actions
            config: Configuration object
            variant: SINGLE or DOUBLE
            hidden_dim: Hidden width (default from config)
        """
        self.config = config or Config()
        self.state_size = state_size
        self.action_size = action_size
        self.variant = variant
        self.hidden_dim = hidden_dim or self.config.HIDDEN_DIM
        self.device = self.config.DEVICE
        self._disposed = False

        self.policy_net: Optional[DQN] = DQN(state_size, action_size, self.hidden_dim).to(self.device)
        self.target_net: Optional[DQN] = None
        if variant is ModelVariant.DOUBLE:
            self.target_net = DQN(state_size, action_size, self.hidden_dim).to(self.device)
            self.target_net.eval()  # Target network is never trained directly
            self.update_target()

        self.optimizer: Optional[optim.Optimizer] = optim.Adam(
            self.policy_net.parameters(),
            lr=self.config.LEARNING_RATE
        )
        self.loss_fn = nn.MSELoss()

    @property
    def has_target(self) -> bool:
        return self.variant is ModelVariant.DOUBLE

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("ValueModel has been disposed")

    def _to_tensor(self, states: np.ndarray) -> torch.Tensor:
        array = np.asarray(states, dtype=np.float32).reshape(-1, self.state_size)
        return torch.from_numpy(array).to(self.device)

    def predict(self, states: np.ndarray) -> np.ndarray:
        """
        Q-values from the live network.

        Args:
            states: Batch of states, shape (batch, state_size)

        Returns:
            Array of shape (batch, action_size)
        """
        self._check_alive()
        with torch.inference_mode():
            return self.policy_net(self._to_tensor(states)).cpu().numpy()

    def predict_target(self, states: np.ndarray) -> np.ndarray:
        """
        Q-values from the frozen target network.

        Raises:
            RuntimeError: On the SINGLE variant, which has no target network
        """
        self._check_alive()
        if self.target_net is None:
            raise RuntimeError("predict_target() requires the DOUBLE variant")
        with torch.inference_mode():
            return self.target_net(self._to_tensor(states)).cpu().numpy()

    def update(self, states: np.ndarray, targets: np.ndarray) -> float:
        """
        One optimization step fitting predict(states) towards targets.

        Args:
            states: Batch of states, shape (batch, state_size)
            targets: Desired Q-values, shape (batch, action_size)

        Returns:
            Mean squared error before the step
        """
        self._check_alive()
        state_tensor = self._to_tensor(states)
        target_tensor = torch.from_numpy(
            np.asarray(targets, dtype=np.float32).reshape(-1, self.action_size)
        ).to(self.device)

        self.policy_net.train()
        loss = self.loss_fn(self.policy_net(state_tensor), target_tensor)

        self.optimizer.zero_grad()
        loss.backward()
        if self.config.GRAD_CLIP > 0:
            torch.nn.utils.clip_grad_norm_(self.policy_net.parameters(), self.config.GRAD_CLIP)
        self.optimizer.step()

        return loss.item()

    def update_target(self) -> None:
        """Hard update: copy policy network weights into the target network."""
        self._check_alive()
        if self.target_net is None:
            return
        # load_state_dict copies into the target's own tensors
        self.target_net.load_state_dict(self.policy_net.state_dict())

    def get_weights(self) -> List[np.ndarray]:
        """Live network parameters, see DQN.get_weights()."""
        self._check_alive()
        return self.policy_net.get_weights()

    def set_weights(self, weights: List[np.ndarray]) -> None:
        """Load live network parameters; the target network is left untouched."""
        self._check_alive()
        self.policy_net.set_weights(weights)

    def dispose(self) -> None:
        """Release the networks and optimizer. Safe to call more than once."""
        if self._disposed:
            return
        self.policy_net = None
        self.target_net = None
        self.optimizer = None
        self._disposed = True
