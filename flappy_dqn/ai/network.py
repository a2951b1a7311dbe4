"""
Deep Q-Network (DQN) Architecture
=================================

The neural network that approximates Q-values for state-action pairs.

Theory:
    Q-Learning aims to learn Q(s, a) = expected future reward
    We use a neural network to approximate this function

    Input:  State vector (bird speed, tube distance, gap offset, bird height)
    Output: Q-value for each possible action (STAY, FLAP)

The network learns by minimizing the squared TD error:
    Loss = (Q(s,a) - (r + γ * max_a' Q_target(s', a')))²
"""

import torch
import torch.nn as nn
import torch.nn.functional as F
from typing import List
import numpy as np


class DQN(nn.Module):
    """
    Deep Q-Network for reinforcement learning.

    Architecture:
        Input -> Linear(hidden) -> ReLU -> Linear(2 * hidden) -> ReLU -> Linear(actions)

    Example:
        >>> net = DQN(state_size=4, action_size=2, hidden_dim=64)
        >>> state = torch.randn(1, 4)
        >>> q_values = net(state)  # Shape: (1, 2)
    """

    def __init__(self, state_size: int, action_size: int, hidden_dim: int = 64):
        """
        Initialize the DQN.

        Args:
            state_size: Dimension of state input
            action_size: Number of possible actions (output dimension)
            hidden_dim: Width of the first hidden layer; the second is twice as wide
        """
        super(DQN, self).__init__()

        self.state_size = state_size
        self.action_size = action_size
        self.hidden_dim = hidden_dim
        self.hidden_sizes = [hidden_dim, hidden_dim * 2]

        self.layers = nn.ModuleList()
        self._build_network()
        self._init_weights()

    def _build_network(self) -> None:
        """Construct the neural network layers."""
        layer_sizes = [self.state_size] + self.hidden_sizes + [self.action_size]

        for i in range(len(layer_sizes) - 1):
            self.layers.append(nn.Linear(layer_sizes[i], layer_sizes[i + 1]))

    def _init_weights(self) -> None:
        """Xavier/Glorot uniform weights, zero biases."""
        for layer in self.layers:
            if isinstance(layer, nn.Linear):
                nn.init.xavier_uniform_(layer.weight)
                nn.init.constant_(layer.bias, 0.0)

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through the network.

        Args:
            state: Input state tensor of shape (batch_size, state_size)

        Returns:
            Q-values tensor of shape (batch_size, action_size)
        """
        x = state
        for layer in self.layers[:-1]:
            x = F.relu(layer(x))

        # Output layer (no activation - raw Q-values)
        return self.layers[-1](x)

    def get_weights(self) -> List[np.ndarray]:
        """
        Get all parameters as numpy arrays, in layer order.

        Returns:
            [weight_0, bias_0, weight_1, bias_1, ...] with weights shaped (out, in)
        """
        weights = []
        for layer in self.layers:
            weights.append(layer.weight.detach().cpu().numpy().copy())
            weights.append(layer.bias.detach().cpu().numpy().copy())
        return weights

    def weight_shapes(self) -> List[tuple]:
        """Shapes expected by set_weights(), in the same order as get_weights()."""
        shapes = []
        for layer in self.layers:
            shapes.append(tuple(layer.weight.shape))
            shapes.append(tuple(layer.bias.shape))
        return shapes

    def set_weights(self, weights: List[np.ndarray]) -> None:
        """
        Load parameters produced by get_weights().

        Raises:
            ValueError: If the number or shapes of arrays do not match, or a
                        value is not finite; no parameter is modified then
        """
        expected = self.weight_shapes()
        if len(weights) != len(expected):
            raise ValueError(f"Expected {len(expected)} weight arrays, got {len(weights)}")

        arrays = [np.asarray(w, dtype=np.float32) for w in weights]
        for i, (array, shape) in enumerate(zip(arrays, expected)):
            if array.shape != shape:
                raise ValueError(f"Weight array {i} has shape {array.shape}, expected {shape}")
            if not np.isfinite(array).all():
                raise ValueError(f"Weight array {i} contains NaN or infinite values")

        params = []
        for layer in self.layers:
            params.extend([layer.weight, layer.bias])

        with torch.no_grad():
            for param, array in zip(params, arrays):
                param.copy_(torch.from_numpy(array))

    def count_parameters(self) -> int:
        """Return total number of trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)
