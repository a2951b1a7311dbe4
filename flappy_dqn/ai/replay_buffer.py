"""
Experience Replay Buffer
========================

A memory buffer that stores transitions for training the DQN.

Why Experience Replay?
    1. Breaks correlation between consecutive experiences
       (Neural networks learn poorly from correlated data)

    2. Improves sample efficiency
       (Each experience can be used for multiple training steps)

How it works:
    1. Agent plays the game, stores (state, action, reward, next_state, done)
    2. After each episode, a random batch is sampled from the buffer
    3. Once the buffer is full, insertion k overwrites slot k % capacity

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class Transition:
    """One recorded simulation step."""
    state: np.ndarray
    action: int
    reward: float
    next_state: np.ndarray
    done: bool


class ReplayBuffer:
    """
    Fixed-size ring buffer of transitions with contiguous numpy storage.

    Optimizations:
        - Contiguous numpy arrays for all data (cache-friendly)
        - Vectorized batch extraction via numpy fancy indexing
        - Lazy initialization to support unknown state_size at creation

    Example:
        >>> buffer = ReplayBuffer(capacity=10000)
        >>> buffer.push(state, action, reward, next_state, done)
        >>> states, actions, rewards, next_states, dones = buffer.sample(batch_size=32)
    """

    def __init__(self, capacity: int, state_size: int = 0):
        """
        Initialize the replay buffer.

        Args:
            capacity: Maximum number of transitions to store
            state_size: Size of state vector (auto-detected on first push if 0)

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity <= 0:
            raise ValueError(f"Replay buffer capacity must be > 0, got {capacity}")

        self.capacity = capacity
        self._state_size = state_size
        self._size = 0       # Current number of transitions stored
        self._position = 0   # Next slot to write
        self._insertions = 0
        self._initialized = False

        if state_size > 0:
            self._init_arrays(state_size)

    def _init_arrays(self, state_size: int) -> None:
        """Initialize contiguous storage arrays."""
        self._state_size = state_size
        self.states = np.empty((self.capacity, state_size), dtype=np.float32)
        self.actions = np.empty(self.capacity, dtype=np.int64)
        self.rewards = np.empty(self.capacity, dtype=np.float32)
        self.next_states = np.empty((self.capacity, state_size), dtype=np.float32)
        self.dones = np.empty(self.capacity, dtype=np.float32)
        self._initialized = True

    def push(
        self,
        state: np.ndarray,
        action: int,
        reward: float,
        next_state: np.ndarray,
        done: bool
    ) -> None:
        """
        Add a transition to the buffer.

        When the buffer is full, the slot written `capacity` insertions ago
        is overwritten.
        """
        if not self._initialized:
            self._init_arrays(len(state))

        # Explicit copies so later changes to the caller's arrays never leak in
        np.copyto(self.states[self._position], state)
        self.actions[self._position] = action
        self.rewards[self._position] = reward
        np.copyto(self.next_states[self._position], next_state)
        self.dones[self._position] = float(done)

        self._position = (self._position + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)
        self._insertions += 1

    def _sample_indices(self, batch_size: int) -> np.ndarray:
        if batch_size <= 0:
            raise ValueError(f"Batch size must be > 0, got {batch_size}")
        if batch_size > self._size:
            raise ValueError(
                f"Cannot sample {batch_size} transitions from a buffer holding {self._size}"
            )
        return np.random.choice(self._size, size=batch_size, replace=False)

    def sample(self, batch_size: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Sample distinct transitions uniformly at random (without replacement).

        Args:
            batch_size: Number of transitions to sample

        Returns:
            Tuple of numpy arrays: (states, actions, rewards, next_states, dones)
            All arrays are copies to prevent modification of buffer data.

        Raises:
            ValueError: If batch_size is not positive or exceeds len(buffer)
        """
        indices = self._sample_indices(batch_size)
        return (
            self.states[indices].copy(),
            self.actions[indices].copy(),
            self.rewards[indices].copy(),
            self.next_states[indices].copy(),
            self.dones[indices].copy()
        )

    def sample_transitions(self, batch_size: int) -> List[Transition]:
        """Same as sample(), returned as Transition records."""
        return [self[int(i)] for i in self._sample_indices(batch_size)]

    def __getitem__(self, slot: int) -> Transition:
        """Return the transition stored in a physical slot."""
        if not 0 <= slot < self._size:
            raise IndexError(f"Slot {slot} out of range for buffer of size {self._size}")
        return Transition(
            state=self.states[slot].copy(),
            action=int(self.actions[slot]),
            reward=float(self.rewards[slot]),
            next_state=self.next_states[slot].copy(),
            done=bool(self.dones[slot])
        )

    def __len__(self) -> int:
        """Return current buffer size."""
        return self._size

    @property
    def insertions(self) -> int:
        """Total number of push() calls since creation or the last clear()."""
        return self._insertions

    def is_ready(self, batch_size: int) -> bool:
        """Check if buffer has enough transitions for sampling."""
        return self._size >= batch_size

    def clear(self) -> None:
        """Clear all transitions from the buffer."""
        self._size = 0
        self._position = 0
        self._insertions = 0
