"""
Tests for the Experience Replay Buffer.

These tests verify:
    - Ring-buffer slot assignment and capacity limits
    - Uniform sampling without replacement
    - Error handling for invalid requests
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flappy_dqn.ai.replay_buffer import ReplayBuffer, Transition


@pytest.fixture
def state_size():
    return 4


@pytest.fixture
def buffer(state_size):
    """Create a buffer instance."""
    return ReplayBuffer(capacity=100, state_size=state_size)


def push_marked(buffer, k, state_size=4):
    """Push a transition whose contents identify insertion k."""
    state = np.full(state_size, k, dtype=np.float32)
    buffer.push(state, k % 2, float(k), state + 1, k % 3 == 0)


class TestBufferInitialization:
    """Test buffer creation."""

    def test_buffer_starts_empty(self, buffer):
        assert len(buffer) == 0
        assert buffer.insertions == 0

    def test_capacity_set_correctly(self, buffer):
        assert buffer.capacity == 100

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_non_positive_capacity_rejected(self, capacity):
        with pytest.raises(ValueError):
            ReplayBuffer(capacity=capacity)

    def test_state_size_auto_detection(self):
        buffer = ReplayBuffer(capacity=10)
        buffer.push(np.zeros(6, dtype=np.float32), 0, 0.0, np.zeros(6, dtype=np.float32), False)
        assert buffer.states.shape == (10, 6)


class TestBufferPush:
    """Test pushing transitions."""

    def test_push_increases_size(self, buffer):
        push_marked(buffer, 0)
        push_marked(buffer, 1)
        assert len(buffer) == 2
        assert buffer.insertions == 2

    def test_transition_stored_correctly(self, buffer):
        state = np.array([0.1, 0.2, 0.3, 0.4], dtype=np.float32)
        next_state = np.array([0.5, 0.6, 0.7, 0.8], dtype=np.float32)
        buffer.push(state, 1, -15.0, next_state, True)

        stored = buffer[0]
        assert isinstance(stored, Transition)
        np.testing.assert_array_equal(stored.state, state)
        np.testing.assert_array_equal(stored.next_state, next_state)
        assert stored.action == 1
        assert stored.reward == -15.0
        assert stored.done is True

    def test_push_copies_caller_arrays(self, buffer):
        state = np.zeros(4, dtype=np.float32)
        buffer.push(state, 0, 0.0, state, False)
        state[:] = 9.0
        assert buffer[0].state.sum() == 0.0

    def test_transitions_are_immutable(self, buffer):
        push_marked(buffer, 0)
        with pytest.raises(AttributeError):
            buffer[0].reward = 1.0


class TestRingInvariant:
    """Insertion k lands in slot k mod capacity."""

    def test_size_never_exceeds_capacity(self):
        buffer = ReplayBuffer(capacity=5, state_size=4)
        for k in range(12):
            push_marked(buffer, k)
            assert len(buffer) == min(k + 1, 5)

    def test_slot_holds_latest_insertion(self):
        capacity = 5
        buffer = ReplayBuffer(capacity=capacity, state_size=4)
        total = 12
        for k in range(total):
            push_marked(buffer, k)

        assert buffer.insertions == total
        for slot in range(capacity):
            latest = max(k for k in range(total) if k % capacity == slot)
            stored = buffer[slot]
            assert stored.reward == float(latest)
            assert stored.action == latest % 2
            np.testing.assert_array_equal(stored.state, np.full(4, latest, dtype=np.float32))
            np.testing.assert_array_equal(stored.next_state, np.full(4, latest + 1, dtype=np.float32))

    def test_out_of_range_slot(self, buffer):
        push_marked(buffer, 0)
        with pytest.raises(IndexError):
            buffer[1]


class TestBufferSampling:
    """Test sampling from the buffer."""

    def test_sample_returns_correct_shapes(self, buffer, state_size):
        for k in range(50):
            push_marked(buffer, k)
        states, actions, rewards, next_states, dones = buffer.sample(32)

        assert states.shape == (32, state_size)
        assert actions.shape == (32,)
        assert rewards.shape == (32,)
        assert next_states.shape == (32, state_size)
        assert dones.shape == (32,)

    def test_sample_is_distinct(self, buffer):
        for k in range(50):
            push_marked(buffer, k)
        _, _, rewards, _, _ = buffer.sample(50)
        assert sorted(rewards.tolist()) == [float(k) for k in range(50)]

    def test_sample_does_not_mutate(self, buffer):
        for k in range(10):
            push_marked(buffer, k)
        before = buffer.states.copy()
        states, _, _, _, _ = buffer.sample(5)
        states[:] = -1.0
        np.testing.assert_array_equal(buffer.states, before)
        assert len(buffer) == 10
        assert buffer.insertions == 10

    def test_sample_transitions(self, buffer):
        for k in range(10):
            push_marked(buffer, k)
        batch = buffer.sample_transitions(4)
        assert len(batch) == 4
        assert len({t.reward for t in batch}) == 4
        assert all(isinstance(t, Transition) for t in batch)

    def test_oversized_sample_rejected(self, buffer):
        for k in range(3):
            push_marked(buffer, k)
        with pytest.raises(ValueError):
            buffer.sample(4)

    def test_non_positive_sample_rejected(self, buffer):
        push_marked(buffer, 0)
        with pytest.raises(ValueError):
            buffer.sample(0)


class TestBufferReadiness:
    """Test is_ready and clear."""

    def test_is_ready(self, buffer):
        assert not buffer.is_ready(2)
        push_marked(buffer, 0)
        assert not buffer.is_ready(2)
        push_marked(buffer, 1)
        assert buffer.is_ready(2)

    def test_clear_empties_buffer(self, buffer):
        for k in range(10):
            push_marked(buffer, k)
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.insertions == 0

        # Ring restarts at slot 0
        push_marked(buffer, 42)
        assert buffer[0].reward == 42.0
