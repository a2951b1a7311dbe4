"""
Training Loop
=============

Orchestrates the training process:
    1. Run episodes of the game
    2. Collect experiences
    3. Train the agent once per finished episode
    4. Track metrics and notify listeners

Run states:
    IDLE      - nothing in progress (initial state, after reset or a stop
                between episodes)
    RUNNING   - train() is executing
    PAUSED    - stop() interrupted an episode; the next train() resumes it
    COMPLETED - the last train() ran all of its episodes
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import numpy as np

from config import Config
from ..utils.logger import get_logger, log_model_event, log_training_metrics

logger = get_logger(__name__)


class TrainerState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class EpisodeState:
    """Progress of an interrupted episode."""
    state: np.ndarray
    done: bool
    total_reward: float
    steps: int


@dataclass
class EpisodeStats:
    """Statistics for a single episode."""
    episode: int
    score: int
    steps: int
    total_reward: float
    epsilon: float
    loss: Optional[float]
    duration: float


class TrainingMetrics:
    """
    Tracks and stores training metrics over time.

    Metrics tracked:
        - Episode scores
        - Total rewards
        - Steps per episode
        - Loss values (None when no learning step ran)
        - Epsilon values
    """

    def __init__(self):
        self.scores: List[int] = []
        self.rewards: List[float] = []
        self.lengths: List[int] = []
        self.losses: List[Optional[float]] = []
        self.epsilons: List[float] = []

    def add(self, stats: EpisodeStats) -> None:
        """Add episode statistics."""
        self.scores.append(stats.score)
        self.rewards.append(stats.total_reward)
        self.lengths.append(stats.steps)
        self.losses.append(stats.loss)
        self.epsilons.append(stats.epsilon)

    def get_recent_average(self, metric: str, n: int = 100) -> float:
        """Get average of last n values for a metric."""
        values = [v for v in getattr(self, metric, [])[-n:] if v is not None]
        if not values:
            return 0.0
        return float(np.mean(values))

    def get_best_score(self) -> int:
        """Get the highest score achieved."""
        return max(self.scores) if self.scores else 0

    def clear(self) -> None:
        for values in (self.scores, self.rewards, self.lengths, self.losses, self.epsilons):
            values.clear()

    def __len__(self) -> int:
        return len(self.scores)


class Trainer:
    """
    Manages the training loop for the DQN agent.

    Responsibilities:
        1. Run training episodes (epsilon-greedy rollouts)
        2. Learn, decay epsilon and sync the target network between episodes
        3. Pause and resume an episode interrupted by stop()
        4. Track metrics and send notifications to log_callback

    Example:
        >>> env = FlappyEnvironment()
        >>> agent = Agent(env.state_size, env.action_size)
        >>> trainer = Trainer(env, agent, log_callback=print)
        >>> trainer.train(num_episodes=1000)
    """

    def __init__(
        self,
        env,
        agent,
        config: Optional[Config] = None,
        log_callback: Optional[Callable[[Dict[str, Any]], None]] = None
    ):
        """
        Initialize the trainer.

        Args:
            env: Environment instance (implements BaseGame)
            agent: DQN agent instance
            config: Configuration object
            log_callback: Receives one dict per finished, paused or failed episode
        """
        self.env = env
        self.agent = agent
        self.config = config or Config()
        self.log_callback = log_callback

        # Pacing hook, replaceable in tests
        self.sleep: Callable[[float], None] = time.sleep

        self.state = TrainerState.IDLE
        self.episode = 0
        self.total_steps = 0
        self.episode_state: Optional[EpisodeState] = None
        self.metrics = TrainingMetrics()
        self._stop_requested = False
        # Bumped by reset() so an in-flight episode knows it was discarded
        self._generation = 0

    @property
    def is_training(self) -> bool:
        return self.state is TrainerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.state is TrainerState.PAUSED

    def _notify(self, event: Dict[str, Any]) -> None:
        if self.log_callback is not None:
            self.log_callback(event)

    def stop(self) -> None:
        """
        Ask the running loop to halt.

        Checked once per tick; safe to call from another thread or from a
        callback. An unfinished episode is kept so train() can resume it.
        """
        if self.state is TrainerState.RUNNING:
            self._stop_requested = True
            logger.info("Stop requested")

    def train(
        self,
        num_episodes: Optional[int] = None,
        delay: Optional[float] = None,
        tick_callback: Optional[Callable[['Trainer', Dict[str, Any]], None]] = None,
        progress_callback: Optional[Callable[[int, int, EpisodeStats], None]] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        A paused episode is resumed as the first of the num_episodes
        iterations. Calling train() while it is already running does nothing.

        Args:
            num_episodes: Number of episodes (default from config)
            delay: Seconds to wait after each tick (default from config)
            tick_callback: Called as tick_callback(trainer, info) after every tick
            progress_callback: Called as progress_callback(i, num_episodes, stats)

        Returns:
            Training metrics (unchanged when num_episodes is 0)

        Raises:
            ValueError: If num_episodes is negative
        """
        if self.state is TrainerState.RUNNING:
            logger.warning("Training already running, ignoring train()")
            return self.metrics

        if num_episodes is None:
            num_episodes = self.config.MAX_EPISODES
        if num_episodes < 0:
            raise ValueError(f"num_episodes must be >= 0, got {num_episodes}")
        if num_episodes == 0:
            return self.metrics
        delay = self.config.TRAINING_DELAY if delay is None else delay

        if self.state is TrainerState.PAUSED:
            logger.info(f"Resuming training at episode {self.episode} "
                        f"(step {self.episode_state.steps})")
        else:
            logger.info(f"Starting training: {num_episodes} episodes, "
                        f"{self.agent.model.variant.value} model, device={self.config.DEVICE}")

        self._stop_requested = False
        self.state = TrainerState.RUNNING
        generation = self._generation

        for i in range(num_episodes):
            stats = self.train_episode(delay=delay, tick_callback=tick_callback)
            if stats is None or self._generation != generation:
                return self.metrics

            if progress_callback:
                progress_callback(i, num_episodes, stats)
                if self._generation != generation:
                    return self.metrics

            if self._stop_requested:
                self._stop_requested = False
                self.state = TrainerState.IDLE
                logger.info(f"Training stopped after episode {self.episode}")
                return self.metrics

        self.state = TrainerState.COMPLETED
        logger.info(f"Training complete: {self.episode} episodes, "
                    f"best score {self.metrics.get_best_score()}, "
                    f"epsilon {self.agent.epsilon:.4f}, {self.total_steps:,} steps")
        return self.metrics

    def train_episode(
        self,
        delay: float = 0.0,
        tick_callback: Optional[Callable[['Trainer', Dict[str, Any]], None]] = None
    ) -> Optional[EpisodeStats]:
        """
        Run (or resume) one training episode.

        Returns:
            Episode statistics, or None if stop() paused the episode
        """
        start_time = time.time()
        generation = self._generation

        if self.episode % self.config.TARGET_UPDATE == 0:
            self.agent.update_target_network()

        if self.episode_state is not None:
            snapshot = self.episode_state
            state = snapshot.state
            done = snapshot.done
            total_reward = snapshot.total_reward
            steps = snapshot.steps
        else:
            state = self.env.reset()
            done = False
            total_reward = 0.0
            steps = 0

        max_steps = self.config.MAX_STEPS_PER_EPISODE
        while not done and steps < max_steps and not self._stop_requested:
            action = self.agent.act(state, training=True)
            next_state, reward, done, info = self.env.step(action)

            self.agent.remember(state, action, reward, next_state, done)

            state = next_state
            total_reward += reward
            steps += 1
            self.total_steps += 1

            if tick_callback:
                tick_callback(self, info)
            if delay > 0:
                self.sleep(delay)

        if self._generation != generation:
            # reset() was called during the episode
            return None

        if not done and steps < max_steps:
            # Halted mid-episode: keep everything needed to continue later
            self.episode_state = EpisodeState(
                state=state.copy(),
                done=done,
                total_reward=total_reward,
                steps=steps
            )
            self.state = TrainerState.PAUSED
            self._stop_requested = False
            logger.info(f"Paused episode {self.episode} at step {steps}")
            self._notify({
                'episode': self.episode,
                'score': self.env.score,
                'total_reward': total_reward,
                'steps': steps,
                'paused': True,
            })
            return None

        self.episode_state = None
        loss = self._learn()
        self.agent.decay_epsilon()

        stats = EpisodeStats(
            episode=self.episode,
            score=self.env.score,
            steps=steps,
            total_reward=total_reward,
            epsilon=self.agent.epsilon,
            loss=loss,
            duration=time.time() - start_time
        )
        self.metrics.add(stats)
        self.episode += 1

        self._notify({
            'episode': stats.episode,
            'score': stats.score,
            'total_reward': stats.total_reward,
            'epsilon': stats.epsilon,
            'steps': stats.steps,
            'memory_size': len(self.agent.memory),
        })

        if self.episode % self.config.LOG_EVERY == 0:
            log_training_metrics(
                episode=stats.episode,
                score=stats.score,
                epsilon=stats.epsilon,
                reward=stats.total_reward,
                loss=stats.loss,
                steps=stats.steps,
                memory_size=len(self.agent.memory)
            )

        return stats

    def _learn(self) -> Optional[float]:
        """One learning step; a failure is reported and training goes on."""
        try:
            return self.agent.replay()
        except Exception as e:
            logger.exception(f"Learning step failed in episode {self.episode}")
            self._notify({'episode': self.episode, 'error': str(e)})
            return None

    def reset(self, new_model: bool = False) -> None:
        """
        Discard all training progress and return to IDLE.

        Works in any state. While train() is running (reset() called from a
        callback), the loop halts and the episode in progress is dropped.

        Args:
            new_model: Also re-initialize the network weights
        """
        # A running loop sees the stop flag on its next tick
        self._stop_requested = self.state is TrainerState.RUNNING
        self._generation += 1

        self.agent.reset(new_model=new_model)
        self.episode = 0
        self.total_steps = 0
        self.episode_state = None
        self.metrics.clear()
        self.state = TrainerState.IDLE
        logger.info("Training state reset")

    def get_statistics(self) -> Dict[str, Any]:
        """Summary of recent training progress."""
        window = self.config.STATS_WINDOW
        return {
            'avg_score': self.metrics.get_recent_average('scores', window),
            'max_score': self.metrics.get_best_score(),
            'avg_reward': self.metrics.get_recent_average('rewards', window),
            'total_episodes': self.episode,
            'total_steps': self.total_steps,
        }

    def evaluate(self, num_episodes: int = 10, max_steps: Optional[int] = None) -> Dict[str, float]:
        """
        Evaluate the trained agent without exploration or learning.

        Args:
            num_episodes: Number of evaluation episodes
            max_steps: Step limit per episode (default from config)

        Returns:
            Evaluation statistics

        Raises:
            ValueError: If num_episodes is not positive
            RuntimeError: If training is running or paused
        """
        if num_episodes <= 0:
            raise ValueError(f"num_episodes must be positive, got {num_episodes}")
        if self.state in (TrainerState.RUNNING, TrainerState.PAUSED):
            raise RuntimeError(f"Cannot evaluate while training is {self.state.value}")

        max_steps = max_steps or self.config.MAX_STEPS_PER_EPISODE
        scores = []
        rewards = []

        for _ in range(num_episodes):
            state = self.env.reset()
            done = False
            total_reward = 0.0
            steps = 0

            while not done and steps < max_steps:
                action = self.agent.act(state, training=False)
                state, reward, done, _ = self.env.step(action)
                total_reward += reward
                steps += 1

            scores.append(self.env.score)
            rewards.append(total_reward)

        results = {
            'mean_score': float(np.mean(scores)),
            'max_score': max(scores),
            'min_score': min(scores),
            'mean_reward': float(np.mean(rewards)),
        }
        logger.info(f"Evaluation over {num_episodes} episodes: "
                    f"mean score {results['mean_score']:.2f}, max {results['max_score']}")
        return results

    def export_model(self) -> Dict[str, Any]:
        """Snapshot of the agent's network with the current progress."""
        data = self.agent.export_model(self.episode, self.get_statistics())
        log_model_event('export', 'snapshot', episode=self.episode,
                        epsilon=f"{self.agent.epsilon:.4f}")
        return data

    def import_model(self, data: Mapping[str, Any], source: str = 'snapshot') -> Dict[str, Any]:
        """
        Load a snapshot into the agent.

        Raises:
            RuntimeError: If called while train() is running
            ModelFormatError: If the snapshot is malformed (nothing changes)
        """
        if self.state is TrainerState.RUNNING:
            raise RuntimeError("Cannot import a model while training is running")
        return self.agent.import_model(data, source=source)
