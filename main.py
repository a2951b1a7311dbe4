#!/usr/bin/env python3
"""
Flappy Bird DQN - Main Entry Point
==================================

Trains a Deep Q-Network agent to play Flappy Bird.

Usage:
    # Train headless (default)
    python main.py --episodes 2000

    # Train with a debug window (P: pause/resume, ESC or Q: quit)
    python main.py --render --delay 0.01

    # Single-network variant (no target network)
    python main.py --single

    # Save / continue from a JSON snapshot
    python main.py --episodes 5000 --save models/flappy.json
    python main.py --load models/flappy.json --episodes 1000

    # Watch a trained model play greedily
    python main.py --play --load models/flappy.json --render
"""

# Suppress pygame's pkg_resources deprecation warning (pygame issue #4557)
import warnings
warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import argparse
import json
import os
import random
import sys
from typing import Any, Dict, Optional

import numpy as np
import pygame
import torch

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import Config
from flappy_dqn.ai import Agent, ModelFormatError, ModelVariant, Trainer, TrainerState
from flappy_dqn.game import FlappyEnvironment
from flappy_dqn.utils.logger import LogLevel, get_logger, get_log_path, log_model_event, setup_logging

logger = get_logger('main')


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Flappy Bird DQN - Train a Deep Q-Network to play Flappy Bird",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========
    python main.py --episodes 2000 --save models/flappy.json
    python main.py --render --delay 0.01
    python main.py --play --load models/flappy.json --render
        """
    )

    # Mode selection
    parser.add_argument(
        '--play', action='store_true',
        help='Play mode: run the loaded model greedily without training'
    )
    parser.add_argument(
        '--render', action='store_true',
        help='Show a pygame window while running'
    )

    # Model options
    parser.add_argument(
        '--single', action='store_true',
        help='Use a single network (no target network)'
    )
    parser.add_argument(
        '--load', type=str, default=None, metavar='PATH',
        help='JSON snapshot to load before running'
    )
    parser.add_argument(
        '--save', type=str, default=None, metavar='PATH',
        help='Write a JSON snapshot here when training ends'
    )

    # Training parameters
    parser.add_argument(
        '--episodes', type=int, default=None,
        help='Number of episodes to train (or to play with --play)'
    )
    parser.add_argument(
        '--delay', type=float, default=None,
        help='Seconds to wait after each simulation tick'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )

    # Logging
    parser.add_argument(
        '--log-level', type=str, default='INFO',
        choices=[level.name for level in LogLevel],
        help='Console log level'
    )
    parser.add_argument(
        '--log-file', action='store_true',
        help='Also write logs to a file under LOG_DIR'
    )

    return parser.parse_args(argv)


def seed_everything(seed: int) -> None:
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def load_snapshot(trainer: Trainer, path: str) -> None:
    """Read a JSON snapshot from disk into the trainer's agent."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    applied = trainer.import_model(data, source=path)
    print(f"Loaded {path} (hidden={applied['hidden_dim']}, epsilon={applied['epsilon']:.4f})")


def save_snapshot(trainer: Trainer, path: str) -> None:
    """Write the trainer's snapshot to disk as JSON."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(trainer.export_model(), f)
    log_model_event('save', path, episode=trainer.episode)


class RenderWindow:
    """
    Debug window that draws the environment after every tick.

    Keys:
        P     - pause / resume training
        ESC/Q - quit
    """

    def __init__(self, env: FlappyEnvironment, config: Config):
        pygame.init()
        self.env = env
        self.config = config
        size = (config.GAME_WIDTH * config.RENDER_SCALE, config.GAME_HEIGHT * config.RENDER_SCALE)
        self.screen = pygame.display.set_mode(size)
        pygame.display.set_caption("Flappy Bird DQN")
        self.clock = pygame.time.Clock()
        self.quit_requested = False
        self.pause_requested = False

    def handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    self.quit_requested = True
                elif event.key == pygame.K_p:
                    self.pause_requested = not self.pause_requested

    def draw(self) -> None:
        self.env.render(self.screen)
        pygame.display.flip()
        self.clock.tick(self.config.FPS)

    def on_tick(self, trainer: Trainer, info: Dict[str, Any]) -> None:
        self.handle_events()
        self.draw()
        if self.quit_requested or self.pause_requested:
            trainer.stop()

    def wait_for_resume(self) -> bool:
        """Block while paused. Returns False if the window was closed."""
        while self.pause_requested and not self.quit_requested:
            self.handle_events()
            self.clock.tick(10)
        return not self.quit_requested

    def close(self) -> None:
        pygame.quit()


def print_event(event: Dict[str, Any]) -> None:
    """Notification sink: one DEBUG line per episode."""
    if 'error' in event:
        return
    if event.get('paused'):
        logger.debug(f"Episode {event['episode']} paused at step {event['steps']}")
    else:
        logger.debug(f"Episode {event['episode']}: score={event['score']} "
                     f"reward={event['total_reward']:.2f} steps={event['steps']}")


def run_training(trainer: Trainer, config: Config, args: argparse.Namespace,
                 window: Optional[RenderWindow]) -> None:
    target = trainer.episode + config.MAX_EPISODES
    tick_callback = window.on_tick if window else None

    try:
        while trainer.episode < target:
            trainer.train(
                num_episodes=target - trainer.episode,
                delay=args.delay,
                tick_callback=tick_callback
            )
            if trainer.state is TrainerState.COMPLETED:
                break
            if window is None or not window.wait_for_resume():
                break
    except KeyboardInterrupt:
        print("\nTraining interrupted by user")

    stats = trainer.get_statistics()
    print("\n" + "=" * 60)
    print("Training finished")
    print("=" * 60)
    print(f"   Episodes:    {stats['total_episodes']:,}")
    print(f"   Total steps: {stats['total_steps']:,}")
    print(f"   Best score:  {stats['max_score']}")
    print(f"   Avg score:   {stats['avg_score']:.2f} (last {config.STATS_WINDOW})")
    print(f"   Epsilon:     {trainer.agent.epsilon:.4f}")
    print("=" * 60)


def run_play(trainer: Trainer, config: Config, args: argparse.Namespace,
             window: Optional[RenderWindow]) -> None:
    num_episodes = args.episodes or 5
    if window is None:
        results = trainer.evaluate(num_episodes)
        print(f"Mean score: {results['mean_score']:.2f}  "
              f"(min {results['min_score']}, max {results['max_score']})")
        return

    env, agent = trainer.env, trainer.agent
    for episode in range(num_episodes):
        state = env.reset()
        done = False
        steps = 0
        while not done and steps < config.MAX_STEPS_PER_EPISODE:
            window.handle_events()
            if window.quit_requested:
                return
            state, _, done, _ = env.step(agent.act(state, training=False))
            steps += 1
            window.draw()
        print(f"Episode {episode + 1}: score {env.score}")


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = Config()
    if args.episodes is not None:
        config.MAX_EPISODES = args.episodes
    if args.delay is not None:
        config.TRAINING_DELAY = args.delay
    if args.single:
        config.USE_DOUBLE_DQN = False

    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel[args.log_level],
        file_output=args.log_file,
        force=True
    )
    if get_log_path():
        print(f"Logging to {get_log_path()}")

    if args.seed is not None:
        seed_everything(args.seed)
        config.SEED = args.seed

    env = FlappyEnvironment(config, seed=config.SEED)
    variant = ModelVariant.SINGLE if args.single else ModelVariant.DOUBLE
    agent = Agent(env.state_size, env.action_size, config, variant=variant)
    trainer = Trainer(env, agent, config, log_callback=print_event)

    if args.load:
        try:
            load_snapshot(trainer, args.load)
        except (OSError, json.JSONDecodeError, ModelFormatError) as e:
            logger.error(f"Could not load {args.load}: {e}")
            return 1

    window = RenderWindow(env, config) if args.render else None
    try:
        if args.play:
            run_play(trainer, config, args, window)
        else:
            run_training(trainer, config, args, window)
            if args.save:
                save_snapshot(trainer, args.save)
                print(f"Saved snapshot to {args.save}")
    finally:
        if window:
            window.close()
        env.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
