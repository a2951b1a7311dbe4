"""
Tests for the Flappy Bird simulation.

These tests verify:
    - Game lifecycle (HOME, PLAYING, GAME_OVER)
    - Bird physics
    - Tube scrolling, recycling and scoring
    - Collision detection
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from flappy_dqn.game import FlappyBird, GameState, FlappyEnvironment


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def game(config):
    """A game in the PLAYING state with both tubes far to the right."""
    g = FlappyBird(config, seed=1)
    g.reset()
    return g


class TestLifecycle:
    """Game state transitions."""

    def test_starts_on_home_screen(self, config):
        g = FlappyBird(config, seed=0)
        assert g.state is GameState.HOME
        assert g.score == 0

    def test_home_screen_does_not_move(self, config):
        g = FlappyBird(config, seed=0)
        g.update()
        assert g.bird_y == config.BIRD_START_Y
        assert g.tubes[0].x == config.TUBE_START_X

    def test_jump_starts_game(self, config):
        g = FlappyBird(config, seed=0)
        g.jump()
        assert g.state is GameState.PLAYING
        assert g.bird_y_speed == config.JUMP_SPEED

    def test_reset_starts_playing(self, game, config):
        assert game.state is GameState.PLAYING
        assert game.bird_y == config.BIRD_START_Y
        assert [t.x for t in game.tubes] == [48, 67]

    def test_game_over_freezes_simulation(self, game):
        game.state = GameState.GAME_OVER
        y = game.bird_y
        game.update()
        assert game.bird_y == y


class TestPhysics:
    """Bird movement."""

    def test_gravity(self, game, config):
        game.update()
        assert game.bird_y == config.BIRD_START_Y
        assert game.bird_y_speed == config.GRAVITY
        game.update()
        assert game.bird_y == pytest.approx(config.BIRD_START_Y + config.GRAVITY)

    def test_jump_moves_up(self, game, config):
        game.jump()
        game.update()
        assert game.bird_y == pytest.approx(config.BIRD_START_Y + config.JUMP_SPEED)

    def test_ceiling_clamps(self, game):
        game.bird_y = 0.5
        game.bird_y_speed = -1.4
        game.update()
        assert game.bird_y == 0.0
        assert game.bird_y_speed == 0.0
        assert game.state is GameState.PLAYING

    def test_ground_ends_game(self, game, config):
        game.bird_y = 28.5
        game.bird_y_speed = 1.0
        game.update()
        assert game.game_over
        assert game.bird_y == config.GAME_HEIGHT - config.BIRD_HEIGHT - 1


class TestTubes:
    """Tube placement, scrolling and scoring."""

    def test_gap_center_within_bounds(self, config):
        g = FlappyBird(config, seed=3)
        for _ in range(200):
            g._place_tube(g.tubes[0])
            assert 10 <= g.tubes[0].gap_center <= 21

    def test_seed_makes_placement_reproducible(self, config):
        a = FlappyBird(config, seed=7)
        b = FlappyBird(config, seed=7)
        a.reset()
        b.reset()
        assert [t.y for t in a.tubes] == [t.y for t in b.tubes]

    def test_tubes_scroll(self, game):
        game.update()
        assert [t.x for t in game.tubes] == [47, 66]

    def test_tube_respawns_on_right(self, game, config):
        game.tubes[0].x = -config.TUBE_WIDTH + 1
        game.update()
        assert game.tubes[0].x == config.TUBE_RESPAWN_X

    def test_score_when_tube_clears_bird(self, game, config):
        game.tubes[0].x = config.BIRD_X - config.TUBE_WIDTH + 1
        game.update()
        assert game.score == 1
        assert game.state is GameState.PLAYING

    def test_closest_tube_skips_passed_tubes(self, game, config):
        game.tubes[0].x = config.BIRD_X - config.TUBE_WIDTH
        game.tubes[1].x = 20
        assert game.closest_tube() is game.tubes[1]

    def test_closest_tube_is_nearest(self, game):
        game.tubes[0].x = 30
        game.tubes[1].x = 10
        assert game.closest_tube() is game.tubes[1]


class TestCollision:
    """Rectangle collision between bird and pipes."""

    def test_hit_upper_pipe(self, game, config):
        tube = game.tubes[0]
        tube.x = config.BIRD_X + 1
        tube.y = 0
        game.bird_y = 5.0
        game.update()
        assert game.game_over

    def test_fly_through_gap(self, game, config):
        tube = game.tubes[0]
        tube.x = config.BIRD_X + 1
        tube.y = -8  # Gap spans rows 9-20
        game.bird_y = 12.0
        game.update()
        assert not game.game_over


class TestPackageExports:
    """Public names of the game package."""

    def test_exports(self):
        import flappy_dqn.game as game_pkg
        assert sorted(game_pkg.__all__) == [
            'BaseGame', 'FlappyBird', 'FlappyEnvironment', 'GameState', 'Tube'
        ]
        assert issubclass(FlappyEnvironment, game_pkg.BaseGame)
        assert not hasattr(game_pkg, 'GAME_REGISTRY')
