"""Tests for the bundled games and strategies."""

from __future__ import annotations

import random

from flowzone.games import GAMES, ExampleGame, StackTowerGame
from flowzone.simulation.contracts import check_entity, check_strategy, resolve_level_accessor
from flowzone.simulation.trial import run_one_trial
from flowzone.strategies import STRATEGIES, HeuristicStrategy, RandomStrategy
from tests.helpers import ConstantEntity, IdleStrategy


class FixedRandom:
    """Random source returning a constant from random()."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestRegistries:
    def test_bundled_games_satisfy_contract(self):
        for factory in GAMES.values():
            check_entity(factory({}, random.Random(0)))

    def test_bundled_strategies_satisfy_contract(self):
        for factory in STRATEGIES.values():
            check_strategy(factory({}, random.Random(0)))


class TestExampleGame:
    """Tests for the endless runner."""

    def test_idle_player_dies_at_first_obstacle(self):
        """Without jumping the first obstacle (95 ticks at speed 5) kills."""
        run = run_one_trial(ExampleGame(), IdleStrategy(), tick_budget=1000)

        assert run.survival_ticks == 95
        assert run.score == 475
        assert not run.timed_out

    def test_jump(self):
        game = ExampleGame()
        game.step("action")
        assert game.jumping
        assert game.player_y == 15.0

    def test_reset_restores_state(self):
        game = ExampleGame({"initial_speed": 8})
        for _ in range(200):
            game.step(None)
        game.reset()

        assert game.is_running()
        assert game.score() == 0
        assert game.speed == 8.0

    def test_dead_game_ignores_steps(self):
        game = ExampleGame()
        while game.is_running():
            game.step(None)
        score = game.score()
        game.step("action")
        assert game.score() == score

    def test_no_level_accessor(self):
        assert resolve_level_accessor(ExampleGame()) is None


class TestStackTowerGame:
    """Tests for the level-based tower game."""

    def test_precise_hand_never_dies(self):
        """Offsets under the perfect tolerance keep the full width."""
        game = StackTowerGame({"bot_error": 2}, random.Random(3))
        run = run_one_trial(game, IdleStrategy(), tick_budget=2000)

        assert run.timed_out
        assert run.level > 0
        assert run.score == 200 * run.level

    def test_sloppy_hand_dies(self):
        game = StackTowerGame({"bot_error": 1000}, random.Random(3))
        run = run_one_trial(game, IdleStrategy(), tick_budget=20000)
        assert not run.timed_out

    def test_level_accessor(self):
        game = StackTowerGame()
        accessor = resolve_level_accessor(game)
        assert accessor is not None
        assert accessor() == 0

    def test_action_drops_immediately(self):
        game = StackTowerGame(rng=random.Random(5))
        game.step("action")
        assert game.level() == 1 or not game.is_running()


class TestRandomStrategy:
    def test_chance_bounds(self):
        entity = ConstantEntity()
        assert RandomStrategy({"action_chance": 1.0}).decide(entity) == "action"
        assert RandomStrategy({"action_chance": 0.0}).decide(entity) is None

    def test_default_chance(self):
        assert RandomStrategy().action_chance == 0.05


class TestHeuristicStrategy:
    """Tests for cooldown and score-trend behavior."""

    def test_cooldown_after_action(self):
        """Difficulty 0.5 gives a 28-tick cooldown after acting."""
        strategy = HeuristicStrategy(rng=FixedRandom(0.0))
        entity = ConstantEntity()
        decisions = [strategy.decide(entity) for _ in range(30)]

        assert decisions[0] == "action"
        assert decisions[1:29] == [None] * 28
        assert decisions[29] == "action"

    def test_score_trend(self):
        strategy = HeuristicStrategy({"score_window": 40}, rng=FixedRandom(1.0))
        entity = ConstantEntity({"lifetime_ticks": 1000})
        assert strategy.score_trend() == 0.0

        for _ in range(40):
            strategy.decide(entity)
            entity.step(None)
        assert strategy.score_trend() == 20.0

    def test_reset_episode_clears_window(self):
        strategy = HeuristicStrategy(rng=FixedRandom(1.0))
        entity = ConstantEntity()
        for _ in range(30):
            strategy.decide(entity)
            entity.step(None)
        strategy.reset_episode()
        assert strategy.score_trend() == 0.0
