"""
Whole-game invariant checks.

Both sides are driven by the rule-based AI (the player's units run the same
priority list through their own fog) for a bounded number of rounds, and
the world is checked after every action batch.
"""

import pytest

import ai
from state import initialize_game
from upkeep import end_player_turn

MAX_ROUNDS = 60


def assert_world_invariants(game):
    positions = [u.position for u in game.units]
    assert len(positions) == len(set(positions)), "two units share a tile"

    for unit in game.units:
        assert 0 < unit.hp <= unit.unit_type.max_hp
        assert 0 <= unit.moves_remaining <= unit.unit_type.moves_per_turn
        assert game.is_passable(unit.position)
        assert not game.get_faction(unit.owner).eliminated

    city_ids = [o.city_id for o in game.training_orders]
    assert len(city_ids) == len(set(city_ids)), "a city has two training orders"
    for order in game.training_orders:
        assert game.get_city_by_id(order.city_id).owner == order.owner

    for vision in game.vision.values():
        assert vision.visible <= vision.explored

    if game.game_over:
        assert game.phase == "game_over"
        assert game.outcome in ("victory", "defeat")


def play(game, on_round=None):
    """Self-play until the game ends or MAX_ROUNDS pass."""
    for _ in range(MAX_ROUNDS):
        if game.game_over:
            break
        ai.maybe_queue_training(game, "player")
        ai.play_units(game, "player")
        assert_world_invariants(game)
        if game.game_over:
            break
        result = end_player_turn(game)
        assert result["success"]
        assert_world_invariants(game)
        if on_round:
            on_round(game)
    return game


@pytest.mark.parametrize("seed", [1, 2, 3, 42, 99])
def test_invariants_hold_through_self_play(seed):
    play(initialize_game(seed))


@pytest.mark.parametrize("seed", [5, 17])
def test_invariants_with_three_opponents(seed):
    play(initialize_game(seed, ai_count=3))


def test_explored_never_shrinks():
    game = initialize_game(seed=8)
    history = {f.id: set(game.vision[f.id].explored) for f in game.factions}

    def check(g):
        for faction_id, before in history.items():
            now = g.vision[faction_id].explored
            assert before <= now
            history[faction_id] = set(now)

    play(game, on_round=check)


def test_turn_counter_and_log_are_monotonic():
    game = play(initialize_game(seed=12))
    turns = [entry["turn"] for entry in game.log]
    assert turns == sorted(turns)
    if not game.game_over:
        assert game.turn == MAX_ROUNDS + 1


def test_fogged_self_play():
    game = initialize_game(seed=21, config={"omniscient_ai": False})
    play(game)


def test_deterministic_replay():
    a = play(initialize_game(seed=33))
    b = play(initialize_game(seed=33))
    assert [(e["turn"], e["event"]) for e in a.log] == [(e["turn"], e["event"]) for e in b.log]
