"""Shared test fixtures and helpers."""

import random

import pytest

from hexgrid import hexes_within
from models import TERRAIN, City, Faction, FactionVision, Tile, faction_color
from state import DEFAULT_CONFIG, GameState, initialize_game
from vision import update_all_visibility

# --- Standard layouts ---

PLAYER_CITY = (0, 3)
AI_CITY = (0, -3)


def fixed_damage(mean, stddev):
    """Damage roll without variance: always exactly the mean."""
    return int(mean)


# --- Fixtures ---


@pytest.fixture
def game():
    """Fresh generated game (seed=42), one AI opponent."""
    return initialize_game(seed=42)


@pytest.fixture
def board():
    """Small all-plains board with a player city in the south and an AI city in the north."""
    return make_board()


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


# --- Helper functions ---


def make_board(radius=3, terrain=None, cities=None, config=None):
    """
    Build a hand-made game state for rule testing.

    Args:
        radius: Hex radius of the board
        terrain: {position: terrain key} overrides, plains elsewhere
        cities: {faction id: city position}; defaults to player south, ai1 north
        config: Config overrides

    Returns:
        GameState with deterministic combat and vision computed
    """
    terrain = terrain or {}
    cities = cities or {"player": PLAYER_CITY, "ai1": AI_CITY}
    cfg = dict(DEFAULT_CONFIG)
    cfg.update(config or {})

    tiles = {
        pos: Tile(q=pos[0], r=pos[1], terrain=TERRAIN[terrain.get(pos, "plains")])
        for pos in hexes_within((0, 0), radius)
    }
    game_state = GameState(game_id="test", tiles=tiles, config=cfg, rng=random.Random(0))
    game_state.damage_roll = fixed_damage

    for faction_id, position in cities.items():
        game_state.factions.append(Faction(id=faction_id, is_ai=faction_id != "player",
                                           color=faction_color(faction_id)))
        game_state.vision[faction_id] = FactionVision()
        game_state.cities.append(City(id=f"{faction_id}_city", position=position,
                                      owner=faction_id, name=f"{faction_id} city"))

    update_all_visibility(game_state)
    return game_state


def place(game_state, type_key, position, owner, moves=None, hp=None):
    """Add a unit to the board and refresh vision."""
    unit = game_state.add_unit(type_key, position, owner, moves=moves)
    if hp is not None:
        unit.hp = hp
    update_all_visibility(game_state)
    return unit


def create_api_game(client, seed=42):
    """Create a new game via API, return game_id."""
    resp = client.post("/api/game/new", json={"seed": seed})
    assert resp.status_code == 200
    return resp.json["game_id"]
