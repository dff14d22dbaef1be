"""
Game state management for Hexfront.

The GameState aggregate owns everything the engine mutates: tiles, units,
cities, factions, training orders, per-faction vision, the turn counter and
the event log. Every other module receives it explicitly; nothing is global.

Map: hexagon of radius 5 (91 tiles) in axial coordinates, configurable.
Factions: 'player' plus one or more AI factions ('ai1', 'ai2', ...).
"""

from __future__ import annotations
import uuid
import json
import os
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import hexgrid
from map_gen import generate_map, choose_start_positions
from models import City, Faction, FactionVision, Tile, TrainingOrder, Unit, UNIT_TYPES, faction_color

Position = Tuple[int, int]

DEFAULT_CONFIG: Dict[str, Any] = {
    'grid_radius': 5,
    'layout': 'hex',
    'vision_range': 2,
    'damage_stddev': 3,
    'ai_count': 1,
    'ai_train_chance': 0.6,
    'omniscient_ai': True,
    'capture_destroys_player_city': False,
    'unitless_faction_loses': False,
    'max_turns': 200,
}

CITY_NAMES = {
    'player': 'Capital',
    'ai1': 'Enemy City',
    'ai2': 'Northern Hold',
    'ai3': 'Eastern Keep',
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load game configuration, falling back to defaults for anything missing.

    Args:
        path: Path to a JSON config file (default: config.json beside this module)

    Returns:
        Complete configuration dictionary
    """
    config = dict(DEFAULT_CONFIG)
    config_path = path or os.path.join(os.path.dirname(__file__), 'config.json')
    try:
        with open(config_path, 'r') as f:
            loaded = json.load(f)
        if isinstance(loaded, dict):
            config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        pass
    return config


@dataclass
class GameState:
    """
    Complete game state containing all game information.

    phase is one of 'player', 'ai', 'advance', 'game_over'; active_faction is
    the faction allowed to mutate the world during the current phase.
    """
    game_id: str
    tiles: Dict[Position, Tile] = field(default_factory=dict)
    units: List[Unit] = field(default_factory=list)
    cities: List[City] = field(default_factory=list)
    factions: List[Faction] = field(default_factory=list)
    training_orders: List[TrainingOrder] = field(default_factory=list)
    vision: Dict[str, FactionVision] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_CONFIG))
    turn: int = 1
    phase: str = 'player'
    active_faction: str = 'player'
    game_over: bool = False
    outcome: Optional[str] = None  # 'victory' or 'defeat', from the player's side
    winner: Optional[str] = None
    selected_unit_id: Optional[str] = None
    log: List[Dict[str, Any]] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)
    damage_roll: Optional[Callable[[float, float], int]] = None  # Injected for deterministic combat
    next_unit_number: int = 1

    @property
    def layout(self) -> str:
        return self.config.get('layout', 'hex')

    # --- Tiles ---

    def tile_at(self, position: Position) -> Optional[Tile]:
        """Get the tile at a position, or None when off the map."""
        return self.tiles.get(position)

    def is_passable(self, position: Position) -> bool:
        """On the map and not impassable terrain."""
        tile = self.tiles.get(position)
        return tile is not None and not tile.terrain.impassable

    def distance(self, a: Position, b: Position) -> int:
        return hexgrid.distance(self.layout, a, b)

    def neighbors(self, position: Position) -> List[Position]:
        """Adjacent positions that exist on the map."""
        return [p for p in hexgrid.neighbors(self.layout, position) if p in self.tiles]

    def positions_within(self, center: Position, radius: int) -> List[Position]:
        """On-map positions within radius of center."""
        return [p for p in hexgrid.within(self.layout, center, radius) if p in self.tiles]

    # --- Units ---

    def units_at(self, position: Position) -> List[Unit]:
        """All units at a position (at most one while the invariants hold)."""
        return [u for u in self.units if u.position == position]

    def unit_at(self, position: Position) -> Optional[Unit]:
        """Get the unit at a specific position, if any."""
        for unit in self.units:
            if unit.position == position:
                return unit
        return None

    def get_unit_by_id(self, unit_id: str) -> Optional[Unit]:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    def units_of(self, faction_id: str) -> List[Unit]:
        return [u for u in self.units if u.owner == faction_id]

    def enemy_units_of(self, faction_id: str) -> List[Unit]:
        return [u for u in self.units if u.owner != faction_id]

    def add_unit(self, type_key: str, position: Position, owner: str, moves: Optional[int] = None) -> Unit:
        """
        Create a unit and put it on the map.

        Args:
            type_key: Key into UNIT_TYPES
            position: Target tile, must be passable and empty
            owner: Owning faction id
            moves: Starting moves_remaining (default: full)

        Returns:
            The new Unit

        Raises:
            ValueError: If the tile is impassable, off the map or occupied
        """
        unit_type = UNIT_TYPES[type_key]
        if not self.is_passable(position):
            raise ValueError(f"Cannot place unit on {position}: tile is impassable or off the map")
        if self.unit_at(position) is not None:
            raise ValueError(f"Cannot place unit on {position}: tile is occupied")

        unit = Unit(
            id=f"{owner}_u{self.next_unit_number}",
            owner=owner,
            unit_type=unit_type,
            position=position,
            moves_remaining=unit_type.moves_per_turn if moves is None else moves,
        )
        self.next_unit_number += 1
        self.units.append(unit)
        return unit

    def remove_dead_units(self) -> List[Unit]:
        """Drop every unit at hp <= 0 from the live collection and return them."""
        dead = [u for u in self.units if u.hp <= 0]
        if dead:
            self.units = [u for u in self.units if u.hp > 0]
            if self.selected_unit_id in {u.id for u in dead}:
                self.selected_unit_id = None
        return dead

    # --- Cities ---

    def city_at(self, position: Position) -> Optional[City]:
        for city in self.cities:
            if city.position == position:
                return city
        return None

    def get_city_by_id(self, city_id: str) -> Optional[City]:
        for city in self.cities:
            if city.id == city_id:
                return city
        return None

    def cities_of(self, faction_id: str) -> List[City]:
        return [c for c in self.cities if c.owner == faction_id]

    def enemy_cities_of(self, faction_id: str) -> List[City]:
        return [c for c in self.cities if c.owner != faction_id]

    def training_order_for(self, city_id: str) -> Optional[TrainingOrder]:
        for order in self.training_orders:
            if order.city_id == city_id:
                return order
        return None

    # --- Factions ---

    def get_faction(self, faction_id: str) -> Optional[Faction]:
        for faction in self.factions:
            if faction.id == faction_id:
                return faction
        return None

    def living_ai_factions(self) -> List[Faction]:
        return [f for f in self.factions if f.is_ai and not f.eliminated]

    def is_ai(self, faction_id: str) -> bool:
        faction = self.get_faction(faction_id)
        return bool(faction and faction.is_ai)


def log_event(game_state: GameState, event: str, **kwargs) -> None:
    """
    Add an event to the game state log.

    Args:
        game_state: Current game state
        event: Description of the event
        **kwargs: Additional event data to include (e.g. type='melee')

    Entries with a position also record which factions had that tile in
    sight when it happened, so each faction's log can respect its fog.
    """
    log_entry = {
        'turn': game_state.turn,
        'phase': game_state.phase,
        'event': event,
        **kwargs
    }
    position = kwargs.get('position')
    if position is not None:
        log_entry['seen_by'] = [
            faction_id for faction_id, vision in game_state.vision.items()
            if tuple(position) in vision.visible
        ]
    game_state.log.append(log_entry)


def initialize_game(seed: int, ai_count: Optional[int] = None,
                    config: Optional[Dict[str, Any]] = None) -> GameState:
    """
    Initialize a new game: generated map, one city and one Warrior per faction.

    Args:
        seed: Random seed for map generation and the game's RNG
        ai_count: Number of AI opponents (default: from config)
        config: Configuration overrides (default: load_config())

    Returns:
        New GameState with vision computed, ready for the player's first turn
    """
    from vision import update_all_visibility

    cfg = load_config()
    if config:
        cfg.update(config)
    if ai_count is not None:
        cfg['ai_count'] = ai_count
    cfg['ai_count'] = max(1, int(cfg['ai_count']))

    tiles = generate_map(seed, radius=cfg['grid_radius'], layout=cfg['layout'],
                         starts=cfg['ai_count'] + 1)
    faction_ids = ['player'] + [f"ai{i}" for i in range(1, cfg['ai_count'] + 1)]
    starts = choose_start_positions(tiles, len(faction_ids), random.Random(seed), layout=cfg['layout'])

    game_state = GameState(
        game_id=str(uuid.uuid4()),
        tiles=tiles,
        config=cfg,
        rng=random.Random(seed),
    )

    for faction_id, start in zip(faction_ids, starts):
        color = faction_color(faction_id)
        game_state.factions.append(Faction(id=faction_id, is_ai=faction_id != 'player', color=color))
        game_state.vision[faction_id] = FactionVision()
        game_state.cities.append(City(
            id=f"{faction_id}_city",
            position=start,
            owner=faction_id,
            name=CITY_NAMES.get(faction_id, f"{faction_id} City"),
            color=color,
        ))
        game_state.add_unit('WARRIOR', start, faction_id)

    update_all_visibility(game_state)
    log_event(game_state, f"Game started with {len(faction_ids) - 1} AI opponent(s)",
              type='game_started', seed=seed)
    return game_state


def get_game_summary(game_state: GameState, viewer: str = 'player') -> Dict[str, Any]:
    """
    Get a summary of the game as one faction sees it, for API responses.

    Tiles the viewer never explored are reported without terrain; enemy
    units are only listed on currently visible tiles, and enemy cities on
    explored tiles.

    Args:
        game_state: Current game state
        viewer: Faction id whose fog applies

    Returns:
        JSON-serializable dictionary
    """
    vision = game_state.vision.get(viewer, FactionVision())

    def unit_json(unit: Unit) -> Dict[str, Any]:
        return {
            'id': unit.id,
            'owner': unit.owner,
            'type': unit.unit_type.key,
            'name': unit.unit_type.name,
            'position': {'q': unit.position[0], 'r': unit.position[1]},
            'hp': unit.hp,
            'max_hp': unit.unit_type.max_hp,
            'moves_remaining': unit.moves_remaining,
        }

    tiles = []
    for pos, tile in game_state.tiles.items():
        if pos in vision.visible:
            state = 'visible'
        elif pos in vision.explored:
            state = 'explored'
        else:
            state = 'unseen'
        tiles.append({
            'q': pos[0],
            'r': pos[1],
            'visibility': state,
            'terrain': tile.terrain.key if state != 'unseen' else None,
        })

    units = [
        unit_json(u) for u in game_state.units
        if u.owner == viewer or u.position in vision.visible
    ]
    cities = [
        {
            'id': c.id,
            'name': c.name,
            'owner': c.owner,
            'position': {'q': c.position[0], 'r': c.position[1]},
        }
        for c in game_state.cities
        if c.owner == viewer or c.position in vision.explored
    ]
    training = []
    for order in game_state.training_orders:
        if order.owner == viewer:
            training.append({
                'city_id': order.city_id,
                'type': order.unit_type.key,
                'turns_left': order.turns_left,
            })

    return {
        'game_id': game_state.game_id,
        'turn': game_state.turn,
        'phase': game_state.phase,
        'active_faction': game_state.active_faction,
        'game_over': game_state.game_over,
        'outcome': game_state.outcome,
        'winner': game_state.winner,
        'factions': [
            {'id': f.id, 'is_ai': f.is_ai, 'eliminated': f.eliminated}
            for f in game_state.factions
        ],
        'tiles': tiles,
        'units': units,
        'cities': cities,
        'training': training,
    }
