# Models for Hexfront game elements

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Terrain:
    """A terrain kind from the fixed catalog. Never changes after map generation."""
    key: str  # 'tundra', 'plains', 'rainforest', 'water', 'mountain'
    label: str
    color: str
    defense_bonus: int = 0  # Added to a defender's counter-attack strength
    impassable: bool = False
    slows_movement: bool = False  # Only affects unit types with slowed_by_terrain


TERRAIN: Dict[str, Terrain] = {
    'tundra': Terrain('tundra', 'Tundra', '#8B7355', defense_bonus=4),
    'plains': Terrain('plains', 'Plains', '#90c956', defense_bonus=0),
    'rainforest': Terrain('rainforest', 'Rainforest', '#2d5a27', defense_bonus=6, slows_movement=True),
    'water': Terrain('water', 'Water', '#2980b9', defense_bonus=0, impassable=True),
    'mountain': Terrain('mountain', 'Mountain', '#6b7c85', defense_bonus=8, impassable=True),
}


@dataclass(frozen=True)
class UnitType:
    """
    A unit type from the catalog (not an entity).

    defense is shown to players but not used by the damage formula.
    """
    key: str
    name: str
    icon: str
    max_hp: int
    attack: int
    defense: int
    moves_per_turn: int
    attack_range: int
    train_time: int
    ranged_only: bool = False  # Cannot initiate melee
    slowed_by_terrain: bool = False  # Slowing terrain eats the whole move budget


UNIT_TYPES: Dict[str, UnitType] = {
    'WARRIOR': UnitType('WARRIOR', 'Warrior', 'W', max_hp=70, attack=18, defense=14,
                        moves_per_turn=1, attack_range=1, train_time=3),
    'ARCHER': UnitType('ARCHER', 'Archer', 'A', max_hp=40, attack=14, defense=6,
                       moves_per_turn=1, attack_range=2, train_time=3, ranged_only=True),
    'KNIGHT': UnitType('KNIGHT', 'Knight', 'K', max_hp=50, attack=12, defense=10,
                       moves_per_turn=2, attack_range=1, train_time=3, slowed_by_terrain=True),
}


@dataclass
class Tile:
    """A map tile: position plus immutable terrain."""
    q: int
    r: int
    terrain: Terrain
    seed: float = 0.0  # Decorative only, lets renderers draw the same tile the same way

    @property
    def position(self) -> Tuple[int, int]:
        return (self.q, self.r)


@dataclass
class Unit:
    """
    A live unit on the map.

    hp stays in [0, max_hp] and a unit at hp <= 0 is removed from the game
    state immediately. moves_remaining is reset only when the turn advances.
    """
    id: str  # e.g. 'player_u1', 'ai1_u3'
    owner: str  # Faction id
    unit_type: UnitType
    position: Tuple[int, int]
    hp: Optional[int] = None  # Defaults to the type's max_hp
    moves_remaining: int = 0

    def __post_init__(self):
        if self.hp is None:
            self.hp = self.unit_type.max_hp

    @property
    def attack(self) -> int:
        return self.unit_type.attack

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    def take_damage(self, amount: int) -> None:
        """Subtract damage, never dropping below 0."""
        self.hp = max(0, self.hp - amount)

    def spend_moves(self, amount: int) -> None:
        """Spend movement, never dropping below 0."""
        self.moves_remaining = max(0, self.moves_remaining - amount)

    def reset_moves(self) -> None:
        self.moves_remaining = self.unit_type.moves_per_turn


@dataclass
class City:
    """A faction's city. Never moves; changes owner on capture."""
    id: str
    position: Tuple[int, int]
    owner: str
    name: str
    color: str = '#ffffff'


@dataclass
class TrainingOrder:
    """A city's single in-flight training order."""
    city_id: str
    owner: str
    unit_type: UnitType
    turns_left: int


@dataclass
class Faction:
    """The human player or one AI opponent."""
    id: str  # 'player', 'ai1', 'ai2', ...
    is_ai: bool
    color: str
    eliminated: bool = False


@dataclass
class FactionVision:
    """What one faction currently sees and has ever seen."""
    visible: set = field(default_factory=set)
    explored: set = field(default_factory=set)


FACTION_COLORS = {
    'player': '#00ffff',
    'ai1': '#e74c3c',
    'ai2': '#e67e22',
    'ai3': '#9b59b6',
}


def faction_color(faction_id: str) -> str:
    """Display color for a faction, grey for ids beyond the palette."""
    return FACTION_COLORS.get(faction_id, '#bdc3c7')


def get_unit_type(key: str) -> Optional[UnitType]:
    """Look up a unit type by catalog key, case-insensitive."""
    return UNIT_TYPES.get(key.upper()) if key else None
