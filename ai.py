"""
Rule-based AI for Hexfront.

Every AI unit with movement left runs the same priority list, and the first
rule that yields a legal order wins:

1. capture   - take an enemy city reachable this turn with no defender on it
2. defend    - step into an own city an enemy could reach this turn, if empty
3. counter   - hit the unit threatening an own city, or close in on it
4. attack    - hit the weakest enemy in range/reach, ranged before melee
5. advance   - head for the nearest known enemy city
6. fallback  - head for the nearest known enemy unit

A unit with no applicable rule passes. "Close in" and "head for" only move
when the step strictly reduces the distance to the target, and never onto
an enemy unit.

Each AI faction also rolls once per turn to queue a random unit at an idle
city.
"""

import random
from typing import Callable, List, Optional, Set, Tuple

from models import UNIT_TYPES, City, Unit
from movement import attack_targets, threat_reach, valid_moves
from orders import Order, OrderType, execute_order, train_unit
from state import GameState, log_event
from vision import can_see, has_explored

Position = Tuple[int, int]


def known_enemy_units(game_state: GameState, faction_id: str) -> List[Unit]:
    """Enemy units the faction can currently see."""
    return [u for u in game_state.enemy_units_of(faction_id) if can_see(game_state, faction_id, u.position)]


def known_enemy_cities(game_state: GameState, faction_id: str) -> List[City]:
    """Enemy cities on tiles the faction has explored."""
    return [c for c in game_state.enemy_cities_of(faction_id) if has_explored(game_state, faction_id, c.position)]


def find_threats(game_state: GameState, faction_id: str) -> List[Tuple[City, Unit]]:
    """
    Pairs of (own city, enemy unit that could reach it this turn).

    Args:
        game_state: Current game state
        faction_id: Defending faction

    Returns:
        List of (city, threatening unit)
    """
    own_cities = game_state.cities_of(faction_id)
    if not own_cities:
        return []
    threats = []
    for enemy in known_enemy_units(game_state, faction_id):
        reach = threat_reach(game_state, enemy)
        for city in own_cities:
            if city.position in reach:
                threats.append((city, enemy))
    return threats


def step_toward(game_state: GameState, unit: Unit, target: Position, moves: Set[Position]) -> Optional[Position]:
    """
    The legal move that gets closest to target, if it is strictly closer than now.

    Tiles holding enemy units are skipped: approaching is never an attack.
    """
    occupied = {u.position for u in game_state.units}
    candidates = [m for m in moves if m not in occupied]
    if not candidates:
        return None
    best = min(candidates, key=lambda m: (game_state.distance(m, target), m))
    if game_state.distance(best, target) < game_state.distance(unit.position, target):
        return best
    return None


def _nearest(game_state: GameState, origin: Position, positions: List[Position]) -> Optional[Position]:
    if not positions:
        return None
    return min(positions, key=lambda p: (game_state.distance(origin, p), p))


def rule_capture(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """Winning move: an undefended enemy city within reach."""
    targets = [
        c.position for c in game_state.enemy_cities_of(unit.owner)
        if c.position in moves and game_state.unit_at(c.position) is None
    ]
    target = _nearest(game_state, unit.position, targets)
    if target is None:
        return None
    return Order(OrderType.MOVE, unit, target_hex=target)


def rule_defend(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """Garrison a threatened city that has nobody in it."""
    threatened = {city.position for city, _ in find_threats(game_state, unit.owner)}
    empty = [pos for pos in threatened if game_state.unit_at(pos) is None and pos in moves]
    target = _nearest(game_state, unit.position, empty)
    if target is None:
        return None
    return Order(OrderType.MOVE, unit, target_hex=target)


def rule_counter(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """Attack a unit threatening an own city, or close the distance to it."""
    threats = {enemy.id: enemy for _, enemy in find_threats(game_state, unit.owner)}
    if not threats:
        return None
    ordered = sorted(threats.values(), key=lambda e: (game_state.distance(unit.position, e.position), e.id))

    ranged = attack_targets(game_state, unit)
    for enemy in ordered:
        if enemy.position in ranged:
            return Order(OrderType.RANGED, unit, target_hex=enemy.position)
        if not unit.unit_type.ranged_only and enemy.position in moves:
            return Order(OrderType.MOVE, unit, target_hex=enemy.position)

    step = step_toward(game_state, unit, ordered[0].position, moves)
    if step is None:
        return None
    return Order(OrderType.MOVE, unit, target_hex=step)


def rule_attack(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """Hit the weakest enemy available, ranged before melee."""
    def weakest(positions: List[Position]) -> Position:
        return min(positions, key=lambda p: (game_state.unit_at(p).hp,
                                              game_state.distance(unit.position, p), p))

    ranged = list(attack_targets(game_state, unit))
    if ranged:
        return Order(OrderType.RANGED, unit, target_hex=weakest(ranged))

    if unit.unit_type.ranged_only:
        return None
    melee = [
        m for m in moves
        if game_state.unit_at(m) is not None and game_state.unit_at(m).owner != unit.owner
        and can_see(game_state, unit.owner, m)
    ]
    if melee:
        return Order(OrderType.MOVE, unit, target_hex=weakest(melee))
    return None


def rule_advance(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """March on the nearest known enemy city."""
    target = _nearest(game_state, unit.position,
                      [c.position for c in known_enemy_cities(game_state, unit.owner)])
    if target is None:
        return None
    step = step_toward(game_state, unit, target, moves)
    if step is None:
        return None
    return Order(OrderType.MOVE, unit, target_hex=step)


def rule_fallback(game_state: GameState, unit: Unit, moves: Set[Position]) -> Optional[Order]:
    """March on the nearest known enemy unit."""
    target = _nearest(game_state, unit.position,
                      [e.position for e in known_enemy_units(game_state, unit.owner)])
    if target is None:
        return None
    step = step_toward(game_state, unit, target, moves)
    if step is None:
        return None
    return Order(OrderType.MOVE, unit, target_hex=step)


RULES: List[Tuple[str, Callable[[GameState, Unit, Set[Position]], Optional[Order]]]] = [
    ('capture', rule_capture),
    ('defend', rule_defend),
    ('counter', rule_counter),
    ('attack', rule_attack),
    ('advance', rule_advance),
    ('fallback', rule_fallback),
]


def decide(game_state: GameState, unit: Unit) -> Tuple[Optional[str], Optional[Order]]:
    """
    Run the priority list for one unit.

    Returns:
        (rule name, order), or (None, None) if the unit passes
    """
    if unit.moves_remaining <= 0:
        return None, None
    moves = valid_moves(game_state, unit)
    for name, rule in RULES:
        order = rule(game_state, unit, moves)
        if order is not None:
            return name, order
    return None, None


def act(game_state: GameState, unit: Unit) -> Optional[dict]:
    """Decide and carry out one unit's action. Returns the order result, or None on a pass."""
    rule, order = decide(game_state, unit)
    if order is None:
        log_event(game_state, f"{unit.id} holds position", type='ai_pass', unit_id=unit.id)
        return None
    result = execute_order(order, game_state)
    log_event(game_state, f"{unit.id} acts by rule '{rule}'", type='ai_action',
              unit_id=unit.id, rule=rule, success=result['success'])
    return result


def play_units(game_state: GameState, faction_id: str) -> int:
    """
    Give every unit of the faction that still has movement one action.

    Returns:
        Number of units that acted
    """
    acted = 0
    for unit in [u for u in game_state.units_of(faction_id) if u.moves_remaining > 0]:
        if game_state.game_over:
            break
        if unit not in game_state.units or unit.moves_remaining <= 0:
            continue
        if act(game_state, unit) is not None:
            acted += 1
    return acted


def maybe_queue_training(game_state: GameState, faction_id: str, rng: Optional[random.Random] = None) -> Optional[str]:
    """
    Once-per-turn roll to start training a random unit at an idle city.

    Returns:
        The queued unit type key, or None
    """
    rng = rng or game_state.rng
    if rng.random() >= game_state.config.get('ai_train_chance', 0.6):
        return None
    idle = [c for c in game_state.cities_of(faction_id) if game_state.training_order_for(c.id) is None]
    if not idle:
        return None
    type_key = rng.choice(sorted(UNIT_TYPES))
    result = train_unit(game_state, idle[0], type_key)
    return type_key if result['success'] else None
