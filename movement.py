"""
Movement and targeting for Hexfront.

Reachability is a budgeted breadth-first frontier search over remaining
movement rather than a flat radius scan, because entering slowing terrain
costs a mounted unit its entire remaining budget. One-move units go through
the same search and simply stop after the first ring of neighbors.

Frontier rules:
- impassable terrain is never entered
- friendly units can be passed through but not stopped on
- an enemy unit is a terminal target (entering it means melee) for units
  that can melee, and a wall for ranged-only units
- an enemy city is terminal: entering it captures, so the frontier stops
"""

from collections import deque
from typing import Dict, Optional, Set, Tuple

from models import Unit
from state import GameState
from vision import can_see

Position = Tuple[int, int]


def entry_cost(game_state: GameState, unit: Unit, position: Position, remaining: int) -> int:
    """
    Movement spent to enter a tile.

    Args:
        game_state: Current game state
        unit: Moving unit
        position: Tile being entered
        remaining: Movement left before entering

    Returns:
        1 for ordinary tiles, all remaining movement for slowing terrain
        when the unit type is slowed by terrain
    """
    terrain = game_state.tiles[position].terrain
    if terrain.slows_movement and unit.unit_type.slowed_by_terrain:
        return remaining
    return 1


def movement_costs(game_state: GameState, unit: Unit, budget: Optional[int] = None) -> Dict[Position, int]:
    """
    Run the frontier search and return the best movement left on arrival.

    The start tile is included with the full budget. Tiles holding friendly
    units are included (they can be passed) and filtered out by callers.

    Args:
        game_state: Current game state
        unit: Moving unit
        budget: Movement budget (default: the unit's moves_remaining)

    Returns:
        Dictionary mapping reachable position to movement remaining there
    """
    if budget is None:
        budget = unit.moves_remaining
    occupancy = {u.position: u for u in game_state.units}
    enemy_cities = {c.position for c in game_state.cities if c.owner != unit.owner}

    best: Dict[Position, int] = {unit.position: budget}
    queue = deque([unit.position])

    while queue:
        current = queue.popleft()
        remaining = best[current]
        if remaining <= 0:
            continue

        for neighbor in game_state.neighbors(current):
            if not game_state.is_passable(neighbor):
                continue

            occupant = occupancy.get(neighbor)
            enemy_here = occupant is not None and occupant.owner != unit.owner
            if enemy_here and unit.unit_type.ranged_only:
                continue

            left = remaining - entry_cost(game_state, unit, neighbor, remaining)
            if neighbor in best and best[neighbor] >= left:
                continue
            best[neighbor] = left

            if left > 0 and not enemy_here and neighbor not in enemy_cities:
                queue.append(neighbor)

    return best


def _destinations(game_state: GameState, unit: Unit, costs: Dict[Position, int]) -> Set[Position]:
    friendly = {u.position for u in game_state.units if u.owner == unit.owner}
    return {pos for pos in costs if pos != unit.position and pos not in friendly}


def valid_moves(game_state: GameState, unit: Unit) -> Set[Position]:
    """
    Every tile the unit may select as a move target this turn.

    Includes enemy-occupied tiles for units that can melee; selecting one
    of those attacks instead of moving.

    Args:
        game_state: Current game state
        unit: Unit to move

    Returns:
        Set of target positions (empty when the unit has no moves left)
    """
    if unit.moves_remaining <= 0:
        return set()
    return _destinations(game_state, unit, movement_costs(game_state, unit))


def moves_left_after(game_state: GameState, unit: Unit, target: Position) -> Optional[int]:
    """Movement the unit would have left after moving to target, or None if unreachable."""
    if unit.moves_remaining <= 0:
        return None
    costs = movement_costs(game_state, unit)
    if target not in _destinations(game_state, unit, costs):
        return None
    return costs[target]


def threat_reach(game_state: GameState, unit: Unit) -> Set[Position]:
    """Tiles a unit could reach (or melee into) with a full turn of movement."""
    costs = movement_costs(game_state, unit, budget=unit.unit_type.moves_per_turn)
    return _destinations(game_state, unit, costs)


def attack_targets(game_state: GameState, unit: Unit) -> Set[Position]:
    """
    Enemy-occupied tiles the unit can hit with a ranged attack.

    Only units with attack_range > 1 have ranged targets; melee units
    attack by moving onto an enemy (see valid_moves). Targets must be
    visible to the unit's own faction.

    Args:
        game_state: Current game state
        unit: Attacking unit

    Returns:
        Set of target positions
    """
    if unit.unit_type.attack_range <= 1 or unit.moves_remaining <= 0:
        return set()

    targets = set()
    for pos in game_state.positions_within(unit.position, unit.unit_type.attack_range):
        if pos == unit.position:
            continue
        occupant = game_state.unit_at(pos)
        if occupant is None or occupant.owner == unit.owner:
            continue
        if can_see(game_state, unit.owner, pos):
            targets.add(pos)
    return targets
