"""
Combat resolution for Hexfront.

Damage is drawn from a normal distribution (Box-Muller) around the
attacker's attack value and floored at 1 so fights always progress.

Melee is simultaneous: the defender hits back with its own attack plus the
defense bonus of the terrain it stands on. Terrain therefore protects by
making the counter-attack hurt more, not by reducing incoming damage.
Ranged attacks are one-directional. Any attack ends the attacker's turn.
"""

import math
import random
from typing import Any, Callable, Dict, List, Optional

from models import City, Unit
from state import GameState, log_event
from vision import update_all_visibility

DamageRoll = Callable[[float, float], int]


class ConfrontationError(Exception):
    """Exception raised when combat is requested between units that cannot fight."""
    pass


def sample_damage(mean: float, stddev: float, rng: Optional[random.Random] = None) -> int:
    """
    Draw one damage value.

    Box-Muller transform over two uniforms in (0, 1], rounded half up to
    the nearest integer and floored at 1.

    Args:
        mean: Distribution mean (usually an attack value)
        stddev: Standard deviation
        rng: Random source (default: module-level random)

    Returns:
        Damage, at least 1
    """
    source = rng or random
    u = 1.0 - source.random()  # random() is in [0, 1), so this is (0, 1]
    v = 1.0 - source.random()
    value = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v) * stddev + mean
    return max(1, int(math.floor(value + 0.5)))


def make_damage_roll(game_state: GameState) -> DamageRoll:
    """The damage roll used for this game: the injected one, or the game's RNG."""
    if game_state.damage_roll is not None:
        return game_state.damage_roll
    return lambda mean, stddev: sample_damage(mean, stddev, game_state.rng)


def _roll(game_state: GameState, mean: float) -> int:
    stddev = game_state.config.get('damage_stddev', 3)
    return max(1, int(make_damage_roll(game_state)(mean, stddev)))


def _check_combatants(attacker: Unit, defender: Unit) -> None:
    if attacker.owner == defender.owner:
        raise ConfrontationError(f"{attacker.id} and {defender.id} belong to the same faction")
    if attacker.hp <= 0 or defender.hp <= 0:
        raise ConfrontationError(f"Combat between {attacker.id} and {defender.id} involves a dead unit")


def _log_deaths(game_state: GameState, dead: List[Unit], killer: Unit) -> None:
    for unit in dead:
        log_event(game_state, f"{unit.id} ({unit.unit_type.name}) was killed",
                  type='unit_killed', unit_id=unit.id, owner=unit.owner,
                  position=unit.position, killer_id=killer.id)


def resolve_melee(attacker: Unit, defender: Unit, game_state: GameState) -> Dict[str, Any]:
    """
    Resolve a melee exchange between two adjacent-or-reachable units.

    Both damages are drawn before either is applied. If only the defender
    dies, the attacker takes its tile (capturing an enemy city there). If
    both die, both are removed and nobody moves.

    Args:
        attacker: Unit initiating the attack
        defender: Enemy unit being attacked
        game_state: Current game state

    Returns:
        Result dictionary with damage dealt, deaths and final positions

    Raises:
        ConfrontationError: If the units are on the same side or already dead
    """
    _check_combatants(attacker, defender)

    defender_pos = defender.position
    terrain = game_state.tiles[defender_pos].terrain

    damage_to_defender = _roll(game_state, attacker.attack)
    damage_to_attacker = _roll(game_state, defender.attack + terrain.defense_bonus)

    defender.take_damage(damage_to_defender)
    attacker.take_damage(damage_to_attacker)
    attacker.moves_remaining = 0

    attacker_advanced = False
    if defender.hp <= 0 and attacker.hp > 0:
        attacker.position = defender_pos
        attacker_advanced = True

    dead = game_state.remove_dead_units()

    result = {
        'type': 'melee',
        'attacker_id': attacker.id,
        'defender_id': defender.id,
        'damage_to_defender': damage_to_defender,
        'damage_to_attacker': damage_to_attacker,
        'attacker_hp': attacker.hp,
        'defender_hp': defender.hp,
        'defender_killed': defender.hp <= 0,
        'attacker_killed': attacker.hp <= 0,
        'attacker_position': attacker.position,
        'city_captured': None,
    }

    log_event(game_state,
              f"{attacker.id} attacks {defender.id} at {defender_pos} on {terrain.label}: "
              f"deals {damage_to_defender}, takes {damage_to_attacker}",
              type='melee', attacker_id=attacker.id, defender_id=defender.id, position=defender_pos,
              damage_to_defender=damage_to_defender, damage_to_attacker=damage_to_attacker)
    _log_deaths(game_state, dead, attacker)

    if attacker_advanced:
        log_event(game_state, f"{attacker.id} advances to {defender_pos}",
                  type='move', unit_id=attacker.id, position=defender_pos)
        city = game_state.city_at(defender_pos)
        if city is not None and city.owner != attacker.owner:
            capture = capture_city(attacker, city, game_state)
            if capture['captured']:
                result['city_captured'] = city.id
                return result

    check_elimination(game_state)
    update_all_visibility(game_state)
    return result


def resolve_ranged(attacker: Unit, defender: Unit, game_state: GameState) -> Dict[str, Any]:
    """
    Resolve a ranged attack. The defender takes damage; the attacker takes
    none, spends all its movement and never moves.

    Args:
        attacker: Unit shooting
        defender: Enemy unit being shot
        game_state: Current game state

    Returns:
        Result dictionary with damage dealt and whether the defender died

    Raises:
        ConfrontationError: If the units are on the same side or already dead
    """
    _check_combatants(attacker, defender)

    damage = _roll(game_state, attacker.attack)
    defender.take_damage(damage)
    attacker.moves_remaining = 0
    dead = game_state.remove_dead_units()

    log_event(game_state, f"{attacker.id} shoots {defender.id} at {defender.position} for {damage}",
              type='ranged', attacker_id=attacker.id, defender_id=defender.id,
              position=defender.position, damage_to_defender=damage)
    _log_deaths(game_state, dead, attacker)

    check_elimination(game_state)
    update_all_visibility(game_state)

    return {
        'type': 'ranged',
        'attacker_id': attacker.id,
        'defender_id': defender.id,
        'damage_to_defender': damage,
        'damage_to_attacker': 0,
        'attacker_hp': attacker.hp,
        'defender_hp': defender.hp,
        'defender_killed': defender.hp <= 0,
        'attacker_killed': False,
        'attacker_position': attacker.position,
        'city_captured': None,
    }


def capture_city(unit: Unit, city: City, game_state: GameState) -> Dict[str, Any]:
    """
    Hand a city to the unit's faction, then check for elimination.

    With 'capture_destroys_player_city' enabled, a captured player city is
    razed instead of transferred. Any training order in flight at the city
    is cancelled either way.

    Args:
        unit: Unit now standing on the city
        city: Enemy city being taken
        game_state: Current game state

    Returns:
        Result dictionary; 'captured' is False if the game was already over
    """
    result = {'captured': False, 'city_id': city.id, 'previous_owner': city.owner,
              'new_owner': unit.owner, 'destroyed': False}
    if game_state.game_over or city.owner == unit.owner:
        return result

    previous_owner = city.owner
    game_state.training_orders = [o for o in game_state.training_orders if o.city_id != city.id]

    if previous_owner == 'player' and game_state.config.get('capture_destroys_player_city', False):
        game_state.cities = [c for c in game_state.cities if c.id != city.id]
        result['destroyed'] = True
        log_event(game_state, f"{unit.owner} razes {city.name}",
                  type='city_captured', city_id=city.id, previous_owner=previous_owner,
                  new_owner=None, unit_id=unit.id, position=city.position)
    else:
        city.owner = unit.owner
        faction = game_state.get_faction(unit.owner)
        if faction:
            city.color = faction.color
        log_event(game_state, f"{unit.owner} captures {city.name} from {previous_owner}",
                  type='city_captured', city_id=city.id, previous_owner=previous_owner,
                  new_owner=unit.owner, unit_id=unit.id, position=city.position)

    result['captured'] = True
    check_elimination(game_state)
    update_all_visibility(game_state)
    return result


def check_elimination(game_state: GameState) -> List[str]:
    """
    Eliminate factions with no cities left and end the game when decided.

    A faction with zero cities is out (with 'unitless_faction_loses', so is a
    faction with zero live units). Its remaining units are disbanded and its
    training orders dropped. The player being out is a defeat; every AI
    being out is a victory.

    Args:
        game_state: Current game state

    Returns:
        Ids of factions eliminated by this call
    """
    if game_state.game_over:
        return []

    unitless_loses = game_state.config.get('unitless_faction_loses', False)
    eliminated = []
    for faction in game_state.factions:
        if faction.eliminated:
            continue
        no_cities = not game_state.cities_of(faction.id)
        no_units = unitless_loses and not game_state.units_of(faction.id)
        if no_cities or no_units:
            faction.eliminated = True
            eliminated.append(faction.id)

    for faction_id in eliminated:
        game_state.units = [u for u in game_state.units if u.owner != faction_id]
        game_state.training_orders = [o for o in game_state.training_orders if o.owner != faction_id]
        log_event(game_state, f"{faction_id} has been eliminated",
                  type='faction_eliminated', faction_id=faction_id)

    player = game_state.get_faction('player')
    if player is not None and player.eliminated:
        survivors = game_state.living_ai_factions()
        end_game(game_state, 'defeat', survivors[0].id if len(survivors) == 1 else None)
    elif not game_state.living_ai_factions():
        end_game(game_state, 'victory', 'player')

    return eliminated


def end_game(game_state: GameState, outcome: str, winner: Optional[str]) -> bool:
    """
    Enter the terminal game-over state. Later calls are ignored.

    Args:
        game_state: Current game state
        outcome: 'victory' or 'defeat' from the player's point of view
        winner: Winning faction id, if a single one exists

    Returns:
        True if this call ended the game
    """
    if game_state.game_over:
        return False
    game_state.game_over = True
    game_state.outcome = outcome
    game_state.winner = winner
    game_state.phase = 'game_over'
    game_state.selected_unit_id = None
    log_event(game_state, f"Game Over: {outcome.upper()}", type='game_over',
              outcome=outcome, winner=winner)
    return True
