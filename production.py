"""
Unit production for Hexfront.

Each city has a single training slot. An order counts down once per turn of
its owner; when it reaches zero the unit appears on the city tile, or on the
first free passable neighbor if the city is occupied. If there is nowhere to
put it the order is dropped: no refund, no retry.
"""

from typing import Any, Dict, List, Optional, Tuple

from models import City, TrainingOrder, get_unit_type
from state import GameState, log_event
from vision import update_all_visibility

Position = Tuple[int, int]


def queue_training(game_state: GameState, city: City, type_key: str) -> Dict[str, Any]:
    """
    Start training a unit at a city.

    Args:
        game_state: Current game state
        city: City that will train the unit
        type_key: Unit type key, e.g. 'ARCHER'

    Returns:
        {'success': True, 'order': TrainingOrder} or {'success': False, 'error': reason}
    """
    if game_state.game_over:
        return {'success': False, 'error': 'Game is over'}

    unit_type = get_unit_type(type_key)
    if unit_type is None:
        return {'success': False, 'error': f"Unknown unit type: {type_key}"}

    if city not in game_state.cities:
        return {'success': False, 'error': f"City {city.id} no longer exists"}

    existing = game_state.training_order_for(city.id)
    if existing is not None:
        return {'success': False,
                'error': f"{city.name} is already training a {existing.unit_type.name}"}

    order = TrainingOrder(city_id=city.id, owner=city.owner, unit_type=unit_type,
                          turns_left=unit_type.train_time)
    game_state.training_orders.append(order)
    log_event(game_state, f"{city.name} starts training a {unit_type.name} ({unit_type.train_time} turns)",
              type='training_queued', city_id=city.id, owner=city.owner, unit_type=unit_type.key)
    return {'success': True, 'order': order}


def find_spawn_tile(game_state: GameState, city: City) -> Optional[Position]:
    """The city tile if free, else the first free passable neighbor, else None."""
    if game_state.unit_at(city.position) is None:
        return city.position
    for neighbor in game_state.neighbors(city.position):
        if game_state.is_passable(neighbor) and game_state.unit_at(neighbor) is None:
            return neighbor
    return None


def process_training(game_state: GameState, faction_id: str) -> List[Dict[str, Any]]:
    """
    Count down a faction's training orders and spawn finished units.

    Spawned units start with no movement for the rest of the turn.

    Args:
        game_state: Current game state
        faction_id: Faction whose orders advance

    Returns:
        One result per finished order: {'city_id', 'unit_type', 'unit_id' or None, 'dropped'}
    """
    results = []
    for order in [o for o in game_state.training_orders if o.owner == faction_id]:
        order.turns_left -= 1
        if order.turns_left > 0:
            continue

        game_state.training_orders.remove(order)
        city = game_state.get_city_by_id(order.city_id)
        spawn = find_spawn_tile(game_state, city) if city and city.owner == faction_id else None

        if spawn is None:
            log_event(game_state, f"Training of {order.unit_type.name} at {order.city_id} dropped: no free tile",
                      type='training_dropped', city_id=order.city_id, owner=faction_id,
                      unit_type=order.unit_type.key)
            results.append({'city_id': order.city_id, 'unit_type': order.unit_type.key,
                            'unit_id': None, 'dropped': True})
            continue

        unit = game_state.add_unit(order.unit_type.key, spawn, faction_id, moves=0)
        log_event(game_state, f"{city.name} trained {unit.id} ({order.unit_type.name}) at {spawn}",
                  type='unit_trained', city_id=city.id, owner=faction_id,
                  unit_id=unit.id, unit_type=order.unit_type.key, position=spawn)
        results.append({'city_id': city.id, 'unit_type': order.unit_type.key,
                        'unit_id': unit.id, 'dropped': False})

    if any(not r['dropped'] for r in results):
        update_all_visibility(game_state)
    return results
