from enum import Enum
from typing import Any, Dict, Optional, Tuple

from models import City, Unit
from movement import attack_targets, moves_left_after, valid_moves
from production import queue_training
from resolution import capture_city, resolve_melee, resolve_ranged
from state import GameState, log_event
from vision import update_all_visibility

Position = Tuple[int, int]


class OrderType(Enum):
    MOVE = "Move"  # Move, melee or capture depending on what is on the target
    RANGED = "Ranged"
    TRAIN = "Train"


class Order:
    def __init__(self, order_type: OrderType, unit: Optional[Unit] = None,
                 target_hex: Optional[Position] = None, city: Optional[City] = None,
                 unit_type: Optional[str] = None):
        """Initialize an order for a unit or a city."""
        self.order_type = order_type
        self.unit = unit
        self.target_hex = target_hex  # For Move and Ranged
        self.city = city  # For Train
        self.unit_type = unit_type  # For Train


class OrderValidationError(Exception):
    """Exception raised when an order fails validation."""
    pass


def validate_order(order: Order, game_state: GameState) -> bool:
    """Validate if an order is legal for the active faction right now."""
    if game_state.game_over:
        raise OrderValidationError("Game is over")

    if order.order_type == OrderType.TRAIN:
        if order.city is None or order.city not in game_state.cities:
            raise OrderValidationError("Train order requires an existing city")
        if order.city.owner != game_state.active_faction:
            raise OrderValidationError(f"{order.city.name} does not belong to {game_state.active_faction}")
        if not order.unit_type:
            raise OrderValidationError("Train order requires a unit type")
        return True

    unit = order.unit
    if unit is None or unit not in game_state.units:
        raise OrderValidationError("Order requires a live unit")
    if unit.owner != game_state.active_faction:
        raise OrderValidationError(f"It is not {unit.owner}'s turn")
    if unit.moves_remaining <= 0:
        raise OrderValidationError(f"{unit.id} has no moves left this turn")
    if order.target_hex is None:
        raise OrderValidationError(f"{order.order_type.value} order requires a target hex")

    if order.order_type == OrderType.MOVE:
        if order.target_hex not in valid_moves(game_state, unit):
            raise OrderValidationError(f"{unit.id} cannot reach {order.target_hex}")
    elif order.order_type == OrderType.RANGED:
        if unit.unit_type.attack_range <= 1:
            raise OrderValidationError(f"{unit.unit_type.name} has no ranged attack")
        if order.target_hex not in attack_targets(game_state, unit):
            raise OrderValidationError(f"No visible enemy in range at {order.target_hex}")

    return True


def execute_order(order: Order, game_state: GameState) -> Dict[str, Any]:
    """
    Validate and carry out one order.

    Illegal orders change nothing and come back as a failure result.

    Returns:
        {'success': True, 'action': ..., 'result': ...} or {'success': False, 'error': reason}
    """
    try:
        validate_order(order, game_state)
    except OrderValidationError as e:
        return {'success': False, 'error': str(e)}

    if order.order_type == OrderType.TRAIN:
        result = queue_training(game_state, order.city, order.unit_type)
        if not result['success']:
            return result
        return {'success': True, 'action': 'train', 'result': result['order']}

    unit = order.unit
    target = order.target_hex

    if order.order_type == OrderType.RANGED:
        defender = game_state.unit_at(target)
        return {'success': True, 'action': 'ranged', 'result': resolve_ranged(unit, defender, game_state)}

    occupant = game_state.unit_at(target)
    if occupant is not None and occupant.owner != unit.owner:
        return {'success': True, 'action': 'melee', 'result': resolve_melee(unit, occupant, game_state)}

    left = moves_left_after(game_state, unit, target)
    origin = unit.position
    unit.position = target
    unit.moves_remaining = left if left is not None else 0
    log_event(game_state, f"{unit.id} moves from {origin} to {target}",
              type='move', unit_id=unit.id, origin=origin, position=target)

    city = game_state.city_at(target)
    if city is not None and city.owner != unit.owner:
        # Taking a city ends the unit's movement
        unit.moves_remaining = 0
        return {'success': True, 'action': 'capture', 'result': capture_city(unit, city, game_state)}

    update_all_visibility(game_state)
    return {'success': True, 'action': 'move', 'result': {'unit_id': unit.id, 'position': target,
                                                          'moves_remaining': unit.moves_remaining}}


def select_unit(game_state: GameState, position: Position) -> Optional[Unit]:
    """
    Select the active faction's unit on a tile.

    Selecting anything else leaves the current selection untouched.

    Returns:
        The selected unit, or None if the tile holds no unit of the active faction
    """
    if game_state.game_over:
        return None
    unit = game_state.unit_at(position)
    if unit is None or unit.owner != game_state.active_faction:
        return None
    game_state.selected_unit_id = unit.id
    return unit


def move_or_attack(game_state: GameState, unit: Unit, target: Position) -> Dict[str, Any]:
    """Move to target, melee the enemy on it, or capture the enemy city on it."""
    return execute_order(Order(OrderType.MOVE, unit, target_hex=target), game_state)


def ranged_attack(game_state: GameState, unit: Unit, target: Position) -> Dict[str, Any]:
    """Shoot the enemy on target."""
    return execute_order(Order(OrderType.RANGED, unit, target_hex=target), game_state)


def train_unit(game_state: GameState, city: City, type_key: str) -> Dict[str, Any]:
    """Queue a unit at one of the active faction's cities."""
    return execute_order(Order(OrderType.TRAIN, city=city, unit_type=type_key), game_state)
