"""
Fog of war for Hexfront.

Each faction has a set of currently visible tiles and a set of explored
tiles. Visible is rebuilt from scratch as the union of a fixed-radius disk
around every live unit and city the faction owns; explored only ever grows.

Only the player's fog is shown. AI factions are tracked the same way, but
when the 'omniscient_ai' config flag is on (the default) they reason with
full information and can_see() ignores their fog.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from models import FactionVision
from state import GameState

Position = Tuple[int, int]

# Everyone learns of these whatever their fog
PUBLIC_EVENT_TYPES = {'game_started', 'turn_advanced', 'faction_eliminated', 'game_over'}


class VisibilityState(Enum):
    UNSEEN = "unseen"
    EXPLORED = "explored"  # Seen before, not in sight now
    VISIBLE = "visible"


def recompute_visibility(game_state: GameState, faction_id: str) -> Set[Position]:
    """
    Rebuild a faction's visible set and extend its explored set.

    Args:
        game_state: Current game state
        faction_id: Observing faction

    Returns:
        The faction's new visible set
    """
    vision = game_state.vision.setdefault(faction_id, FactionVision())
    vision_range = game_state.config.get('vision_range', 2)

    visible: Set[Position] = set()
    sources = [u.position for u in game_state.units_of(faction_id)]
    sources += [c.position for c in game_state.cities_of(faction_id)]
    for source in sources:
        visible.update(game_state.positions_within(source, vision_range))

    vision.visible = visible
    vision.explored |= visible
    return visible


def update_all_visibility(game_state: GameState) -> None:
    """Recompute vision for every faction, eliminated ones included."""
    for faction in game_state.factions:
        recompute_visibility(game_state, faction.id)


def visibility_state(game_state: GameState, faction_id: str, position: Position) -> VisibilityState:
    """Three-valued fog state of a tile for a faction."""
    vision = game_state.vision.get(faction_id)
    if vision is None:
        return VisibilityState.UNSEEN
    if position in vision.visible:
        return VisibilityState.VISIBLE
    if position in vision.explored:
        return VisibilityState.EXPLORED
    return VisibilityState.UNSEEN


def is_omniscient(game_state: GameState, faction_id: str) -> bool:
    return game_state.config.get('omniscient_ai', True) and game_state.is_ai(faction_id)


def can_see(game_state: GameState, faction_id: str, position: Position) -> bool:
    """Whether a faction currently has sight of a tile for targeting purposes."""
    if is_omniscient(game_state, faction_id):
        return True
    return visibility_state(game_state, faction_id, position) == VisibilityState.VISIBLE


def has_explored(game_state: GameState, faction_id: str, position: Position) -> bool:
    """Whether a faction knows what is on a tile that does not move (terrain, cities)."""
    if is_omniscient(game_state, faction_id):
        return True
    return visibility_state(game_state, faction_id, position) != VisibilityState.UNSEEN


def _involves(entry: Dict[str, Any], faction_id: str) -> bool:
    if faction_id in (entry.get('faction_id'), entry.get('owner'),
                      entry.get('previous_owner'), entry.get('new_owner')):
        return True
    prefix = f"{faction_id}_u"
    return any(str(entry.get(key) or '').startswith(prefix)
               for key in ('unit_id', 'attacker_id', 'defender_id', 'killer_id'))


def visible_log(game_state: GameState, faction_id: str,
                entries: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    """
    The log entries a faction is allowed to know about.

    A faction learns of public events, of anything its own units or cities
    take part in, and of events on tiles it had in sight when they happened.
    Another faction's planning and production stay hidden.

    Args:
        game_state: Current game state
        faction_id: Reading faction
        entries: Log slice to filter (defaults to the whole log)

    Returns:
        The filtered entries, in log order
    """
    if entries is None:
        entries = game_state.log
    return [
        entry for entry in entries
        if entry.get('type') in PUBLIC_EVENT_TYPES
        or _involves(entry, faction_id)
        or faction_id in entry.get('seen_by', ())
    ]
