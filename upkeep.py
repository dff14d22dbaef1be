"""
Turn sequencing for Hexfront.

A round is: the player's turn, then one turn for each living AI faction in
order, then the turn advance (counter + 1, every unit's movement restored,
vision recomputed) back to the player. Game over can happen at any point
and stops the sequence where it stands; after that nothing advances.

Phases: 'player' -> 'ai' (once per AI faction) -> 'advance' -> 'player',
with 'game_over' terminal.
"""

from typing import Any, Dict

import ai
from production import process_training
from state import GameState, log_event
from vision import update_all_visibility


def end_player_turn(game_state: GameState) -> Dict[str, Any]:
    """
    Finish the player's turn and play the rest of the round.

    The player's training orders tick first, then each living AI faction
    takes its turn, then the turn advances (unless the game ended).

    Args:
        game_state: Current game state

    Returns:
        Dictionary with the player's training results, one entry per AI
        turn played and the resulting turn/phase
    """
    if game_state.game_over:
        return {'success': False, 'error': 'Game is over'}
    if game_state.phase != 'player':
        return {'success': False, 'error': f"Cannot end the player's turn during phase '{game_state.phase}'"}

    log_event(game_state, f"Player ends turn {game_state.turn}", type='turn_ended', faction_id='player')
    game_state.selected_unit_id = None

    results: Dict[str, Any] = {
        'success': True,
        'player_training': process_training(game_state, 'player'),
        'ai_turns': [],
    }

    for faction in list(game_state.living_ai_factions()):
        if game_state.game_over:
            break
        if faction.eliminated:
            continue
        results['ai_turns'].append(run_ai_turn(game_state, faction.id))

    if not game_state.game_over:
        advance_turn(game_state)

    results.update({
        'turn': game_state.turn,
        'phase': game_state.phase,
        'game_over': game_state.game_over,
        'outcome': game_state.outcome,
        'winner': game_state.winner,
    })
    return results


def run_ai_turn(game_state: GameState, faction_id: str) -> Dict[str, Any]:
    """
    Play one AI faction's turn.

    Training ticks first (new units cannot act this turn), then the
    once-per-turn training roll, then one decision per unit with movement.

    Args:
        game_state: Current game state
        faction_id: AI faction to play

    Returns:
        Dictionary summarising the turn
    """
    game_state.phase = 'ai'
    game_state.active_faction = faction_id

    training = process_training(game_state, faction_id)
    queued = ai.maybe_queue_training(game_state, faction_id) if not game_state.game_over else None
    acted = ai.play_units(game_state, faction_id) if not game_state.game_over else 0

    log_event(game_state, f"{faction_id} ends turn {game_state.turn}", type='turn_ended',
              faction_id=faction_id, units_acted=acted)
    return {
        'faction_id': faction_id,
        'training': training,
        'queued': queued,
        'units_acted': acted,
    }


def advance_turn(game_state: GameState) -> None:
    """
    Start the next round: bump the turn counter, restore every unit's
    movement, recompute vision and hand control back to the player.

    Args:
        game_state: Current game state

    Raises:
        ValueError: If the game is already over
    """
    if game_state.game_over:
        raise ValueError("Cannot advance the turn after the game is over")

    game_state.phase = 'advance'
    old_turn = game_state.turn
    game_state.turn += 1
    for unit in game_state.units:
        unit.reset_moves()
    update_all_visibility(game_state)

    game_state.phase = 'player'
    game_state.active_faction = 'player'
    log_event(game_state, f"Turn {old_turn} completed, advancing to turn {game_state.turn}",
              type='turn_advanced', previous_turn=old_turn, new_turn=game_state.turn)
