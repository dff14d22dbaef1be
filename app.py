from flask import Flask, request, jsonify
from flask_cors import CORS
from state import initialize_game, get_game_summary, GameState
from movement import valid_moves, attack_targets
from orders import move_or_attack, ranged_attack, select_unit, train_unit
from upkeep import end_player_turn
from vision import visible_log
from typing import Any, Dict, Optional, Tuple

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, GameState] = {}  # In-memory storage for game states


def _parse_hex(data: Any) -> Optional[Tuple[int, int]]:
    """Read a {'q': .., 'r': ..} object into a position tuple."""
    if not isinstance(data, dict) or 'q' not in data or 'r' not in data:
        return None
    try:
        return (int(data['q']), int(data['r']))
    except (ValueError, TypeError):
        return None


def _combat_json(result: Dict[str, Any]) -> Dict[str, Any]:
    """Make an order result JSON-friendly (positions as q/r objects)."""
    out = {}
    for key, value in result.items():
        if key.endswith('position') and isinstance(value, tuple):
            out[key] = {'q': value[0], 'r': value[1]}
        else:
            out[key] = value
    return out


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new game with the provided seed and number of AI opponents."""
    try:
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            seed = int(data.get('seed', 42))
            ai_count = data.get('ai_count')
            ai_count = int(ai_count) if ai_count is not None else None
        except (ValueError, TypeError):
            return jsonify({'error': 'seed and ai_count must be integers'}), 400

        if ai_count is not None and not 1 <= ai_count <= 3:
            return jsonify({'error': 'ai_count must be between 1 and 3'}), 400

        game_state = initialize_game(seed, ai_count=ai_count)
        games[game_state.game_id] = game_state

        return jsonify({'game_id': game_state.game_id})

    except Exception as e:
        app.logger.exception("Failed to create game")
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the game as the player sees it through the fog."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(get_game_summary(games[game_id], viewer='player'))


@app.route('/api/game/<game_id>/unit/<unit_id>/options', methods=['GET'])
def get_unit_options(game_id: str, unit_id: str):
    """List the move and ranged-attack targets of one of the player's units."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404

    game_state = games[game_id]
    unit = game_state.get_unit_by_id(unit_id)
    if unit is None or unit.owner != 'player':
        return jsonify({'error': f'Unit with id {unit_id} not found'}), 404

    return jsonify({
        'unit_id': unit.id,
        'moves': [{'q': q, 'r': r} for q, r in sorted(valid_moves(game_state, unit))],
        'attack_targets': [{'q': q, 'r': r} for q, r in sorted(attack_targets(game_state, unit))],
    })


@app.route('/api/game/<game_id>/action', methods=['POST'])
def submit_action(game_id: str):
    """
    Submit one player action.

    Body: {'action': 'move' | 'ranged' | 'select' | 'train', ...}
    move/ranged need 'unit_id' and 'target_hex'; select needs 'hex';
    train needs 'city_id' and 'unit_type'.
    """
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400

        action = data.get('action')
        if game_state.game_over:
            return jsonify({'error': 'Game is over'}), 400
        if game_state.active_faction != 'player':
            return jsonify({'error': 'It is not the player\'s turn'}), 400

        if action == 'select':
            position = _parse_hex(data.get('hex'))
            if position is None:
                return jsonify({'error': 'hex must be an object with q and r coordinates'}), 400
            unit = select_unit(game_state, position)
            return jsonify({'selected': unit.id if unit else None})

        if action == 'train':
            city = game_state.get_city_by_id(data.get('city_id', ''))
            if city is None:
                return jsonify({'error': f"City with id {data.get('city_id')} not found"}), 400
            result = train_unit(game_state, city, data.get('unit_type', ''))
            if not result['success']:
                return jsonify({'error': result['error']}), 400
            order = result['result']
            return jsonify({'action': 'train', 'city_id': order.city_id,
                            'unit_type': order.unit_type.key, 'turns_left': order.turns_left})

        if action in ('move', 'ranged'):
            unit = game_state.get_unit_by_id(data.get('unit_id', ''))
            if unit is None or unit.owner != 'player':
                return jsonify({'error': f"Unit with id {data.get('unit_id')} not found"}), 400
            target = _parse_hex(data.get('target_hex'))
            if target is None:
                return jsonify({'error': 'target_hex must be an object with q and r coordinates'}), 400

            if action == 'move':
                result = move_or_attack(game_state, unit, target)
            else:
                result = ranged_attack(game_state, unit, target)
            if not result['success']:
                return jsonify({'error': result['error']}), 400

            return jsonify({
                'action': result['action'],
                'result': _combat_json(result['result']),
                'state': get_game_summary(game_state, viewer='player'),
            })

        return jsonify({'error': f'Invalid action: {action}'}), 400

    except Exception as e:
        app.logger.exception("Failed to process action")
        return jsonify({'error': f'Failed to process action: {str(e)}'}), 500


@app.route('/api/game/<game_id>/end_turn', methods=['POST'])
def end_turn(game_id: str):
    """End the player's turn; the AI factions play and the turn advances."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        results = end_player_turn(game_state)
        if not results['success']:
            return jsonify({'error': results['error']}), 400

        return jsonify({
            'turn': results['turn'],
            'phase': results['phase'],
            'game_over': results['game_over'],
            'outcome': results['outcome'],
            'winner': results['winner'],
            'ai_turns': [
                {'faction_id': t['faction_id'], 'units_acted': t['units_acted'], 'queued': t['queued']}
                for t in results['ai_turns']
            ],
            'state': get_game_summary(game_state, viewer='player'),
        })

    except Exception as e:
        app.logger.exception("Failed to end turn")
        return jsonify({'error': f'Failed to end turn: {str(e)}'}), 500


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the game log as the player is allowed to see it."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404

    game_state = games[game_id]
    return jsonify({
        'game_id': game_id,
        'turn': game_state.turn,
        'phase': game_state.phase,
        'log': visible_log(game_state, 'player'),
    })


if __name__ == '__main__':
    app.run(debug=True)
