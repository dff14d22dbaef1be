"""
CLI play mode for Hexfront.

Human vs AI on the hex map. ASCII renderer with fog of war, command entry,
event display, full game loop.

Usage: python play_cli.py [seed] [ai_count]
"""

import random
import sys
from typing import List, Optional

from models import UNIT_TYPES, Unit
from movement import attack_targets, valid_moves
from orders import move_or_attack, ranged_attack, train_unit
from state import GameState, initialize_game
from upkeep import end_player_turn
from vision import VisibilityState, visibility_state, visible_log

TERRAIN_CHAR = {
    "plains": ".",
    "tundra": ",",
    "rainforest": "\"",
    "water": "~",
    "mountain": "^",
}


# ---------------------------------------------------------------------------
# ASCII Hex Renderer
# ---------------------------------------------------------------------------


def tile_char(game: GameState, pos) -> str:
    """Display character for one tile as the player sees it."""
    state = visibility_state(game, "player", pos)
    if state == VisibilityState.UNSEEN:
        return " "

    if state == VisibilityState.VISIBLE:
        unit = game.unit_at(pos)
        if unit is not None:
            icon = unit.unit_type.icon
            return icon.upper() if unit.owner == "player" else icon.lower()

    city = game.city_at(pos)
    if city is not None:
        return "C" if city.owner == "player" else "E"
    return TERRAIN_CHAR.get(game.tiles[pos].terrain.key, "?")


def render_board(game: GameState):
    """Render the board from the player's perspective, one text row per r."""
    # Axial rows shift half a hex per row; square rows don't
    def column(pos):
        return 2 * pos[0] + pos[1] if game.layout == "hex" else 2 * pos[0]

    min_col = min(column(p) for p in game.tiles)
    rows = sorted({p[1] for p in game.tiles})

    print()
    for r in rows:
        line = [" "] * (max(column(p) for p in game.tiles) - min_col + 1)
        for pos in game.tiles:
            if pos[1] == r:
                line[column(pos) - min_col] = tile_char(game, pos)
        print(f"  r={r:>3}  " + "".join(line).rstrip())
    print()
    print("  Legend: W/A/K yours, w/a/k enemy, C your city, E enemy city")
    print("          . plains  , tundra  \" rainforest  ~ water  ^ mountain")
    print()


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def show_status(game: GameState):
    """Show turn info, the board, the player's units and cities."""
    print(f"\n=== TURN {game.turn} ===")
    render_board(game)

    print("Your units:")
    for unit in game.units_of("player"):
        print(f"  {unit.id:<12} {unit.unit_type.name:<8} hp={unit.hp}/{unit.unit_type.max_hp}"
              f"  pos=({unit.position[0]},{unit.position[1]})  moves={unit.moves_remaining}")

    print("Your cities:")
    for city in game.cities_of("player"):
        order = game.training_order_for(city.id)
        training = f"  training {order.unit_type.name} ({order.turns_left} turns)" if order else "  idle"
        print(f"  {city.id:<12} {city.name} at ({city.position[0]},{city.position[1]}){training}")


def show_unit_info(game: GameState, unit: Unit):
    moves = sorted(valid_moves(game, unit))
    targets = sorted(attack_targets(game, unit))
    print(f"  {unit.id}: {unit.unit_type.name} atk={unit.attack} def={unit.unit_type.defense}"
          f" range={unit.unit_type.attack_range}")
    print(f"    can move to: {', '.join(f'({q},{r})' for q, r in moves) or 'nowhere'}")
    if unit.unit_type.attack_range > 1:
        print(f"    can shoot:   {', '.join(f'({q},{r})' for q, r in targets) or 'nothing'}")


def show_events(game: GameState, since: int) -> int:
    """Print log entries added since index `since`; returns the new index."""
    for entry in visible_log(game, "player", game.log[since:]):
        print(f"  [t{entry['turn']}] {entry['event']}")
    return len(game.log)


# ---------------------------------------------------------------------------
# Command Entry
# ---------------------------------------------------------------------------


def find_player_unit(game: GameState, token: str) -> Optional[Unit]:
    """Accept 'player_u3' or the short form 'u3'."""
    unit_id = token if token.startswith("player_") else f"player_{token}"
    unit = game.get_unit_by_id(unit_id)
    if unit is None or unit.owner != "player":
        return None
    return unit


def parse_target(tokens: List[str]):
    try:
        return int(tokens[0]), int(tokens[1])
    except (ValueError, IndexError):
        return None


def print_help():
    print("\nCommands:")
    print("  move <unit> <q> <r>    - move, melee the enemy there, or take the city there")
    print("  shoot <unit> <q> <r>   - ranged attack (archers)")
    print("  train <city> <type>    - queue a unit: " + ", ".join(sorted(UNIT_TYPES)))
    print("  info <unit>            - list a unit's moves and targets")
    print("  status                 - redraw the board")
    print("  end                    - end your turn")
    print("  quit                   - leave the game")
    print("  (unit = u1, u2 ... ; city = player_city or any city id you own)")


def player_turn(game: GameState) -> bool:
    """
    Read commands until the player ends the turn.

    Returns:
        False if the player quit
    """
    log_index = len(game.log)
    while not game.game_over:
        raw = input("cmd> ").strip()
        if not raw:
            continue
        tokens = raw.split()
        cmd = tokens[0].lower()

        if cmd == "end":
            return True
        if cmd == "quit":
            return False
        if cmd == "help":
            print_help()
            continue
        if cmd == "status":
            show_status(game)
            continue

        if cmd == "train":
            if len(tokens) < 3:
                print("  Usage: train <city> <type>")
                continue
            city = game.get_city_by_id(tokens[1])
            if city is None:
                print(f"  City {tokens[1]} not found.")
                continue
            result = train_unit(game, city, tokens[2])
            if not result["success"]:
                print(f"  Error: {result['error']}")
            log_index = show_events(game, log_index)
            continue

        if cmd in ("move", "shoot", "info"):
            if len(tokens) < 2:
                print(f"  Usage: {cmd} <unit>{'' if cmd == 'info' else ' <q> <r>'}")
                continue
            unit = find_player_unit(game, tokens[1])
            if unit is None:
                print(f"  Unit {tokens[1]} not found.")
                continue
            if cmd == "info":
                show_unit_info(game, unit)
                continue

            target = parse_target(tokens[2:])
            if target is None:
                print("  q and r must be integers.")
                continue
            if cmd == "move":
                result = move_or_attack(game, unit, target)
            else:
                result = ranged_attack(game, unit, target)
            if not result["success"]:
                print(f"  Error: {result['error']}")
            log_index = show_events(game, log_index)
            continue

        print(f"  Unknown command: {cmd} (try 'help')")

    return True


# ---------------------------------------------------------------------------
# Main Game Loop
# ---------------------------------------------------------------------------


def main():
    print("=" * 50)
    print("  HEXFRONT  -  CLI Play Mode")
    print("=" * 50)

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else random.randint(0, 99999)
    ai_count = int(sys.argv[2]) if len(sys.argv) > 2 else None
    print(f"\nMap seed: {seed}")

    game = initialize_game(seed, ai_count=ai_count)
    max_turns = game.config.get("max_turns", 200)
    print_help()

    quit_early = False
    while not game.game_over and game.turn <= max_turns:
        show_status(game)
        if not player_turn(game):
            quit_early = True
            break
        if game.game_over:
            break

        log_index = len(game.log)
        results = end_player_turn(game)
        if not results["success"]:
            print(f"  Error: {results['error']}")
            break
        print("\n--- Enemy turn ---")
        show_events(game, log_index)

    # --- End ---
    print("\n" + "=" * 50)
    if game.outcome == "victory":
        print("  VICTORY! Every enemy city has fallen.")
    elif game.outcome == "defeat":
        print(f"  DEFEAT. {game.winner or 'The enemy'} took your last city.")
    elif quit_early:
        print("  Game abandoned.")
    else:
        print("  Game ended (turn limit reached). No winner.")
    print(f"  Final turn: {game.turn}")
    print("=" * 50)


if __name__ == "__main__":
    main()
