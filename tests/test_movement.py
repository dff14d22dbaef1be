import pytest

from movement import attack_targets, moves_left_after, threat_reach, valid_moves
from tests.conftest import make_board, place


class TestWarrior:
    def test_one_ring_on_open_ground(self, board):
        warrior = place(board, "WARRIOR", (0, 0), "player")
        assert valid_moves(board, warrior) == set(board.neighbors((0, 0)))

    def test_impassable_excluded(self):
        board = make_board(terrain={(1, 0): "water", (0, 1): "mountain"})
        warrior = place(board, "WARRIOR", (0, 0), "player")
        moves = valid_moves(board, warrior)
        assert (1, 0) not in moves
        assert (0, 1) not in moves
        assert len(moves) == 4

    def test_rainforest_does_not_slow_infantry(self):
        board = make_board(terrain={(1, 0): "rainforest"})
        warrior = place(board, "WARRIOR", (0, 0), "player")
        assert (1, 0) in valid_moves(board, warrior)
        assert moves_left_after(board, warrior, (1, 0)) == 0

    def test_no_moves_no_targets(self, board):
        warrior = place(board, "WARRIOR", (0, 0), "player", moves=0)
        assert valid_moves(board, warrior) == set()
        assert moves_left_after(board, warrior, (1, 0)) is None

    def test_friendly_tile_is_not_a_destination(self, board):
        warrior = place(board, "WARRIOR", (0, 0), "player")
        place(board, "ARCHER", (1, 0), "player")
        assert (1, 0) not in valid_moves(board, warrior)

    def test_enemy_tile_is_a_melee_target(self, board):
        warrior = place(board, "WARRIOR", (0, 0), "player")
        place(board, "ARCHER", (1, 0), "ai1")
        assert (1, 0) in valid_moves(board, warrior)


class TestKnight:
    def test_two_rings_on_open_ground(self, board):
        knight = place(board, "KNIGHT", (0, 0), "player")
        moves = valid_moves(board, knight)
        assert len(moves) == 18
        assert moves_left_after(board, knight, (1, 0)) == 1
        assert moves_left_after(board, knight, (2, 0)) == 0

    def test_rainforest_ends_movement(self):
        board = make_board(terrain={(1, 0): "rainforest"})
        knight = place(board, "KNIGHT", (0, 0), "player")
        moves = valid_moves(board, knight)
        assert (1, 0) in moves
        assert moves_left_after(board, knight, (1, 0)) == 0
        # (2, 0) is only reachable through (1, 0)
        assert (2, 0) not in moves

    def test_plains_then_rainforest(self):
        board = make_board(terrain={(2, 0): "rainforest"})
        knight = place(board, "KNIGHT", (0, 0), "player")
        assert (2, 0) in valid_moves(board, knight)
        assert moves_left_after(board, knight, (2, 0)) == 0

    def test_passes_through_friends(self, board):
        knight = place(board, "KNIGHT", (0, 0), "player")
        place(board, "WARRIOR", (1, 0), "player")
        moves = valid_moves(board, knight)
        assert (1, 0) not in moves
        assert (2, 0) in moves

    def test_enemies_block(self, board):
        knight = place(board, "KNIGHT", (0, 0), "player")
        place(board, "WARRIOR", (1, 0), "ai1")
        moves = valid_moves(board, knight)
        assert (1, 0) in moves
        assert (2, 0) not in moves

    def test_enemy_city_stops_the_frontier(self):
        board = make_board(cities={"player": (0, 3), "ai1": (1, 0)})
        knight = place(board, "KNIGHT", (0, 0), "player")
        moves = valid_moves(board, knight)
        assert (1, 0) in moves
        assert (2, 0) not in moves

    def test_spent_knight_keeps_threat_reach(self, board):
        knight = place(board, "KNIGHT", (0, 0), "ai1", moves=0)
        assert valid_moves(board, knight) == set()
        assert len(threat_reach(board, knight)) == 18


class TestArcher:
    def test_cannot_walk_into_enemies(self, board):
        archer = place(board, "ARCHER", (0, 0), "player")
        place(board, "WARRIOR", (1, 0), "ai1")
        assert (1, 0) not in valid_moves(board, archer)

    @pytest.mark.parametrize("enemy_pos, in_range", [
        ((1, 0), True),
        ((2, -1), True),
        ((0, 2), True),
        ((3, -1), False),
    ])
    def test_range_two(self, board, enemy_pos, in_range):
        archer = place(board, "ARCHER", (0, 0), "player")
        place(board, "WARRIOR", enemy_pos, "ai1")
        assert (enemy_pos in attack_targets(board, archer)) == in_range

    def test_friends_are_not_targets(self, board):
        archer = place(board, "ARCHER", (0, 0), "player")
        place(board, "WARRIOR", (1, 0), "player")
        assert attack_targets(board, archer) == set()

    def test_needs_sight(self):
        board = make_board(config={"vision_range": 1})
        archer = place(board, "ARCHER", (0, 0), "player")
        place(board, "WARRIOR", (2, 0), "ai1")
        assert attack_targets(board, archer) == set()

    def test_no_moves_no_shot(self, board):
        archer = place(board, "ARCHER", (0, 0), "player", moves=0)
        place(board, "WARRIOR", (1, 0), "ai1")
        assert attack_targets(board, archer) == set()

    def test_melee_units_have_no_ranged_targets(self, board):
        warrior = place(board, "WARRIOR", (0, 0), "player")
        place(board, "WARRIOR", (1, 0), "ai1")
        assert attack_targets(board, warrior) == set()
