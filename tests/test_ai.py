import ai
from movement import valid_moves
from orders import OrderType
from tests.conftest import AI_CITY, PLAYER_CITY, make_board, place


class FixedRng:
    """Stand-in random source: fixed roll, always picks the first choice."""

    def __init__(self, roll):
        self.roll = roll

    def random(self):
        return self.roll

    def choice(self, seq):
        return seq[0]


def ai_turn(board, faction_id="ai1"):
    board.phase = "ai"
    board.active_faction = faction_id
    return board


class TestThreats:
    def test_adjacent_enemy_threatens_city(self, board):
        enemy = place(board, "WARRIOR", (0, -2), "player")
        threats = ai.find_threats(board, "ai1")
        assert [(c.id, e.id) for c, e in threats] == [("ai1_city", enemy.id)]

    def test_knight_threatens_from_two_tiles(self, board):
        place(board, "KNIGHT", (0, -1), "player")
        assert len(ai.find_threats(board, "ai1")) == 1

    def test_distant_enemy_is_no_threat(self, board):
        place(board, "WARRIOR", (0, 0), "player")
        assert ai.find_threats(board, "ai1") == []


class TestPriorities:
    def test_capture_before_defend(self):
        board = ai_turn(make_board(cities={"player": (2, 0), "ai1": (-2, 0)}))
        knight = place(board, "KNIGHT", (0, 0), "ai1")
        place(board, "WARRIOR", (-3, 0), "player")  # next to the empty AI city

        defend = ai.rule_defend(board, knight, valid_moves(board, knight))
        assert defend is not None
        assert defend.target_hex == (-2, 0)

        rule, order = ai.decide(board, knight)

        assert rule == "capture"
        assert order.target_hex == (2, 0)

    def test_defend_empty_threatened_city(self, board):
        ai_turn(board)
        guard = place(board, "WARRIOR", (1, -3), "ai1")
        place(board, "WARRIOR", (0, -2), "player")

        rule, order = ai.decide(board, guard)

        assert rule == "defend"
        assert order.target_hex == AI_CITY

    def test_counter_attack_when_city_is_garrisoned(self, board):
        ai_turn(board)
        guard = place(board, "WARRIOR", AI_CITY, "ai1")
        enemy = place(board, "WARRIOR", (0, -2), "player")

        rule, order = ai.decide(board, guard)

        assert rule == "counter"
        assert order.order_type == OrderType.MOVE
        assert order.target_hex == enemy.position

    def test_archer_counters_with_ranged(self, board):
        ai_turn(board)
        place(board, "WARRIOR", AI_CITY, "ai1")
        archer = place(board, "ARCHER", (1, -2), "ai1")
        place(board, "WARRIOR", (-1, -2), "player")

        rule, order = ai.decide(board, archer)

        assert rule == "counter"
        assert order.order_type == OrderType.RANGED
        assert order.target_hex == (-1, -2)

    def test_attack_weakest(self, board):
        ai_turn(board)
        archer = place(board, "ARCHER", (0, 0), "ai1")
        place(board, "WARRIOR", (2, -2), "player")
        place(board, "WARRIOR", (0, 2), "player", hp=20)

        rule, order = ai.decide(board, archer)

        assert rule == "attack"
        assert order.order_type == OrderType.RANGED
        assert order.target_hex == (0, 2)

    def test_advance_on_enemy_city(self, board):
        ai_turn(board)
        walker = place(board, "WARRIOR", (0, -1), "ai1")

        rule, order = ai.decide(board, walker)

        assert rule == "advance"
        assert order.target_hex == (0, 0)

    def test_fallback_toward_known_unit(self):
        board = ai_turn(make_board(config={"omniscient_ai": False}))
        walker = place(board, "WARRIOR", (0, -2), "ai1")
        place(board, "WARRIOR", (1, -1), "player")

        rule, order = ai.decide(board, walker)

        assert rule == "fallback"
        assert order.target_hex == (0, -1)

    def test_pass_when_nothing_is_known(self):
        board = ai_turn(make_board(config={"omniscient_ai": False}))
        walker = place(board, "WARRIOR", (0, -2), "ai1")

        assert ai.decide(board, walker) == (None, None)
        assert ai.play_units(board, "ai1") == 0
        assert board.log[-1]["type"] == "ai_pass"
        assert walker.position == (0, -2)

    def test_never_steps_onto_an_enemy_to_approach(self, board):
        ai_turn(board)
        walker = place(board, "WARRIOR", (0, -1), "ai1")
        place(board, "WARRIOR", (0, 0), "player", moves=0)

        # (0, 0) is the only tile closer to the capital, and it is held
        moves = valid_moves(board, walker)
        assert (0, 0) in moves
        assert ai.step_toward(board, walker, PLAYER_CITY, moves) is None

    def test_other_ai_factions_are_enemies(self):
        board = ai_turn(make_board(cities={"player": PLAYER_CITY, "ai1": AI_CITY, "ai2": (-3, 0)}))
        attacker = place(board, "WARRIOR", (2, -2), "ai1")
        place(board, "ARCHER", (3, -2), "ai2", hp=5)

        rule, order = ai.decide(board, attacker)

        assert rule == "attack"
        assert order.target_hex == (3, -2)


class TestPlayUnits:
    def test_each_unit_acts_once(self, board):
        ai_turn(board)
        a = place(board, "WARRIOR", (0, -1), "ai1")
        b = place(board, "WARRIOR", (1, -2), "ai1")

        assert ai.play_units(board, "ai1") == 2
        assert a.moves_remaining == 0 and b.moves_remaining == 0
        assert [e["rule"] for e in board.log if e["type"] == "ai_action"] == ["advance", "advance"]

    def test_stops_once_game_is_won(self, board):
        ai_turn(board)
        place(board, "KNIGHT", (0, 1), "ai1")
        second = place(board, "WARRIOR", (-1, -1), "ai1")

        ai.play_units(board, "ai1")

        assert board.game_over and board.outcome == "defeat"
        assert second.moves_remaining == 1


class TestTrainingRoll:
    def test_roll_below_chance_queues(self, board):
        ai_turn(board)
        queued = ai.maybe_queue_training(board, "ai1", rng=FixedRng(0.1))
        assert queued == "ARCHER"
        assert board.training_order_for("ai1_city").unit_type.key == "ARCHER"

    def test_roll_above_chance_does_nothing(self, board):
        ai_turn(board)
        assert ai.maybe_queue_training(board, "ai1", rng=FixedRng(0.9)) is None
        assert board.training_orders == []

    def test_busy_city_does_nothing(self, board):
        ai_turn(board)
        ai.maybe_queue_training(board, "ai1", rng=FixedRng(0.0))
        assert ai.maybe_queue_training(board, "ai1", rng=FixedRng(0.0)) is None
        assert len(board.training_orders) == 1
