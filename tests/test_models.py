import pytest

from models import TERRAIN, UNIT_TYPES, City, Unit, faction_color, get_unit_type


class TestCatalogs:
    def test_unit_stats(self):
        warrior = UNIT_TYPES["WARRIOR"]
        archer = UNIT_TYPES["ARCHER"]
        knight = UNIT_TYPES["KNIGHT"]

        assert (warrior.max_hp, warrior.attack, warrior.defense) == (70, 18, 14)
        assert (archer.max_hp, archer.attack, archer.defense) == (40, 14, 6)
        assert (knight.max_hp, knight.attack, knight.defense) == (50, 12, 10)
        assert knight.moves_per_turn == 2
        assert archer.attack_range == 2 and archer.ranged_only
        assert all(t.train_time == 3 for t in UNIT_TYPES.values())

    def test_only_knight_is_slowed(self):
        assert [k for k, t in UNIT_TYPES.items() if t.slowed_by_terrain] == ["KNIGHT"]

    def test_terrain_catalog(self):
        assert TERRAIN["water"].impassable
        assert TERRAIN["mountain"].impassable
        assert not TERRAIN["plains"].impassable
        assert TERRAIN["rainforest"].slows_movement
        assert [TERRAIN[k].defense_bonus for k in ("plains", "tundra", "rainforest", "mountain")] == [0, 4, 6, 8]

    @pytest.mark.parametrize("key", ["archer", "Archer", "ARCHER"])
    def test_lookup_is_case_insensitive(self, key):
        assert get_unit_type(key) is UNIT_TYPES["ARCHER"]

    def test_unknown_type(self):
        assert get_unit_type("DRAGON") is None
        assert get_unit_type("") is None


class TestUnit:
    def test_defaults_to_full_health(self):
        unit = Unit(id="player_u1", owner="player", unit_type=UNIT_TYPES["KNIGHT"], position=(0, 0))
        assert unit.hp == 50
        assert unit.attack == 12
        assert unit.is_alive

    def test_damage_floors_at_zero(self):
        unit = Unit(id="player_u1", owner="player", unit_type=UNIT_TYPES["ARCHER"], position=(0, 0))
        unit.take_damage(15)
        assert unit.hp == 25
        unit.take_damage(100)
        assert unit.hp == 0
        assert not unit.is_alive

    def test_moves(self):
        unit = Unit(id="ai1_u1", owner="ai1", unit_type=UNIT_TYPES["KNIGHT"], position=(0, 0))
        assert unit.moves_remaining == 0
        unit.reset_moves()
        assert unit.moves_remaining == 2
        unit.spend_moves(5)
        assert unit.moves_remaining == 0


def test_city_defaults():
    city = City(id="player_city", position=(0, 3), owner="player", name="Capital")
    assert city.color == "#ffffff"


def test_faction_colors():
    assert faction_color("player") != faction_color("ai1")
    assert faction_color("ai9") == "#bdc3c7"
