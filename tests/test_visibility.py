from sim.state import Position
from sim.visibility import FogOfWar, VISION_RADIUS_SQ


CORRIDOR = "@ r          #"


def test_radius_is_inclusive():
    fog = FogOfWar()
    origin = Position(0, 0)
    assert VISION_RADIUS_SQ == 25
    assert fog.can_see(origin, 3, 4)
    assert fog.can_see(origin, 5, 0)
    assert not fog.can_see(origin, 5, 1)


def test_far_wall_stays_hidden_near_enemy_shows(make_game):
    game = make_game(CORRIDOR)
    frame = game.frame()
    assert frame.walls == []
    assert [e.pos.as_tuple() for e in frame.enemies] == [(2, 0)]


def test_discovered_walls_persist_but_enemies_do_not(make_game):
    text = "\n".join([
        "#r        @",
    ])
    game = make_game(text)
    fog = game.fog
    level = game.level

    assert fog.reveal(level, Position(1, 0)) == 1
    assert fog.is_discovered(0, 0)

    far = Position(10, 0)
    assert fog.reveal(level, far) == 0
    assert [w.pos.as_tuple() for w in fog.discovered_walls(level)] == [(0, 0)]
    assert fog.visible_enemies(level, far) == []


def test_potions_only_visible_in_range(make_game):
    game = make_game("@    K     K\n")
    frame = game.frame()
    assert [p.pos.as_tuple() for p in frame.potions] == [(5, 0)]
