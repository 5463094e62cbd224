import numpy as np

from sim.level import parse_level
from sim.mechanics import (
    move_player, resolve_combat, resolve_exchange, try_move_enemy,
    is_blocked, squared_distance, format_combat_line,
)
from sim.state import GameState, Position, make_player
from tests.factories import set_dice, ROOM_WITH_RAT, OPEN_ROOM


def _state(text, seed=0):
    rng = np.random.default_rng(seed)
    level = parse_level(text, rng)
    start = level.player_start
    return GameState(level=level, player=make_player(start.x, start.y, rng))


def test_squared_distance():
    assert squared_distance(Position(0, 0), Position(3, 4)) == 25


def test_wall_blocks_player():
    state = _state("#@ \n")
    result = move_player(state, -1, 0)
    assert result["action"] == "blocked"
    assert state.player.pos.as_tuple() == (1, 0)


def test_out_of_bounds_is_noop():
    state = _state("@ \n")
    assert move_player(state, 0, -1)["action"] == "out_of_bounds"
    assert move_player(state, -1, 0)["action"] == "out_of_bounds"
    assert state.player.pos.as_tuple() == (0, 0)


def test_player_moves_onto_floor():
    state = _state("@  \n")
    result = move_player(state, 1, 0)
    assert result["action"] == "move"
    assert state.player.pos.as_tuple() == (1, 0)


def test_wait_does_not_move():
    state = _state("@  \n")
    assert move_player(state, 0, 0)["action"] == "wait"
    assert state.player.pos.as_tuple() == (0, 0)


def test_combat_damage_is_attack_minus_defence():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=7, defence=0)
    set_dice(rat, attack=0, defence=3)

    result = resolve_combat(state.player, rat)
    assert result["damage"] == 4
    assert not result["blocked"]
    assert rat.hp == 1


def test_combat_blocked_leaves_defender_untouched():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=2, defence=0)
    set_dice(rat, attack=0, defence=5)

    result = resolve_combat(state.player, rat)
    assert result["blocked"]
    assert result["damage"] == 0
    assert rat.hp == 5
    assert "blocked" in format_combat_line(result)


def test_negative_rolls_are_clamped_to_zero():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=-4, defence=0)
    set_dice(rat, attack=0, defence=-10)

    result = resolve_combat(state.player, rat)
    assert result["attack_roll"] == 0
    assert result["defence_roll"] == 0
    assert rat.hp == 5


def test_combat_line_floors_hp_for_display():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=20, defence=0)
    set_dice(rat, attack=0, defence=0)

    result = resolve_combat(state.player, rat)
    assert rat.hp == -15
    assert format_combat_line(result).endswith("Rat HP 0")


def test_player_attack_kills_rat_without_retaliation():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=10, defence=0)
    set_dice(rat, attack=50, defence=0)

    result = move_player(state, 0, -1)

    assert result["action"] == "attack"
    assert result["enemy_killed"]
    assert len(result["exchanges"]) == 1
    assert state.kills == 1
    assert state.level.enemies == []
    assert state.player.hp == 100
    # The player never steps onto the enemy's tile
    assert state.player.pos.as_tuple() == (2, 2)


def test_surviving_rat_retaliates_once():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=3, defence=2)
    set_dice(rat, attack=7, defence=0)

    result = move_player(state, 0, -1)

    assert len(result["exchanges"]) == 2
    assert not result["enemy_killed"]
    assert rat.hp == 2
    assert state.player.hp == 95
    assert state.kills == 0
    assert state.player.pos.as_tuple() == (2, 2)
    assert state.damage_dealt == 3
    assert state.damage_taken == 5


def test_defender_hp_never_increases_in_exchange():
    rng = np.random.default_rng(21)
    for _ in range(50):
        state = _state(ROOM_WITH_RAT, seed=int(rng.integers(0, 10_000)))
        rat = state.level.enemies[0]
        before_rat, before_player = rat.hp, state.player.hp
        resolve_exchange(state, state.player, rat)
        assert rat.hp <= before_rat
        assert state.player.hp <= before_player


def test_potion_heals_up_to_cap_and_is_consumed():
    state = _state("@K K\n")
    state.player.hp = 95

    result = move_player(state, 1, 0)

    assert result["potion"]["healed"] == 5
    assert state.player.hp == 100
    assert len(state.level.potions) == 1
    assert state.potions_used == 1


def test_potion_heals_full_amount_when_hurt():
    state = _state("@K\n")
    state.player.hp = 40
    move_player(state, 1, 0)
    assert state.player.hp == 50
    assert state.level.potions == []


def test_enemy_moving_onto_player_attacks_instead():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=0, defence=0)
    set_dice(rat, attack=4, defence=0)

    result = try_move_enemy(state, rat, 2, 2)

    assert result["action"] == "attack"
    assert state.player.hp == 96
    assert rat.pos.as_tuple() == (2, 1)


def test_enemy_killed_by_retaliation_is_removed():
    state = _state(ROOM_WITH_RAT)
    rat = state.level.enemies[0]
    set_dice(state.player, attack=9, defence=10)
    set_dice(rat, attack=1, defence=0)

    result = try_move_enemy(state, rat, 2, 2)

    assert result["enemy_killed"]
    assert state.kills == 1
    assert state.level.enemies == []
    assert state.player.hp == 100


def test_enemy_blocked_by_wall_and_other_enemy():
    state = _state("#rr@\n")
    first, second = state.level.enemies
    assert try_move_enemy(state, first, 0, 0)["action"] == "blocked"
    assert try_move_enemy(state, first, 2, 0)["action"] == "blocked"
    assert try_move_enemy(state, first, 1, -1)["action"] == "out_of_bounds"
    assert first.pos.as_tuple() == (1, 0)


def test_is_blocked_counts_player_tile():
    state = _state(OPEN_ROOM)
    px, py = state.player.pos.as_tuple()
    assert is_blocked(state, px, py)
    assert is_blocked(state, 0, 0)
    assert is_blocked(state, -1, 2)
    assert not is_blocked(state, 2, 2)


def test_dead_enemy_no_longer_occupies_its_tile():
    state = _state("#rr@\n")
    first, second = state.level.enemies
    second.hp = 0
    assert not second.is_alive
    assert state.level.enemy_at(2, 0) is None
    assert try_move_enemy(state, first, 2, 0)["action"] == "move"
