"""
Movement and Combat Mechanics.

Occupancy queries, dice-based combat resolution and the movement rules for
the player and enemies. All results are returned as plain dicts; combat and
pickup lines are appended to the state's message log.
"""

from typing import Dict, List, Optional, Tuple

from sim.state import GameState, Actor, Position


# Cardinal steps in draw order: up, down, left, right
DIRECTIONS: List[Tuple[int, int]] = [(0, -1), (0, 1), (-1, 0), (1, 0)]


def squared_distance(a: Position, b: Position) -> int:
    """Euclidean distance without the square root."""
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def player_at(state: GameState, x: int, y: int) -> bool:
    p = state.player
    return p is not None and p.pos.x == x and p.pos.y == y


def is_blocked(state: GameState, x: int, y: int, exclude: Actor = None) -> bool:
    """
    Check if an enemy could step onto (x, y).

    Walls, other live enemies, the player's tile and anything off the map
    all block movement.
    """
    level = state.level
    if not level.in_bounds(x, y):
        return True
    if level.wall_at(x, y):
        return True
    if level.enemy_at(x, y, exclude=exclude) is not None:
        return True
    return player_at(state, x, y)


def resolve_combat(attacker: Actor, defender: Actor) -> Dict:
    """
    Resolve one attack. Damage is the attack roll minus the defence roll;
    anything at or below zero is blocked and leaves the defender untouched.
    """
    attack_roll = max(0, attacker.attack_dice.throw())
    defence_roll = max(0, defender.defence_dice.throw())
    damage = attack_roll - defence_roll

    if damage > 0:
        defender.hp -= damage

    return {
        "attacker": attacker,
        "defender": defender,
        "attack_roll": attack_roll,
        "defence_roll": defence_roll,
        "damage": max(0, damage),
        "blocked": damage <= 0,
        "defender_hp": defender.hp,
        "defender_dead": defender.hp <= 0,
    }


def format_combat_line(result: Dict) -> str:
    attacker = result["attacker"]
    defender = result["defender"]
    head = (
        f"{attacker.name} ({attacker.attack_dice} -> {result['attack_roll']}) attacks "
        f"{defender.name} ({defender.defence_dice} -> {result['defence_roll']})"
    )
    if result["blocked"]:
        outcome = "blocked"
    else:
        outcome = f"hits for {result['damage']}"
    return f"{head}: {outcome}. {defender.name} HP {max(0, result['defender_hp'])}"


def resolve_exchange(state: GameState, attacker: Actor, defender: Actor) -> Dict:
    """
    Attacker strikes first; a surviving defender strikes back in the same turn.
    An enemy at or below zero HP afterwards is removed and counted as a kill.
    """
    results = [resolve_combat(attacker, defender)]
    if defender.hp > 0:
        results.append(resolve_combat(defender, attacker))

    for r in results:
        state.messages.append(format_combat_line(r))
        if r["attacker"] is state.player:
            state.damage_dealt += r["damage"]
        else:
            state.damage_taken += r["damage"]

    enemy = defender if defender.is_enemy else attacker
    killed = enemy.hp <= 0
    if killed:
        state.level.remove_enemy(enemy)
        state.kills += 1
        state.messages.append(f"{enemy.name} dies.")

    return {
        "action": "attack",
        "exchanges": results,
        "enemy": enemy,
        "enemy_killed": killed,
    }


def consume_potion(state: GameState) -> Optional[Dict]:
    """Drink the potion under the player, if there is one."""
    player = state.player
    potion = state.level.potion_at(player.pos.x, player.pos.y)
    if potion is None:
        return None

    healed = max(0, min(potion.heal_amount, player.max_hp - player.hp))
    player.hp += healed
    state.level.remove_potion(potion)
    state.potions_used += 1
    state.messages.append(f"{player.name} drinks a health potion (+{healed} HP). HP {player.display_hp}")
    return {"healed": healed, "pos": potion.pos.to_dict()}


def move_player(state: GameState, dx: int, dy: int) -> Dict:
    """
    Resolve the player's action for one turn.

    Stepping into an enemy attacks it without moving; walls and the map
    edge make the turn a no-op.
    """
    player = state.player
    if dx == 0 and dy == 0:
        return {"action": "wait"}

    tx, ty = player.pos.x + dx, player.pos.y + dy
    level = state.level

    if not level.in_bounds(tx, ty):
        return {"action": "out_of_bounds"}

    enemy = level.enemy_at(tx, ty)
    if enemy is not None:
        return resolve_exchange(state, player, enemy)

    if level.wall_at(tx, ty):
        return {"action": "blocked"}

    player.pos = Position(tx, ty)
    result = {"action": "move", "pos": player.pos.to_dict()}
    potion = consume_potion(state)
    if potion:
        result["potion"] = potion
    return result


def try_move_enemy(state: GameState, enemy: Actor, x: int, y: int) -> Dict:
    """
    Shared enemy move rule. Moving onto the player attacks instead; blocked
    or off-map destinations fail silently.
    """
    level = state.level
    if not level.in_bounds(x, y):
        return {"action": "out_of_bounds"}

    if player_at(state, x, y):
        return resolve_exchange(state, enemy, state.player)

    if level.wall_at(x, y) or level.enemy_at(x, y, exclude=enemy) is not None:
        return {"action": "blocked"}

    enemy.pos = Position(x, y)
    return {"action": "move", "pos": enemy.pos.to_dict()}
