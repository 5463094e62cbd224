"""
Enemy Movement Policies.

Each enemy kind maps to a plain function (state, enemy, rng) -> result dict.
"""

from typing import Callable, Dict

import numpy as np

from sim.state import GameState, Actor
from sim.mechanics import DIRECTIONS, squared_distance, is_blocked, try_move_enemy


SNAKE_SKIP_CHANCE = 0.15
SNAKE_ENGAGE_RADIUS_SQ = 2 * 2


def rat_update(state: GameState, enemy: Actor, rng: np.random.Generator) -> Dict:
    """Step in a uniformly random cardinal direction."""
    dx, dy = DIRECTIONS[int(rng.integers(0, len(DIRECTIONS)))]
    return try_move_enemy(state, enemy, enemy.pos.x + dx, enemy.pos.y + dy)


def snake_update(state: GameState, enemy: Actor, rng: np.random.Generator) -> Dict:
    """
    Sometimes skip the turn. Otherwise, when the player is within two tiles,
    move to the free neighbour that puts the most distance between them.
    """
    if rng.random() < SNAKE_SKIP_CHANCE:
        return {"action": "skip"}

    player_pos = state.player.pos
    best = squared_distance(enemy.pos, player_pos)
    if best > SNAKE_ENGAGE_RADIUS_SQ:
        return {"action": "idle"}

    best_x, best_y = enemy.pos.x, enemy.pos.y
    for dx, dy in DIRECTIONS:
        nx, ny = enemy.pos.x + dx, enemy.pos.y + dy
        if is_blocked(state, nx, ny, exclude=enemy):
            continue
        d2 = (player_pos.x - nx) ** 2 + (player_pos.y - ny) ** 2
        if d2 > best:
            best = d2
            best_x, best_y = nx, ny

    return try_move_enemy(state, enemy, best_x, best_y)


ENEMY_BEHAVIORS: Dict[str, Callable[[GameState, Actor, np.random.Generator], Dict]] = {
    "rat": rat_update,
    "snake": snake_update,
}


def update_enemy(state: GameState, enemy: Actor, rng: np.random.Generator) -> Dict:
    """Run the movement policy registered for the enemy's kind."""
    behavior = ENEMY_BEHAVIORS.get(enemy.kind)
    if behavior is None:
        raise ValueError(f"No behavior registered for enemy kind {enemy.kind!r}")
    return behavior(state, enemy, rng)
