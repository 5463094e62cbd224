"""
Heuristic Policy for the Player.

Non-RL autopilot that works only from what a frame shows. Used as a
baseline for RL training comparison and for headless runs.
"""

from typing import List, Optional, Set, Tuple

import numpy as np

from sim.state import Frame, Position
from sim.mechanics import squared_distance
from ai.schema import ACTION_VECTORS, ACTION_WAIT

# Below this HP the player goes for visible potions before enemies
HEAL_THRESHOLD = 60

MOVE_ACTIONS = range(ACTION_WAIT)


def known_walls(frame: Frame) -> Set[Tuple[int, int]]:
    return {w.pos.as_tuple() for w in frame.walls}


def valid_moves(frame: Frame) -> List[int]:
    """Directions that do not walk into a known wall or off the map."""
    walls = known_walls(frame)
    px, py = frame.player.pos.x, frame.player.pos.y
    moves = []
    for a in MOVE_ACTIONS:
        dx, dy = ACTION_VECTORS[a]
        nx, ny = px + dx, py + dy
        if nx < 0 or nx >= frame.width or ny < 0 or ny >= frame.height:
            continue
        if (nx, ny) in walls:
            continue
        moves.append(a)
    return moves


def step_toward(frame: Frame, target: Position) -> Optional[int]:
    """Greedy step that reduces squared distance to target, if any does."""
    px, py = frame.player.pos.x, frame.player.pos.y
    best_action = None
    best = squared_distance(frame.player.pos, target)
    for a in valid_moves(frame):
        dx, dy = ACTION_VECTORS[a]
        d2 = (target.x - px - dx) ** 2 + (target.y - py - dy) ** 2
        if d2 < best:
            best = d2
            best_action = a
    return best_action


def adjacent_enemy_action(frame: Frame) -> Optional[int]:
    """Attack the weakest adjacent enemy."""
    px, py = frame.player.pos.x, frame.player.pos.y
    best_action = None
    best_hp = None
    for a in MOVE_ACTIONS:
        dx, dy = ACTION_VECTORS[a]
        for e in frame.enemies:
            if e.pos.x == px + dx and e.pos.y == py + dy:
                if best_hp is None or e.hp < best_hp:
                    best_hp = e.hp
                    best_action = a
    return best_action


def nearest(frame: Frame, elements) -> Optional[Position]:
    if not elements:
        return None
    target = min(elements, key=lambda el: squared_distance(frame.player.pos, el.pos))
    return target.pos


def heuristic_select_action(frame: Frame, rng: np.random.Generator) -> int:
    """
    Priority order:
    1. attack an adjacent enemy
    2. when hurt, walk to the nearest visible potion
    3. walk to the nearest visible enemy
    4. wander through open tiles
    """
    action = adjacent_enemy_action(frame)
    if action is not None:
        return action

    if frame.hp < HEAL_THRESHOLD:
        potion = nearest(frame, frame.potions)
        if potion is not None:
            action = step_toward(frame, potion)
            if action is not None:
                return action

    enemy = nearest(frame, frame.enemies)
    if enemy is not None:
        action = step_toward(frame, enemy)
        if action is not None:
            return action

    moves = valid_moves(frame)
    if not moves:
        return ACTION_WAIT
    return int(rng.choice(moves))
