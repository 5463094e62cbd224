"""
Featurization: Convert a rendered frame to a fixed-size observation vector.

Only what the player can see goes in: discovered walls plus the enemies and
potions currently inside the vision radius.
"""

import numpy as np

from sim.state import Frame
from ai.schema import (
    ObservationSpec, LOCAL_GRID_RADIUS,
    CHANNEL_WALL, CHANNEL_ENEMY, CHANNEL_POTION,
    MAX_HP, MAX_DICE_AVERAGE, MAX_KILLS, MAX_TURNS,
    grid_index,
)


def clamp(value: float, min_val: float = 0.0, max_val: float = 1.0) -> float:
    """Clamp value to range."""
    return max(min_val, min(max_val, value))


def scale(value: float, max_value: float, min_value: float = 0.0) -> float:
    """Scale value to [0, 1] range."""
    if max_value == min_value:
        return 0.0
    return clamp((value - min_value) / (max_value - min_value))


def _mark(obs: np.ndarray, channel: int, px: int, py: int, x: int, y: int):
    lx, ly = x - px, y - py
    if abs(lx) <= LOCAL_GRID_RADIUS and abs(ly) <= LOCAL_GRID_RADIUS:
        obs[grid_index(channel, lx, ly)] = 1.0


def featurize_frame(frame: Frame) -> np.ndarray:
    """
    Convert a frame to an observation vector.

    Returns:
        np.float32 array of size ObservationSpec.TOTAL_SIZE
    """
    obs = np.zeros(ObservationSpec.TOTAL_SIZE, dtype=np.float32)
    px, py = frame.player.pos.x, frame.player.pos.y

    # ==========================================================================
    # A) LOCAL GRID (11x11 around the player)
    # ==========================================================================
    # Off-map cells read as walls
    for ly in range(-LOCAL_GRID_RADIUS, LOCAL_GRID_RADIUS + 1):
        for lx in range(-LOCAL_GRID_RADIUS, LOCAL_GRID_RADIUS + 1):
            wx, wy = px + lx, py + ly
            if wx < 0 or wx >= frame.width or wy < 0 or wy >= frame.height:
                obs[grid_index(CHANNEL_WALL, lx, ly)] = 1.0

    for w in frame.walls:
        _mark(obs, CHANNEL_WALL, px, py, w.pos.x, w.pos.y)
    for e in frame.enemies:
        _mark(obs, CHANNEL_ENEMY, px, py, e.pos.x, e.pos.y)
    for p in frame.potions:
        _mark(obs, CHANNEL_POTION, px, py, p.pos.x, p.pos.y)

    # ==========================================================================
    # B) PLAYER SCALARS
    # ==========================================================================
    idx = ObservationSpec.SCALARS_START
    player = frame.player
    obs[idx] = scale(frame.hp, MAX_HP)
    obs[idx + 1] = scale(player.attack_dice.average(), MAX_DICE_AVERAGE)
    obs[idx + 2] = scale(player.defence_dice.average(), MAX_DICE_AVERAGE)
    obs[idx + 3] = scale(frame.kills, MAX_KILLS)
    obs[idx + 4] = scale(frame.turn, MAX_TURNS)

    return obs
