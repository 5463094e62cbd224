"""
Observation and Action Schema for the Crawler Environment.

Defines the fixed-size numeric observation vector and the discrete
player action space.
"""

from dataclasses import dataclass
from typing import Dict, List

from sim.engine import Command
from sim.visibility import VISION_RADIUS_SQ

# =============================================================================
# ACTION SPACE
# =============================================================================

ACTION_UP = 0
ACTION_DOWN = 1
ACTION_LEFT = 2
ACTION_RIGHT = 3
ACTION_WAIT = 4

TOTAL_ACTIONS = ACTION_WAIT + 1  # 5

ACTION_COMMANDS: List[Command] = [
    Command.UP,
    Command.DOWN,
    Command.LEFT,
    Command.RIGHT,
    Command.WAIT,
]

# Same order as sim.mechanics.DIRECTIONS
ACTION_VECTORS = [(0, -1), (0, 1), (-1, 0), (1, 0), (0, 0)]


def action_index_to_command(action_index: int) -> Command:
    """Out-of-range indices are treated as waiting."""
    if 0 <= action_index < TOTAL_ACTIONS:
        return ACTION_COMMANDS[action_index]
    return Command.WAIT


def command_to_action_index(command: Command) -> int:
    if command in ACTION_COMMANDS:
        return ACTION_COMMANDS.index(command)
    return ACTION_WAIT


# =============================================================================
# OBSERVATION SCHEMA
# =============================================================================

# Local window matches the vision radius: 5 => 11x11 cells
LOCAL_GRID_RADIUS = int(VISION_RADIUS_SQ ** 0.5)
LOCAL_GRID_WIDTH = 2 * LOCAL_GRID_RADIUS + 1
LOCAL_GRID_SIZE = LOCAL_GRID_WIDTH ** 2  # 121

CHANNEL_WALL = 0
CHANNEL_ENEMY = 1
CHANNEL_POTION = 2
NUM_CHANNELS = 3

# Scaling constants for normalization
MAX_HP = 100
MAX_DICE_AVERAGE = 20
MAX_KILLS = 20
MAX_TURNS = 500


@dataclass
class ObservationSpec:
    """Defines the observation vector structure."""

    # A) Local grid (121 cells * 3 channels = 363 values), channel-major
    GRID_START = 0
    GRID_SIZE = LOCAL_GRID_SIZE * NUM_CHANNELS

    # B) Player scalars: hp_pct, attack_avg, defence_avg, kills, turn
    SCALARS_START = GRID_START + GRID_SIZE
    SCALARS_SIZE = 5

    TOTAL_SIZE = SCALARS_START + SCALARS_SIZE


def get_observation_size() -> int:
    """Return total observation vector size."""
    return ObservationSpec.TOTAL_SIZE


def get_action_size() -> int:
    """Return total action space size."""
    return TOTAL_ACTIONS


def grid_index(channel: int, local_x: int, local_y: int) -> int:
    """Index of a window cell; local coordinates are offsets from the player."""
    cell = (local_y + LOCAL_GRID_RADIUS) * LOCAL_GRID_WIDTH + (local_x + LOCAL_GRID_RADIUS)
    return ObservationSpec.GRID_START + channel * LOCAL_GRID_SIZE + cell


def describe_action(action_index: int) -> Dict:
    command = action_index_to_command(action_index)
    return {"index": int(action_index), "command": command.value}
