"""
Text Grid Level Loader.

One row per line, one tile per character. Unknown glyphs are empty floor and
rows may have different lengths.
"""

from typing import Callable, Dict

import numpy as np

from sim.state import Level, Position, Wall, HealthPotion, make_rat, make_snake


WALL_GLYPH = "#"
RAT_GLYPH = "r"
SNAKE_GLYPH = "s"
PLAYER_GLYPH = "@"
POTION_GLYPH = "K"

ENEMY_FACTORIES: Dict[str, Callable] = {
    RAT_GLYPH: make_rat,
    SNAKE_GLYPH: make_snake,
}


class LevelLoadError(Exception):
    """Raised when a level source cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load level {path}: {reason}")
        self.path = path
        self.reason = reason


def parse_level(text: str, rng: np.random.Generator) -> Level:
    """
    Parse level text into a fresh Level.

    Enemies keep a reference to rng for their future dice throws.
    A missing player glyph leaves the start at the origin.
    """
    lines = text.splitlines()
    level = Level(
        width=max((len(line) for line in lines), default=0),
        height=len(lines),
    )

    for y, line in enumerate(lines):
        for x, c in enumerate(line):
            if c == WALL_GLYPH:
                level.add_wall(Wall(pos=Position(x, y)))
            elif c in ENEMY_FACTORIES:
                level.enemies.append(ENEMY_FACTORIES[c](x, y, rng))
            elif c == POTION_GLYPH:
                level.potions.append(HealthPotion(pos=Position(x, y)))
            elif c == PLAYER_GLYPH:
                level.player_start = Position(x, y)
                level.has_player_start = True

    return level


def read_level_text(path: str) -> str:
    """Read a level file. Raises LevelLoadError if it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise LevelLoadError(str(path), str(e)) from e


def load_level(path: str, rng: np.random.Generator) -> Level:
    """Read and parse a level file. Raises LevelLoadError if unreadable."""
    level = parse_level(read_level_text(path), rng)
    if not level.has_player_start:
        print(f"Warning: level {path} has no '{PLAYER_GLYPH}' start, using origin")
    return level
