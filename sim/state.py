"""
Pure Python Game State Container.

This module defines the level, actor and game state structures used by the
simulation, independent of any terminal or audio presentation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from sim.dice import Dice


PLAYER_MAX_HP = 100
POTION_HEAL_AMOUNT = 10

# Fixed per-kind stats. Dice tuples are (count, sides, modifier).
ACTOR_STATS = {
    "player": {
        "name": "Player",
        "glyph": "@",
        "color": "yellow",
        "hp": PLAYER_MAX_HP,
        "attack": (2, 6, 2),
        "defence": (2, 6, 0),
    },
    "rat": {
        "name": "Rat",
        "glyph": "r",
        "color": "red",
        "hp": 5,
        "attack": (1, 6, 3),
        "defence": (1, 6, 1),
    },
    "snake": {
        "name": "Snake",
        "glyph": "s",
        "color": "green",
        "hp": 5,
        "attack": (3, 4, 2),
        "defence": (1, 8, 5),
    },
}

ENEMY_KINDS = ("rat", "snake")


class GameStatus(str, Enum):
    """Turn engine states. Everything except PLAYING is terminal."""
    PLAYING = "playing"
    PLAYER_DEAD = "player_dead"
    ALL_ENEMIES_CLEARED = "all_enemies_cleared"
    QUIT = "quit"

    @property
    def is_terminal(self) -> bool:
        return self is not GameStatus.PLAYING


@dataclass
class Position:
    """Grid position, origin top-left."""
    x: int = 0
    y: int = 0

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> Dict:
        return {"x": self.x, "y": self.y}


@dataclass
class LevelElement:
    """Anything that occupies a tile. Color is carried for the renderer only."""
    pos: Position = field(default_factory=Position)
    glyph: str = " "
    color: str = "white"

    @property
    def x(self) -> int:
        return self.pos.x

    @property
    def y(self) -> int:
        return self.pos.y

    def to_dict(self) -> Dict:
        return {"type": type(self).__name__, "pos": self.pos.to_dict(), "glyph": self.glyph}


@dataclass
class Wall(LevelElement):
    glyph: str = "#"
    color: str = "dark_gray"


@dataclass
class HealthPotion(LevelElement):
    glyph: str = "K"
    color: str = "magenta"
    heal_amount: int = POTION_HEAL_AMOUNT


@dataclass
class Actor(LevelElement):
    """
    Player or enemy. The kind tag selects stats and, for enemies, the
    movement policy (see sim.behaviors).
    """
    kind: str = "player"
    name: str = "Actor"
    hp: int = 10
    max_hp: int = 10
    attack_dice: Optional[Dice] = None
    defence_dice: Optional[Dice] = None

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def is_enemy(self) -> bool:
        return self.kind in ENEMY_KINDS

    @property
    def display_hp(self) -> int:
        return max(0, self.hp)

    def to_dict(self) -> Dict:
        d = super().to_dict()
        d.update({
            "kind": self.kind,
            "name": self.name,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "attack_dice": str(self.attack_dice) if self.attack_dice else None,
            "defence_dice": str(self.defence_dice) if self.defence_dice else None,
        })
        return d


def make_actor(kind: str, x: int, y: int, rng: np.random.Generator) -> Actor:
    """Create an actor of the given kind at (x, y) with its fixed stats."""
    if kind not in ACTOR_STATS:
        raise ValueError(f"Unknown actor kind: {kind!r}")

    stats = ACTOR_STATS[kind]
    return Actor(
        pos=Position(x, y),
        glyph=stats["glyph"],
        color=stats["color"],
        kind=kind,
        name=stats["name"],
        hp=stats["hp"],
        max_hp=stats["hp"],
        attack_dice=Dice(*stats["attack"], rng),
        defence_dice=Dice(*stats["defence"], rng),
    )


def make_player(x: int, y: int, rng: np.random.Generator) -> Actor:
    return make_actor("player", x, y, rng)


def make_rat(x: int, y: int, rng: np.random.Generator) -> Actor:
    return make_actor("rat", x, y, rng)


def make_snake(x: int, y: int, rng: np.random.Generator) -> Actor:
    return make_actor("snake", x, y, rng)


@dataclass
class Level:
    """
    Parsed level. Elements are identified by their current position.
    Walls are static, so their positions are also kept in an index set.
    """
    width: int = 0
    height: int = 0
    walls: List[Wall] = field(default_factory=list)
    enemies: List[Actor] = field(default_factory=list)
    potions: List[HealthPotion] = field(default_factory=list)
    player_start: Position = field(default_factory=Position)
    has_player_start: bool = False
    _wall_index: set = field(default_factory=set, repr=False)

    def __post_init__(self):
        self._wall_index = {w.pos.as_tuple() for w in self.walls}

    def add_wall(self, wall: Wall):
        self.walls.append(wall)
        self._wall_index.add(wall.pos.as_tuple())

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def wall_at(self, x: int, y: int) -> bool:
        return (x, y) in self._wall_index

    def enemy_at(self, x: int, y: int, exclude: Actor = None) -> Optional[Actor]:
        """Live enemy standing on (x, y), if any."""
        for e in self.enemies:
            if e is not exclude and e.is_alive and e.pos.x == x and e.pos.y == y:
                return e
        return None

    def potion_at(self, x: int, y: int) -> Optional[HealthPotion]:
        for p in self.potions:
            if p.pos.x == x and p.pos.y == y:
                return p
        return None

    def remove_enemy(self, enemy: Actor):
        self.enemies = [e for e in self.enemies if e is not enemy]

    def remove_potion(self, potion: HealthPotion):
        self.potions = [p for p in self.potions if p is not potion]

    @property
    def elements(self) -> List[LevelElement]:
        return [*self.walls, *self.enemies, *self.potions]

    def to_dict(self) -> Dict:
        return {
            "width": self.width,
            "height": self.height,
            "walls": [w.pos.to_dict() for w in self.walls],
            "enemies": [e.to_dict() for e in self.enemies],
            "potions": [p.pos.to_dict() for p in self.potions],
            "player_start": self.player_start.to_dict(),
        }


@dataclass
class GameState:
    """Complete state of one run."""
    level: Level = field(default_factory=Level)
    player: Optional[Actor] = None
    kills: int = 0
    turn: int = 0
    status: GameStatus = GameStatus.PLAYING
    messages: List[str] = field(default_factory=list)
    # Per-turn accumulators, reset at the start of every turn
    damage_dealt: int = 0
    damage_taken: int = 0
    potions_used: int = 0

    def reset_turn_counters(self):
        self.damage_dealt = 0
        self.damage_taken = 0
        self.potions_used = 0

    @property
    def last_message(self) -> str:
        return self.messages[-1] if self.messages else ""

    def to_dict(self) -> Dict:
        return {
            "level": self.level.to_dict(),
            "player": self.player.to_dict() if self.player else None,
            "kills": self.kills,
            "turn": self.turn,
            "status": self.status.value,
            "messages": list(self.messages),
        }


@dataclass
class Frame:
    """What the presentation layer may see after one render pass."""
    width: int
    height: int
    walls: List[Wall]
    enemies: List[Actor]
    potions: List[HealthPotion]
    player: Actor
    hp: int
    attack_label: str
    defence_label: str
    kills: int
    turn: int
    status: GameStatus
    message: str = ""

    def to_dict(self) -> Dict:
        return {
            "width": self.width,
            "height": self.height,
            "walls": [w.pos.to_dict() for w in self.walls],
            "enemies": [e.to_dict() for e in self.enemies],
            "potions": [p.pos.to_dict() for p in self.potions],
            "player": self.player.to_dict(),
            "hp": self.hp,
            "attack": self.attack_label,
            "defence": self.defence_label,
            "kills": self.kills,
            "turn": self.turn,
            "status": self.status.value,
            "message": self.message,
        }
