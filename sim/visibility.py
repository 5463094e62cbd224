"""
Fog of War.

Walls seen once stay discovered for the rest of the run. Enemies and
potions are only visible while inside the vision radius.
"""

from typing import List, Set, Tuple

from sim.state import Level, Position, Wall, Actor, HealthPotion


VISION_RADIUS_SQ = 5 * 5


class FogOfWar:
    """Tracks discovered wall tiles around a moving viewer."""

    def __init__(self, radius_sq: int = VISION_RADIUS_SQ):
        self.radius_sq = radius_sq
        self.discovered: Set[Tuple[int, int]] = set()

    def reset(self):
        self.discovered.clear()

    def can_see(self, origin: Position, x: int, y: int) -> bool:
        dx = x - origin.x
        dy = y - origin.y
        return dx * dx + dy * dy <= self.radius_sq

    def reveal(self, level: Level, origin: Position) -> int:
        """Mark walls in range as discovered. Returns how many were new."""
        before = len(self.discovered)
        for w in level.walls:
            if self.can_see(origin, w.pos.x, w.pos.y):
                self.discovered.add(w.pos.as_tuple())
        return len(self.discovered) - before

    def is_discovered(self, x: int, y: int) -> bool:
        return (x, y) in self.discovered

    def discovered_walls(self, level: Level) -> List[Wall]:
        return [w for w in level.walls if w.pos.as_tuple() in self.discovered]

    def visible_enemies(self, level: Level, origin: Position) -> List[Actor]:
        return [e for e in level.enemies if e.is_alive and self.can_see(origin, e.pos.x, e.pos.y)]

    def visible_potions(self, level: Level, origin: Position) -> List[HealthPotion]:
        return [p for p in level.potions if self.can_see(origin, p.pos.x, p.pos.y)]
