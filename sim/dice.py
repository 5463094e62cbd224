"""
Seeded Dice.

Dice draw from an injected numpy Generator so a whole run is reproducible
from a single seed.
"""

import re

import numpy as np


DICE_PATTERN = re.compile(r"(\d+)d(\d+)(?:([+\-])(\d+))?")


class Dice:
    """A fixed dice configuration, e.g. 2d6+3."""

    def __init__(self, count: int, sides: int, modifier: int, rng: np.random.Generator):
        self.count = max(0, int(count))
        self.sides = max(1, int(sides))
        self.modifier = int(modifier)
        self.rng = rng

    @classmethod
    def parse(cls, dice_str: str, rng: np.random.Generator) -> "Dice":
        """Build dice from a label like "3d4+2" or "1d8-1"."""
        match = DICE_PATTERN.fullmatch(str(dice_str).replace(" ", ""))
        if not match:
            raise ValueError(f"Invalid dice label: {dice_str!r}")

        modifier = 0
        if match.group(3) and match.group(4):
            modifier = int(match.group(4))
            if match.group(3) == "-":
                modifier = -modifier

        return cls(int(match.group(1)), int(match.group(2)), modifier, rng)

    def throw(self) -> int:
        """Roll every die and add the modifier."""
        if self.count == 0:
            return self.modifier
        rolls = self.rng.integers(1, self.sides + 1, size=self.count)
        return int(rolls.sum()) + self.modifier

    def average(self) -> float:
        """Expected value of a throw."""
        return self.count * (self.sides + 1) / 2 + self.modifier

    def minimum(self) -> int:
        return self.count + self.modifier

    def maximum(self) -> int:
        return self.count * self.sides + self.modifier

    def __str__(self) -> str:
        sign = "+" if self.modifier >= 0 else ""
        return f"{self.count}d{self.sides}{sign}{self.modifier}"

    def __repr__(self) -> str:
        return f"Dice({self.count}, {self.sides}, {self.modifier})"
