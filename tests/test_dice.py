import numpy as np
import pytest

from sim.dice import Dice


@pytest.mark.parametrize("count,sides,modifier", [
    (1, 6, 3), (1, 6, 1), (3, 4, 2), (1, 8, 5), (2, 6, 0), (4, 1, -2), (5, 20, -7),
])
def test_throw_within_bounds(count, sides, modifier):
    dice = Dice(count, sides, modifier, np.random.default_rng(99))
    lo = count + modifier
    hi = count * sides + modifier
    rolls = [dice.throw() for _ in range(300)]
    assert all(lo <= r <= hi for r in rolls)
    assert dice.minimum() == lo
    assert dice.maximum() == hi


def test_zero_dice_returns_modifier():
    dice = Dice(0, 6, 4, np.random.default_rng(0))
    assert {dice.throw() for _ in range(20)} == {4}


def test_invalid_counts_are_clamped():
    dice = Dice(-3, 0, 2, np.random.default_rng(0))
    assert dice.count == 0
    assert dice.sides == 1
    assert dice.throw() == 2


def test_single_sided_dice_are_constant():
    dice = Dice(3, 1, 1, np.random.default_rng(5))
    assert dice.throw() == 4


def test_labels():
    rng = np.random.default_rng(0)
    assert str(Dice(2, 6, 2, rng)) == "2d6+2"
    assert str(Dice(2, 6, 0, rng)) == "2d6+0"
    assert str(Dice(1, 8, -1, rng)) == "1d8-1"


def test_same_seed_same_rolls():
    a = Dice(3, 4, 2, np.random.default_rng(11))
    b = Dice(3, 4, 2, np.random.default_rng(11))
    assert [a.throw() for _ in range(10)] == [b.throw() for _ in range(10)]


def test_parse_round_trips_label():
    rng = np.random.default_rng(0)
    dice = Dice.parse("3d4+2", rng)
    assert (dice.count, dice.sides, dice.modifier) == (3, 4, 2)
    assert Dice.parse("1d8-1", rng).modifier == -1
    assert Dice.parse("1d6", rng).modifier == 0


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        Dice.parse("fireball", np.random.default_rng(0))


def test_average():
    assert Dice(2, 6, 2, np.random.default_rng(0)).average() == 9.0
