import asyncio
import random

import pytest

from itsatrap.dice import DiceExpressionError, DieRoll, RandomDiceRoller, RollResult, parse_expression


def test_parse_expression_handles_signs_and_spacing() -> None:
    terms = parse_expression("1d20 + -2")
    assert [(term.sign, term.count, term.sides, term.flat) for term in terms] == [
        (1, 1, 20, 0),
        (-1, 0, None, 2),
    ]
    terms = parse_expression("d6+2D4-1")
    assert [(term.sign, term.count, term.sides, term.flat) for term in terms] == [
        (1, 1, 6, 0),
        (1, 2, 4, 0),
        (-1, 0, None, 1),
    ]


@pytest.mark.parametrize("expression", ["", "abc", "2d6 fire", "1d20 5", "1d20 +", "0d6", "1d0"])
def test_parse_expression_rejects_invalid_text(expression: str) -> None:
    with pytest.raises(DiceExpressionError):
        parse_expression(expression)


def test_random_roller_totals_dice_and_modifier() -> None:
    roller = RandomDiceRoller(random.Random(7))
    result = asyncio.run(roller.roll("1d20 + 5"))
    assert len(result.dice) == 1
    die = result.dice[0]
    assert die.sides == 20
    assert 1 <= die.value <= 20
    assert result.modifier == 5
    assert result.total == die.value + 5
    assert result.expression == "1d20 + 5"


def test_random_roller_subtracts_negative_dice() -> None:
    roller = RandomDiceRoller(random.Random(3))
    result = asyncio.run(roller.roll("3d6 - 1d4"))
    positives = sum(die.value for die in result.dice if not die.negative)
    negatives = sum(die.value for die in result.dice if die.negative)
    assert len(result.dice) == 4
    assert result.total == positives - negatives


def test_random_roller_is_reproducible_with_seed() -> None:
    first = asyncio.run(RandomDiceRoller(random.Random(11)).roll("4d8+1"))
    second = asyncio.run(RandomDiceRoller(random.Random(11)).roll("4d8+1"))
    assert first == second


def test_faces_lists_each_die() -> None:
    result = RollResult(
        expression="1d6 - 1d4",
        total=1,
        dice=(DieRoll(sides=6, value=3), DieRoll(sides=4, value=2, negative=True)),
    )
    assert result.faces() == "3, -2"
    assert RollResult(expression="4", total=4, modifier=4).faces() == "no dice"
