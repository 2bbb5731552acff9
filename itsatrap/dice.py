"""Dice expression parsing and rolling."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import List, Protocol, Tuple

__all__ = [
    "DiceExpressionError",
    "DiceRoller",
    "DieRoll",
    "RandomDiceRoller",
    "RollResult",
    "parse_expression",
]

_TERM_PATTERN = re.compile(
    r"\s*(?P<sign>(?:[+-]\s*)*)(?:(?P<count>\d*)d(?P<sides>\d+)|(?P<flat>\d+))\s*",
    re.IGNORECASE,
)

MAX_DICE = 100


class DiceExpressionError(ValueError):
    """Raised when a dice expression cannot be parsed."""


@dataclass(frozen=True)
class DieRoll:
    sides: int
    value: int
    negative: bool = False


@dataclass(frozen=True)
class RollResult:
    """Outcome of rolling a dice expression, with the individual dice kept."""

    expression: str
    total: int
    dice: Tuple[DieRoll, ...] = ()
    modifier: int = 0

    def faces(self) -> str:
        """Return the rolled die faces, e.g. ``"3, -2"`` for ``1d6 - 1d4``."""

        if not self.dice:
            return "no dice"
        return ", ".join(
            f"-{die.value}" if die.negative else str(die.value) for die in self.dice
        )


class DiceRoller(Protocol):
    async def roll(self, expression: str) -> RollResult:
        ...


@dataclass(frozen=True)
class _Term:
    sign: int
    count: int
    sides: int | None
    flat: int


def parse_expression(expression: str) -> List[_Term]:
    """Split ``expression`` into signed dice and flat terms."""

    text = (expression or "").strip()
    if not text:
        raise DiceExpressionError("Dice expression is empty")
    terms: list[_Term] = []
    position = 0
    while position < len(text):
        match = _TERM_PATTERN.match(text, position)
        if match is None or match.end() == position:
            raise DiceExpressionError(f"Invalid dice expression: {expression!r}")
        signs = match.group("sign")
        if not signs and terms:
            raise DiceExpressionError(f"Missing operator in dice expression: {expression!r}")
        sign = -1 if signs.count("-") % 2 else 1
        if match.group("sides") is not None:
            count = int(match.group("count") or 1)
            sides = int(match.group("sides"))
            if count < 1 or sides < 1:
                raise DiceExpressionError(f"Invalid dice term in {expression!r}")
            if count > MAX_DICE:
                raise DiceExpressionError(f"Too many dice in {expression!r}")
            terms.append(_Term(sign=sign, count=count, sides=sides, flat=0))
        else:
            terms.append(_Term(sign=sign, count=0, sides=None, flat=int(match.group("flat"))))
        position = match.end()
    return terms


class RandomDiceRoller:
    """Roll dice locally with :mod:`random`."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def roll(self, expression: str) -> RollResult:
        terms = parse_expression(expression)
        dice: list[DieRoll] = []
        total = 0
        modifier = 0
        for term in terms:
            if term.sides is None:
                modifier += term.sign * term.flat
                continue
            for _ in range(term.count):
                value = self._rng.randint(1, term.sides)
                dice.append(DieRoll(sides=term.sides, value=value, negative=term.sign < 0))
                total += term.sign * value
        total += modifier
        return RollResult(expression=expression, total=total, dice=tuple(dice), modifier=modifier)
