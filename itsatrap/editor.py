"""Game master commands for editing trap properties."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from .config import DEFENSE_NAMES, TrapConfiguration
from .render import format_bonus

__all__ = [
    "PROPERTY_NAMES",
    "TrapProperty",
    "apply_command",
    "describe_properties",
    "parse_leading_int",
]

PROPERTY_NAMES: tuple[str, ...] = ("attack", "damage", "missHalf", "spotDC")

_LEADING_INT = re.compile(r"\s*([+-]?)(?:0[xX]([0-9a-fA-F]*)|([0-9]+))")


def parse_leading_int(text: Optional[str]) -> Optional[int]:
    """Parse the integer prefix of ``text`` the way chat command users expect.

    ``"5"``, ``" +5"`` and ``"5ft"`` all give 5 and ``"0x10"`` gives 16; text
    without a leading number gives ``None``. Only ASCII digits count, and a
    number too long to convert is treated as no number at all.
    """

    if text is None:
        return None
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    sign, hex_digits, digits = match.groups()
    try:
        if hex_digits is not None:
            if not hex_digits:
                return None
            value = int(hex_digits, 16)
        else:
            value = int(digits)
    except ValueError:
        return None
    return -value if sign == "-" else value


def _arg(args: Sequence[str], index: int) -> Optional[str]:
    return args[index] if index < len(args) else None


def apply_command(
    config: TrapConfiguration, property_name: str, args: Sequence[str]
) -> TrapConfiguration:
    """Return ``config`` with ``property_name`` set from ``args``.

    Unknown property names leave the configuration untouched.
    """

    if property_name == "attack":
        bonus = parse_leading_int(_arg(args, 0))
        defense = _arg(args, 1)
        if bonus is None or defense is None or not defense.strip():
            return replace(config, attack=None, defense=None)
        return replace(config, attack=bonus, defense=defense)
    if property_name == "damage":
        return replace(config, damage=_arg(args, 0) or None)
    if property_name == "missHalf":
        return replace(config, miss_half=_arg(args, 0) == "yes")
    if property_name == "spotDC":
        return replace(config, spot_dc=parse_leading_int(_arg(args, 0)))
    return config


@dataclass(frozen=True)
class TrapProperty:
    """An editable trap property as shown to the game master."""

    id: str
    name: str
    description: str
    value: str
    options: Tuple[str, ...] = ()
    properties: Tuple["TrapProperty", ...] = ()


def describe_properties(config: TrapConfiguration) -> Tuple[TrapProperty, ...]:
    attack_value = "none"
    if config.attack is not None and config.defense is not None:
        attack_value = f"{format_bonus(config.attack)} vs {config.defense}"
    return (
        TrapProperty(
            id="attack",
            name="Attack Roll",
            description="The trap's attack roll bonus vs AC.",
            value=attack_value,
            properties=(
                TrapProperty(
                    id="bonus",
                    name="Attack Bonus",
                    description="What is the attack roll modifier?",
                    value=str(config.attack) if config.attack is not None else "none",
                ),
                TrapProperty(
                    id="vs",
                    name="Defense",
                    description="What defense does the attack target?",
                    value=config.defense or "none",
                    options=DEFENSE_NAMES,
                ),
            ),
        ),
        TrapProperty(
            id="damage",
            name="Damage",
            description="The dice roll expression for the trap's damage.",
            value=config.damage or "none",
        ),
        TrapProperty(
            id="missHalf",
            name="Miss - Half Damage",
            description="Does the trap deal half damage on a miss?",
            value="yes" if config.miss_half else "no",
            options=("yes", "no"),
        ),
        TrapProperty(
            id="spotDC",
            name="Perception DC",
            description="The skill check DC to spot the trap.",
            value=str(config.spot_dc) if config.spot_dc is not None else "none",
        ),
    )
