"""Resolution of a trap firing at a victim."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from .characters import Character, Victim
from .config import TrapConfiguration
from .defenses import DefenseResolver
from .dice import DiceRoller, RollResult
from .render import TrapContent, render_activation

__all__ = [
    "ActivationContext",
    "ActivationResult",
    "TrapActivator",
    "attack_expression",
]

log = logging.getLogger(__name__)

CharacterLookup = Callable[[Victim], Optional[Character]]
AnnounceSink = Callable[[TrapContent], Union[Awaitable[None], None]]
ErrorSink = Callable[[BaseException], None]


def attack_expression(attack: int) -> str:
    """Return the dice expression rolled for a trap attack."""

    return f"1d20 + {attack}"


@dataclass(frozen=True)
class ActivationContext:
    """Everything known about one activation before any dice are rolled."""

    victim: Victim
    character: Optional[Character]
    config: TrapConfiguration


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of a single activation.

    The attack fields are only populated when a verdict was computed; a trap
    without an attack, or a victim without a character sheet, only ever shows
    its flavor message.
    """

    victim: Victim
    character: Optional[Character]
    message: str
    damage: Optional[str] = None
    miss_half: bool = False
    attack: Optional[int] = None
    defense: Optional[str] = None
    defense_value: Optional[int] = None
    roll: Optional[RollResult] = None
    trap_hit: Optional[bool] = None

    @property
    def verdict_computed(self) -> bool:
        return self.trap_hit is not None

    @classmethod
    def flavor_only(cls, context: ActivationContext) -> "ActivationResult":
        return cls(
            victim=context.victim,
            character=context.character,
            message=context.config.message,
            damage=context.config.damage,
            miss_half=context.config.miss_half,
        )


def _log_error(error: BaseException) -> None:
    log.error("Trap activation failed", exc_info=error)


class TrapActivator:
    """Fire traps at victims and announce what happened.

    The character lookup, defense resolver and dice roller are supplied at
    construction so the same activator works for any rule system.
    """

    def __init__(
        self,
        *,
        characters: CharacterLookup,
        defenses: DefenseResolver,
        dice: DiceRoller,
        announce: AnnounceSink,
        report_error: ErrorSink = _log_error,
    ) -> None:
        self._characters = characters
        self._defenses = defenses
        self._dice = dice
        self._announce = announce
        self._report_error = report_error

    def build_context(self, victim: Victim, config: TrapConfiguration) -> ActivationContext:
        return ActivationContext(victim=victim, character=self._characters(victim), config=config)

    async def resolve(self, victim: Victim, config: TrapConfiguration) -> ActivationResult:
        """Compute the activation outcome. Collaborator failures propagate."""

        context = self.build_context(victim, config)
        character = context.character
        attack = config.attack
        defense = config.defense
        if character is None or attack is None or defense is None:
            return ActivationResult.flavor_only(context)

        defense_value, roll = await asyncio.gather(
            self._defenses.resolve(character, defense),
            self._dice.roll(attack_expression(attack)),
        )
        defense_value = defense_value or 0
        trap_hit = roll.total >= defense_value
        log.debug(
            "Trap attack on %s: %s vs %s %s -> %s",
            character.name,
            roll.total,
            defense,
            defense_value,
            "hit" if trap_hit else "miss",
        )
        return ActivationResult(
            victim=victim,
            character=character,
            message=config.message,
            damage=config.damage,
            miss_half=config.miss_half,
            attack=attack,
            defense=defense,
            defense_value=defense_value,
            roll=roll,
            trap_hit=trap_hit,
        )

    async def activate(self, victim: Victim, config: TrapConfiguration) -> None:
        """Resolve and announce an activation without ever raising."""

        try:
            result = await self.resolve(victim, config)
            content = render_activation(result)
            announced = self._announce(content)
            if inspect.isawaitable(announced):
                await announced
        except Exception as exc:
            self._report_error(exc)
