"""Trap configuration, activation and rendering."""

from .activation import ActivationContext, ActivationResult, TrapActivator
from .characters import Character, SchemaError, Victim
from .config import DEFENSE_NAMES, TrapConfiguration
from .defenses import D20_4E_DEFENSES, DefenseResolver, SheetDefenseResolver
from .dice import DiceExpressionError, DiceRoller, RandomDiceRoller, RollResult
from .editor import PROPERTY_NAMES, TrapProperty, apply_command, describe_properties
from .render import ContentBlock, TrapContent, render_activation
from .repository import TrapRepository
from .roster import CharacterRoster, ContentLoadError
from .settings import BotSettings

__all__ = [
    "ActivationContext",
    "ActivationResult",
    "BotSettings",
    "Character",
    "CharacterRoster",
    "ContentBlock",
    "ContentLoadError",
    "D20_4E_DEFENSES",
    "DEFENSE_NAMES",
    "DefenseResolver",
    "DiceExpressionError",
    "DiceRoller",
    "PROPERTY_NAMES",
    "RandomDiceRoller",
    "RollResult",
    "SchemaError",
    "SheetDefenseResolver",
    "TrapActivator",
    "TrapConfiguration",
    "TrapContent",
    "TrapProperty",
    "TrapRepository",
    "Victim",
    "apply_command",
    "describe_properties",
    "render_activation",
]
