"""Trap configuration record and its stored document form."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping

__all__ = [
    "DEFENSE_NAMES",
    "TrapConfiguration",
]

DEFENSE_NAMES: tuple[str, ...] = ("ac", "fort", "ref", "will")

_KNOWN_KEYS = frozenset({"attack", "defense", "damage", "missHalf", "spotDC", "message"})


def _optional_int(value: object) -> int | None:
    # bool is an int subclass but never a valid bonus or DC.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class TrapConfiguration:
    """Settings attached to a single trap.

    ``attack`` and ``defense`` are either both set or both unset; an attack
    bonus without a defense to roll against cannot be resolved.
    """

    attack: int | None = None
    defense: str | None = None
    damage: str | None = None
    miss_half: bool = False
    spot_dc: int | None = None
    message: str = ""
    extras: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if (self.attack is None) != (self.defense is None):
            object.__setattr__(self, "attack", None)
            object.__setattr__(self, "defense", None)

    @property
    def automated(self) -> bool:
        """Whether activations roll an attack against the victim."""

        return self.attack is not None and self.defense is not None

    def with_message(self, message: str) -> "TrapConfiguration":
        return replace(self, message=message)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = dict(self.extras)
        if self.attack is not None:
            data["attack"] = self.attack
            data["defense"] = self.defense
        if self.damage is not None:
            data["damage"] = self.damage
        data["missHalf"] = self.miss_half
        if self.spot_dc is not None:
            data["spotDC"] = self.spot_dc
        data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "TrapConfiguration":
        extras = {
            str(key): value for key, value in raw.items() if key not in _KNOWN_KEYS
        }
        message = raw.get("message")
        return cls(
            attack=_optional_int(raw.get("attack")),
            defense=_optional_str(raw.get("defense")),
            damage=_optional_str(raw.get("damage")),
            miss_half=raw.get("missHalf") is True,
            spot_dc=_optional_int(raw.get("spotDC")),
            message=message if isinstance(message, str) else "",
            extras=extras,
        )

    def to_document(self) -> str:
        """Serialise the whole configuration as a single JSON document."""

        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_document(cls, text: str | None) -> "TrapConfiguration":
        if not text or not text.strip():
            return cls()
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            return cls()
        if not isinstance(raw, dict):
            return cls()
        return cls.from_dict(raw)
