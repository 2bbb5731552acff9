"""Defense lookups for the supported rule systems."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from .characters import Character

__all__ = [
    "D20_4E_DEFENSES",
    "DefenseResolver",
    "SheetDefenseResolver",
]

D20_4E_DEFENSES: Mapping[str, str] = {
    "ac": "ac",
    "fort": "fort",
    "ref": "ref",
    "will": "will",
}


class DefenseResolver(Protocol):
    """Look up a character's value for a named defense."""

    async def resolve(self, character: Character, defense_name: str) -> Optional[int]:
        ...


class SheetDefenseResolver:
    """Read defenses straight off character sheet attributes.

    ``attribute_map`` maps each defense name a trap may target to the sheet
    attribute holding it. Defenses missing from the map or the sheet resolve
    to ``None``.
    """

    def __init__(self, attribute_map: Mapping[str, str] = D20_4E_DEFENSES) -> None:
        self._attribute_map = {
            defense.strip().lower(): attribute for defense, attribute in attribute_map.items()
        }

    async def resolve(self, character: Character, defense_name: str) -> Optional[int]:
        attribute = self._attribute_map.get(defense_name.strip().lower())
        if attribute is None:
            return None
        return character.attribute(attribute)
