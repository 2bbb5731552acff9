"""Character sheets and the victims that may stand on a trap."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, MutableMapping

__all__ = ["Character", "SchemaError", "Victim"]


class SchemaError(ValueError):
    """Raised when character data fails validation."""


def _coerce_mapping(name: str, value: object) -> MutableMapping[str, object]:
    if isinstance(value, MutableMapping):
        return value
    if isinstance(value, Mapping):
        return dict(value)
    raise SchemaError(f"{name} must be a mapping")


@dataclass(frozen=True)
class Character:
    """A character sheet, reduced to the numeric attributes traps care about."""

    key: str
    name: str
    attributes: Mapping[str, int] = field(default_factory=dict)

    def attribute(self, name: str) -> int | None:
        return self.attributes.get(name.strip().lower())

    @classmethod
    def from_mapping(cls, key: str, data: Mapping[str, object]) -> "Character":
        mapping = _coerce_mapping("character", data)
        name = str(mapping.get("name") or key)
        attributes_raw = mapping.get("attributes", {})
        attributes: dict[str, int] = {}
        if attributes_raw:
            attribute_map = _coerce_mapping("attributes", attributes_raw)
            for attribute, value in attribute_map.items():
                try:
                    attributes[str(attribute).strip().lower()] = int(value)
                except (TypeError, ValueError) as exc:
                    raise SchemaError(
                        f"Attribute '{attribute}' of {name} must be a number"
                    ) from exc
        return cls(key=str(key).lower(), name=name, attributes=attributes)


@dataclass(frozen=True)
class Victim:
    """The token a trap fires at.

    ``represents`` names the character sheet behind the token; tokens without
    a sheet still trigger traps but never have attacks rolled against them.
    """

    name: str
    represents: str | None = None
