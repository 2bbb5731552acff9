"""Loading and lookup of character sheets."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, MutableMapping, Optional, Sequence

import yaml

from .characters import Character, SchemaError, Victim

__all__ = ["CharacterRoster", "ContentLoadError"]

log = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


class ContentLoadError(RuntimeError):
    """Raised when character content could not be loaded from disk."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        if path is not None:
            message = f"{message} (source: {path})"
        super().__init__(message)
        self.path = path


class CharacterRoster:
    """Case-insensitive registry of characters, addressable by key or name."""

    def __init__(self) -> None:
        self._entries: Dict[str, Character] = {}
        self._aliases: Dict[str, str] = {}

    @staticmethod
    def _normalise(value: str) -> str:
        return value.strip().lower()

    def register(self, entry: Character, *, aliases: Iterable[str] = ()) -> None:
        identifier = self._normalise(entry.key)
        if identifier in self._entries:
            raise ValueError(f"Duplicate character '{entry.key}'")
        self._entries[identifier] = entry
        self._aliases[identifier] = identifier
        for alias in (*aliases, entry.name):
            self._aliases.setdefault(self._normalise(alias), identifier)

    def get(self, name: str) -> Character:
        if not name:
            raise KeyError("Name must be provided")
        identifier = self._normalise(name)
        target = self._aliases.get(identifier, identifier)
        try:
            return self._entries[target]
        except KeyError as exc:
            raise KeyError(f"Unknown character '{name}'") from exc

    def resolve(self, victim: Victim) -> Optional[Character]:
        """Return the sheet behind ``victim``, or ``None`` if it has none."""

        if not victim.represents:
            return None
        try:
            return self.get(victim.represents)
        except KeyError:
            return None

    def names(self) -> Sequence[str]:
        return tuple(character.name for character in self._entries.values())

    def __iter__(self) -> Iterator[Character]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def load_from_path(cls, base_path: Path) -> "CharacterRoster":
        """Build a roster from every structured file under ``base_path``."""

        roster = cls()
        for file_path, (key, mapping) in _iter_entries(base_path):
            try:
                character = Character.from_mapping(key, mapping)
            except SchemaError as exc:
                raise ContentLoadError(str(exc), path=file_path) from exc
            try:
                roster.register(character)
            except ValueError as exc:
                raise ContentLoadError(str(exc), path=file_path) from exc
        log.info("Loaded %s characters from %s", len(roster), base_path)
        return roster


def _iter_entries(base_path: Path) -> list[tuple[Path, tuple[str, MutableMapping[str, object]]]]:
    if not base_path.exists():
        return []
    files = sorted(
        file_path
        for file_path in base_path.iterdir()
        if file_path.is_file() and file_path.suffix.lower() in SUPPORTED_EXTENSIONS
    )
    entries: list[tuple[Path, tuple[str, MutableMapping[str, object]]]] = []
    for file_path in files:
        raw = _load_structured(file_path)
        if isinstance(raw, MutableMapping):
            mapping = dict(raw)
            entries.append((file_path, (_extract_key(file_path, mapping), mapping)))
        elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
            for index, element in enumerate(raw):
                if not isinstance(element, MutableMapping):
                    raise ContentLoadError(
                        "Expected mapping entries in character definition",
                        path=file_path,
                    )
                mapping = dict(element)
                key = _extract_key(file_path, mapping, suffix=str(index))
                entries.append((file_path, (key, mapping)))
        else:
            raise ContentLoadError(
                "Unsupported structure in character content: expected mapping or list of mappings",
                path=file_path,
            )
    return entries


def _load_structured(file_path: Path) -> object:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContentLoadError("Unable to read content file", path=file_path) from exc
    try:
        if file_path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ContentLoadError("Failed to parse structured content", path=file_path) from exc


def _extract_key(
    file_path: Path,
    mapping: Mapping[str, object],
    *,
    suffix: str | None = None,
) -> str:
    for field in ("id", "key", "slug"):
        value = mapping.get(field)
        if isinstance(value, str) and value.strip():
            return value
    stem = file_path.stem
    if suffix is not None:
        stem = f"{stem}-{suffix}"
    return stem
