import asyncio
import json
from pathlib import Path

import pytest

from itsatrap.characters import Character, SchemaError, Victim
from itsatrap.defenses import SheetDefenseResolver
from itsatrap.roster import CharacterRoster, ContentLoadError


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_yaml_and_json_characters(tmp_path: Path) -> None:
    _write(
        tmp_path / "party.yaml",
        "- key: brunhild\n  name: Brunhild\n  attributes:\n    AC: 18\n    ref: 13\n"
        "- name: Kestrel\n  attributes: {ac: 16}\n",
    )
    _write(tmp_path / "orrin.json", json.dumps({"name": "Orrin the Grey", "attributes": {"will": 18}}))
    _write(tmp_path / "notes.txt", "ignored")

    roster = CharacterRoster.load_from_path(tmp_path)
    assert len(roster) == 3
    assert roster.get("BRUNHILD").attribute("ac") == 18
    assert roster.get("Kestrel").key == "party-1"
    assert roster.get("orrin the grey").key == "orrin"
    assert set(roster.names()) == {"Brunhild", "Kestrel", "Orrin the Grey"}


def test_missing_directory_loads_empty_roster(tmp_path: Path) -> None:
    assert len(CharacterRoster.load_from_path(tmp_path / "nope")) == 0


def test_bad_attribute_raises_content_error(tmp_path: Path) -> None:
    _write(tmp_path / "bad.yaml", "name: Broken\nattributes:\n  ac: lots\n")
    with pytest.raises(ContentLoadError) as excinfo:
        CharacterRoster.load_from_path(tmp_path)
    assert excinfo.value.path == tmp_path / "bad.yaml"


def test_unparseable_file_raises_content_error(tmp_path: Path) -> None:
    _write(tmp_path / "bad.json", "{nope")
    with pytest.raises(ContentLoadError):
        CharacterRoster.load_from_path(tmp_path)


def test_duplicate_keys_raise_content_error(tmp_path: Path) -> None:
    _write(tmp_path / "a.yaml", "key: twin\nname: Twin\n")
    _write(tmp_path / "b.yaml", "key: twin\nname: Other Twin\n")
    with pytest.raises(ContentLoadError):
        CharacterRoster.load_from_path(tmp_path)


def test_character_from_mapping_rejects_non_mapping() -> None:
    with pytest.raises(SchemaError):
        Character.from_mapping("x", ["not", "a", "mapping"])  # type: ignore[arg-type]


def test_resolve_victim_never_raises() -> None:
    roster = CharacterRoster()
    roster.register(Character(key="hero", name="Hero"))
    assert roster.resolve(Victim(name="Token", represents="hero")) is not None
    assert roster.resolve(Victim(name="Token", represents="Hero")) is not None
    assert roster.resolve(Victim(name="Token", represents="villain")) is None
    assert roster.resolve(Victim(name="Barrel")) is None


def test_sheet_defense_resolver_reads_attributes() -> None:
    character = Character(key="hero", name="Hero", attributes={"ac": 17, "will": 14})
    resolver = SheetDefenseResolver()

    async def run() -> tuple:
        return (
            await resolver.resolve(character, "ac"),
            await resolver.resolve(character, "WILL"),
            await resolver.resolve(character, "fort"),
            await resolver.resolve(character, "luck"),
        )

    assert asyncio.run(run()) == (17, 14, None, None)


def test_sheet_defense_resolver_custom_mapping() -> None:
    character = Character(key="hero", name="Hero", attributes={"armor_class": 12})
    resolver = SheetDefenseResolver({"ac": "armor_class"})
    assert asyncio.run(resolver.resolve(character, "ac")) == 12
