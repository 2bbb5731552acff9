import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cogs import traps as traps_module
from cogs.traps import Traps, build_activation_embed, build_properties_embed, split_arguments
from itsatrap import BotSettings, TrapConfiguration
from itsatrap.characters import Character
from itsatrap.dice import DieRoll, RollResult
from itsatrap.render import ContentBlock, TrapContent


class DummyResponse:
    def __init__(self) -> None:
        self._done = False
        self.messages: list[dict] = []

    async def defer(self, *_, **__) -> None:
        self._done = True

    async def send_message(self, content: Optional[str] = None, **kwargs) -> None:
        self._done = True
        self.messages.append({"content": content, **kwargs})

    def is_done(self) -> bool:
        return self._done


class DummyFollowup:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send(self, content: Optional[str] = None, **kwargs) -> None:
        self.sent.append({"content": content, **kwargs})


class DummyInteraction:
    def __init__(self, *, guild_id: Optional[int] = 10) -> None:
        self.guild_id = guild_id
        self.user = SimpleNamespace(id=100)
        self.response = DummyResponse()
        self.followup = DummyFollowup()


class FixedDice:
    def __init__(self, total: int) -> None:
        self.total = total

    async def roll(self, expression: str) -> RollResult:
        return RollResult(expression=expression, total=self.total, dice=(DieRoll(20, self.total - 5),), modifier=5)


class BrokenDice:
    async def roll(self, expression: str) -> RollResult:
        raise ConnectionError("no dice today")


def _make_cog(tmp_path: Path) -> Traps:
    characters = tmp_path / "content" / "characters"
    characters.mkdir(parents=True)
    (characters / "hero.yaml").write_text("name: Hero\nattributes:\n  ac: 15\n", encoding="utf-8")
    settings = BotSettings(token="t", data_path=tmp_path / "data", content_path=tmp_path / "content")
    return Traps(SimpleNamespace(settings=settings))


def test_split_arguments_keeps_damage_whole() -> None:
    assert split_arguments("damage", " 2d6 + 3 ") == ["2d6 + 3"]
    assert split_arguments("damage", "  ") == []
    assert split_arguments("attack", "5  ref") == ["5", "ref"]


def test_cog_loads_character_content(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    assert list(cog.roster.names()) == ["Hero"]


def test_set_property_persists_and_replies(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    interaction = DummyInteraction()

    async def run() -> TrapConfiguration:
        await Traps.set_property.callback(cog, interaction, "Dart Trap", "attack", "5 ac")
        return await cog.repository.get(10, "Dart Trap")

    config = asyncio.run(run())
    assert (config.attack, config.defense) == (5, "ac")
    embed = interaction.response.messages[0]["embed"]
    assert embed.title == "Dart Trap"
    assert interaction.response.messages[0]["ephemeral"] is True


def test_commands_require_a_guild(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    interaction = DummyInteraction(guild_id=None)
    asyncio.run(Traps.trigger.callback(cog, interaction, "Pit", "Hero"))
    assert "inside a server" in interaction.response.messages[0]["content"]
    assert interaction.followup.sent == []


def test_trigger_announces_hit(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    cog.dice = FixedDice(20)
    interaction = DummyInteraction()

    async def run() -> None:
        await cog.repository.save(
            10, "Dart Trap", TrapConfiguration(attack=5, defense="ac", damage="1d4", message="Darts!")
        )
        await Traps.trigger.callback(cog, interaction, "Dart Trap", "hero")

    asyncio.run(run())
    assert len(interaction.followup.sent) == 1
    embed = interaction.followup.sent[0]["embed"]
    assert embed.description == "Darts!"
    assert [field.name for field in embed.fields] == ["Attack roll", "HIT!"]
    assert embed.fields[0].value == "20 (15) +5 vs ac 15"
    assert embed.fields[1].value == "Damage: 1d4"


def test_trigger_on_unknown_victim_shows_flavor_only(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    cog.dice = BrokenDice()
    interaction = DummyInteraction()

    async def run() -> None:
        await cog.repository.save(10, "Pit", TrapConfiguration(attack=5, defense="ac", message="A pit opens!"))
        await Traps.trigger.callback(cog, interaction, "Pit", "Mysterious Stranger")

    asyncio.run(run())
    embed = interaction.followup.sent[0]["embed"]
    assert embed.description == "A pit opens!"
    assert embed.fields == []


def test_trigger_failure_is_reported_to_game_master(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    cog = _make_cog(tmp_path)
    cog.dice = BrokenDice()
    interaction = DummyInteraction()

    async def run() -> None:
        await cog.repository.save(10, "Pit", TrapConfiguration(attack=5, defense="ac"))
        await Traps.trigger.callback(cog, interaction, "Pit", "Hero")

    with caplog.at_level("ERROR", logger=traps_module.__name__):
        asyncio.run(run())
    assert len(interaction.followup.sent) == 1
    assert "failed to resolve" in interaction.followup.sent[0]["content"]
    assert interaction.followup.sent[0]["ephemeral"] is True
    assert "no dice today" in caplog.text


def test_show_and_remove(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    interaction = DummyInteraction()

    async def run() -> None:
        await Traps.show.callback(cog, interaction, "Ghost")
        await Traps.set_message.callback(cog, interaction, "Ghost", "Boo!")
        await Traps.show.callback(cog, interaction, "ghost")
        await Traps.remove.callback(cog, interaction, "Ghost")
        await Traps.remove.callback(cog, interaction, "Ghost")

    asyncio.run(run())
    messages = interaction.response.messages
    assert "No trap named" in messages[0]["content"]
    assert messages[1]["embed"].description == "Boo!"
    assert messages[2]["embed"].description == "Boo!"
    assert messages[3]["content"] == "Removed trap 'Ghost'."
    assert messages[4]["content"] == "No trap named 'Ghost' was found."


def test_build_activation_embed_miss_without_details() -> None:
    content = TrapContent(
        (
            ContentBlock("flavor", "", "Swish."),
            ContentBlock("roll-summary", "Attack roll", "9 (4) +5 vs ref 13"),
            ContentBlock("verdict", "MISS!", ""),
        )
    )
    embed = build_activation_embed("Blade", content)
    assert [field.name for field in embed.fields] == ["Attack roll", "MISS!"]
    assert embed.fields[1].value == traps_module.EMPTY_FIELD


def test_build_properties_embed_lists_properties() -> None:
    config = TrapConfiguration(attack=2, defense="will", miss_half=True)
    embed = build_properties_embed("Mind Spike", config)
    values = {field.name: field.value for field in embed.fields}
    assert values["Attack Roll"] == "+2 vs will"
    assert values["Miss - Half Damage"] == "yes (yes/no)"
    assert embed.footer.text == "Attacks are rolled automatically."


def test_roster_character_is_used_for_defense(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    character = cog.roster.get("hero")
    assert isinstance(character, Character)
    assert asyncio.run(cog.defenses.resolve(character, "ac")) == 15


def test_trigger_refuses_unconfigured_trap(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    cog.dice = FixedDice(20)
    interaction = DummyInteraction()
    asyncio.run(Traps.trigger.callback(cog, interaction, "Nowhere", "Hero"))
    assert "No trap named 'Nowhere'" in interaction.response.messages[0]["content"]
    assert interaction.response.messages[0]["ephemeral"] is True
    assert interaction.followup.sent == []


def test_cog_stores_traps_in_configured_file(tmp_path: Path) -> None:
    cog = _make_cog(tmp_path)
    asyncio.run(cog.repository.save(10, "Pit", TrapConfiguration(message="Down")))
    assert (tmp_path / "data" / "traps.json").is_file()
