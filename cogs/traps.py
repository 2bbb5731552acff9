"""Slash commands for configuring and springing traps."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import discord
from discord import app_commands
from discord.ext import commands

from itsatrap import (
    PROPERTY_NAMES,
    CharacterRoster,
    ContentLoadError,
    RandomDiceRoller,
    SheetDefenseResolver,
    TrapActivator,
    TrapConfiguration,
    TrapContent,
    TrapRepository,
    Victim,
    describe_properties,
)

log = logging.getLogger(__name__)

TRAP_COLOR = discord.Color(0xAA2222)
# Free-text properties take the whole argument string as a single value.
WHOLE_TEXT_PROPERTIES = frozenset({"damage"})
EMPTY_FIELD = "\u200b"

PROPERTY_CHOICES = [
    app_commands.Choice(name=name, value=name) for name in PROPERTY_NAMES
]


def split_arguments(property_name: str, arguments: str) -> list[str]:
    text = arguments.strip()
    if property_name in WHOLE_TEXT_PROPERTIES:
        return [text] if text else []
    return text.split()


def build_activation_embed(trap_name: str, content: TrapContent) -> discord.Embed:
    """Lay out rendered activation blocks as a Discord embed."""

    flavor = " ".join(block.text for block in content.find("flavor") if block.text)
    embed = discord.Embed(
        title=trap_name,
        description=flavor or None,
        color=TRAP_COLOR,
    )
    verdict: Optional[str] = None
    details: list[str] = []
    for block in content.blocks:
        if block.kind == "roll-summary":
            embed.add_field(name=block.label, value=block.text, inline=False)
        elif block.kind == "verdict":
            verdict = block.label
        elif block.kind in {"damage", "effect"}:
            details.append(f"{block.label}: {block.text}" if block.label else block.text)
    if verdict is not None:
        embed.add_field(name=verdict, value="\n".join(details) or EMPTY_FIELD, inline=False)
    return embed


def build_properties_embed(trap_name: str, config: TrapConfiguration) -> discord.Embed:
    embed = discord.Embed(
        title=trap_name,
        description=config.message or "No flavor message set.",
        color=TRAP_COLOR,
    )
    for prop in describe_properties(config):
        value = prop.value
        if prop.options:
            value = f"{value} ({'/'.join(prop.options)})"
        embed.add_field(name=prop.name, value=value, inline=True)
    embed.set_footer(
        text="Attacks are rolled automatically." if config.automated else "Attacks are not automated."
    )
    return embed


class Traps(commands.GroupCog, name="trap", description="Configure and spring traps"):
    def __init__(self, bot: commands.Bot) -> None:
        super().__init__()
        self.bot = bot
        settings = getattr(bot, "settings", None)
        traps_file = settings.traps_file if settings else Path("data") / "traps.json"
        self.characters_path = settings.characters_path if settings else Path("content") / "characters"
        self.repository = TrapRepository(traps_file)
        self.roster = CharacterRoster()
        self.dice = RandomDiceRoller()
        self.defenses = SheetDefenseResolver()
        self._content_error: ContentLoadError | None = None
        self._load_characters(silent=True)

    def _load_characters(self, *, silent: bool = False) -> None:
        try:
            roster = CharacterRoster.load_from_path(self.characters_path)
        except ContentLoadError as exc:
            self._content_error = exc
            log.warning("Character content failed to load: %s", exc)
            if not silent:
                raise
        else:
            self.roster = roster
            self._content_error = None

    def make_activator(self, announce, report_error) -> TrapActivator:
        return TrapActivator(
            characters=self.roster.resolve,
            defenses=self.defenses,
            dice=self.dice,
            announce=announce,
            report_error=report_error,
        )

    async def _require_guild(self, interaction: discord.Interaction) -> Optional[int]:
        if interaction.guild_id is None:
            await interaction.response.send_message(
                "Traps can only be managed inside a server.",
                ephemeral=True,
            )
            return None
        return interaction.guild_id

    @app_commands.command(name="set", description="Change one of a trap's properties.")
    @app_commands.describe(
        trap="Name of the trap to configure.",
        prop="Property to change.",
        arguments="New value, e.g. '5 ref' for an attack or '2d6' for damage.",
    )
    @app_commands.rename(prop="property")
    @app_commands.choices(prop=PROPERTY_CHOICES)
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def set_property(
        self,
        interaction: discord.Interaction,
        trap: str,
        prop: str,
        arguments: str = "",
    ) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        config = await self.repository.edit(
            guild_id, trap, prop, split_arguments(prop, arguments)
        )
        log.info("Trap '%s' in guild %s updated %s", trap, guild_id, prop)
        await interaction.response.send_message(
            embed=build_properties_embed(trap, config),
            ephemeral=True,
        )

    @app_commands.command(name="message", description="Set the text shown whenever the trap fires.")
    @app_commands.describe(trap="Name of the trap.", text="Flavor text for the trap.")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def set_message(self, interaction: discord.Interaction, trap: str, text: str) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        config = await self.repository.get(guild_id, trap)
        config = config.with_message(text)
        await self.repository.save(guild_id, trap, config)
        await interaction.response.send_message(
            embed=build_properties_embed(trap, config),
            ephemeral=True,
        )

    @app_commands.command(name="show", description="Show a trap's configuration.")
    @app_commands.describe(trap="Name of the trap.")
    @app_commands.default_permissions(manage_guild=True)
    async def show(self, interaction: discord.Interaction, trap: str) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        if not await self.repository.exists(guild_id, trap):
            await interaction.response.send_message(
                f"No trap named '{trap}' has been configured.",
                ephemeral=True,
            )
            return
        config = await self.repository.get(guild_id, trap)
        await interaction.response.send_message(
            embed=build_properties_embed(trap, config),
            ephemeral=True,
        )

    @app_commands.command(name="trigger", description="Spring a trap on a victim.")
    @app_commands.describe(
        trap="Name of the trap that fires.",
        victim="Character (or token name) caught by the trap.",
    )
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def trigger(self, interaction: discord.Interaction, trap: str, victim: str) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        if not await self.repository.exists(guild_id, trap):
            await interaction.response.send_message(
                f"No trap named '{trap}' has been configured.",
                ephemeral=True,
            )
            return
        await interaction.response.defer(thinking=True)
        config = await self.repository.get(guild_id, trap)
        failures: list[BaseException] = []

        async def announce(content: TrapContent) -> None:
            await interaction.followup.send(embed=build_activation_embed(trap, content))

        def report_error(error: BaseException) -> None:
            failures.append(error)
            log.error("Trap '%s' failed to resolve against %s", trap, victim, exc_info=error)

        activator = self.make_activator(announce, report_error)
        await activator.activate(Victim(name=victim, represents=victim), config)
        if failures:
            await interaction.followup.send(
                "The trap failed to resolve. Check the bot logs for details.",
                ephemeral=True,
            )

    @app_commands.command(name="remove", description="Delete a trap's configuration.")
    @app_commands.describe(trap="Name of the trap.")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def remove(self, interaction: discord.Interaction, trap: str) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        removed = await self.repository.delete(guild_id, trap)
        message = f"Removed trap '{trap}'." if removed else f"No trap named '{trap}' was found."
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="reload", description="Reload character sheets from disk.")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def reload(self, interaction: discord.Interaction) -> None:
        try:
            self._load_characters(silent=False)
        except ContentLoadError as exc:
            await interaction.response.send_message(f"Failed to reload characters: {exc}", ephemeral=True)
            return
        await interaction.response.send_message(
            f"Loaded {len(self.roster)} characters.",
            ephemeral=True,
        )

    @show.autocomplete("trap")
    @trigger.autocomplete("trap")
    @remove.autocomplete("trap")
    @set_property.autocomplete("trap")
    @set_message.autocomplete("trap")
    async def trap_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> Iterable[app_commands.Choice[str]]:
        if interaction.guild_id is None:
            return []
        names = await self.repository.list_names(interaction.guild_id)
        filtered = [name for name in names if current.lower() in name.lower()][:25]
        return [app_commands.Choice(name=name, value=name) for name in filtered]

    @trigger.autocomplete("victim")
    async def victim_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> Iterable[app_commands.Choice[str]]:
        filtered = [name for name in self.roster.names() if current.lower() in name.lower()][:25]
        return [app_commands.Choice(name=name, value=name) for name in filtered]


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Traps(bot))
