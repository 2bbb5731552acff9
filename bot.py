import logging
from pathlib import Path

import discord
from discord.ext import commands

from itsatrap import BotSettings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def get_cog_module_names(cogs_path: Path) -> list[str]:
    module_names: list[str] = []
    for path in cogs_path.glob("*.py"):
        if path.name.startswith("__"):
            continue
        module_names.append(f"cogs.{path.stem}")
    return module_names


async def load_cogs(bot: commands.Bot, cogs_path: Path) -> None:
    module_names = get_cog_module_names(cogs_path)
    for module_name in module_names:
        await bot.load_extension(module_name)
        logging.info("Loaded cog: %s", module_name)


class TrapBot(commands.Bot):
    """Bot subclass that only supports slash (application) commands."""

    def __init__(self, settings: BotSettings) -> None:
        intents = discord.Intents.default()
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )
        self.settings = settings
        self._cogs_path = Path(__file__).parent / "cogs"

    async def setup_hook(self) -> None:  # type: ignore[override]
        await load_cogs(self, self._cogs_path)
        logging.info("All cogs loaded")
        synced_commands = await self.tree.sync()
        logging.info("Synced %s application commands", len(synced_commands))

    async def process_commands(self, message: discord.Message) -> None:  # type: ignore[override]
        """Override to disable prefix command processing entirely."""
        return


def create_bot(settings: BotSettings) -> commands.Bot:
    return TrapBot(settings)


def main() -> None:
    settings = BotSettings.from_env()
    configure_logging(settings.log_level)
    bot = create_bot(settings)

    try:
        bot.run(settings.token)
    except KeyboardInterrupt:
        logging.info("Shutting down bot")


if __name__ == "__main__":
    main()
