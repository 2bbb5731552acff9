"""Environment driven bot settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

__all__ = ["BotSettings"]


@dataclass(frozen=True)
class BotSettings:
    token: str
    data_path: Path = Path("data")
    content_path: Path = Path("content")
    log_level: str = "INFO"

    @property
    def traps_file(self) -> Path:
        return self.data_path / "traps.json"

    @property
    def characters_path(self) -> Path:
        return self.content_path / "characters"

    @classmethod
    def from_env(cls) -> "BotSettings":
        load_dotenv()
        token = os.getenv("DISCORD_TOKEN")
        if not token:
            raise RuntimeError(
                "DISCORD_TOKEN environment variable is required. "
                "Set it in the .env file before starting the bot."
            )
        return cls(
            token=token,
            data_path=Path(os.getenv("TRAP_DATA_PATH") or "data"),
            content_path=Path(os.getenv("TRAP_CONTENT_PATH") or "content"),
            log_level=(os.getenv("TRAP_LOG_LEVEL") or "INFO").upper(),
        )
