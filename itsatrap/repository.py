"""Concurrency-safe persistence for trap configurations."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from .config import TrapConfiguration
from .editor import apply_command

__all__ = ["TrapRepository"]

log = logging.getLogger(__name__)


class TrapRepository:
    """Store one configuration document per trap, grouped by guild.

    Each trap's configuration is kept as a single opaque JSON string and is
    always replaced wholesale, never merged field by field.
    """

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path
        self._lock = asyncio.Lock()
        self._cache: Dict[str, Dict[str, str]] = {}
        self._loaded = False
        self._storage_serial: Optional[tuple[int, int]] = None

    async def _ensure_loaded(self) -> None:
        current_serial = await self._current_storage_serial()
        if self._loaded and self._storage_serial == current_serial:
            return
        if current_serial is None:
            self._storage_path.parent.mkdir(parents=True, exist_ok=True)
            self._cache = {}
            self._loaded = True
            self._storage_serial = None
            return
        self._cache = {}
        data = await asyncio.to_thread(self._storage_path.read_bytes)
        if data.strip():
            try:
                raw = json.loads(data.decode("utf-8"))
            except ValueError:
                log.warning("Ignoring unreadable trap storage at %s", self._storage_path)
            else:
                if isinstance(raw, dict):
                    self._cache = {
                        str(guild_id): {
                            str(name): document
                            for name, document in guild_bucket.items()
                            if isinstance(document, str)
                        }
                        for guild_id, guild_bucket in raw.items()
                        if isinstance(guild_bucket, dict)
                    }
        self._loaded = True
        self._storage_serial = current_serial

    async def _persist(self) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(self._cache, indent=2, sort_keys=True)
        await asyncio.to_thread(self._storage_path.write_text, text, encoding="utf-8")
        self._storage_serial = await self._current_storage_serial()
        self._loaded = True

    async def _current_storage_serial(self) -> Optional[tuple[int, int]]:
        if not self._storage_path.exists():
            return None
        stat_result = await asyncio.to_thread(self._storage_path.stat)
        mtime_ns = getattr(stat_result, "st_mtime_ns", None) or int(
            stat_result.st_mtime * 1_000_000_000
        )
        return (mtime_ns, stat_result.st_size)

    @staticmethod
    def _resolve_name(bucket: Dict[str, str], trap_name: str) -> Optional[str]:
        lowered = trap_name.strip().casefold()
        for existing in bucket:
            if existing.casefold() == lowered:
                return existing
        return None

    def _read(self, guild_id: int, trap_name: str) -> TrapConfiguration:
        bucket = self._cache.get(str(guild_id), {})
        key = self._resolve_name(bucket, trap_name)
        if key is None:
            return TrapConfiguration()
        return TrapConfiguration.from_document(bucket[key])

    async def _write(self, guild_id: int, trap_name: str, config: TrapConfiguration) -> None:
        bucket = self._cache.setdefault(str(guild_id), {})
        key = self._resolve_name(bucket, trap_name) or trap_name.strip()
        bucket[key] = config.to_document()
        await self._persist()

    async def get(self, guild_id: int, trap_name: str) -> TrapConfiguration:
        """Return the stored configuration, or an empty one for new traps."""

        async with self._lock:
            await self._ensure_loaded()
            return self._read(guild_id, trap_name)

    async def exists(self, guild_id: int, trap_name: str) -> bool:
        async with self._lock:
            await self._ensure_loaded()
            bucket = self._cache.get(str(guild_id), {})
            return self._resolve_name(bucket, trap_name) is not None

    async def save(self, guild_id: int, trap_name: str, config: TrapConfiguration) -> None:
        async with self._lock:
            await self._ensure_loaded()
            await self._write(guild_id, trap_name, config)

    async def edit(
        self,
        guild_id: int,
        trap_name: str,
        property_name: str,
        args: Sequence[str],
    ) -> TrapConfiguration:
        """Apply a property command and write the whole document back."""

        async with self._lock:
            await self._ensure_loaded()
            updated = apply_command(self._read(guild_id, trap_name), property_name, args)
            await self._write(guild_id, trap_name, updated)
            return updated

    async def delete(self, guild_id: int, trap_name: str) -> bool:
        async with self._lock:
            await self._ensure_loaded()
            bucket = self._cache.get(str(guild_id))
            if not bucket:
                return False
            key = self._resolve_name(bucket, trap_name)
            if key is None:
                return False
            del bucket[key]
            if not bucket:
                del self._cache[str(guild_id)]
            await self._persist()
            return True

    async def list_names(self, guild_id: int) -> tuple[str, ...]:
        async with self._lock:
            await self._ensure_loaded()
            return tuple(sorted(self._cache.get(str(guild_id), {}), key=str.casefold))
