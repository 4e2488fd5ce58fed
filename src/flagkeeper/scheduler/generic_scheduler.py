"""Generic scheduler for periodic per-guild tasks.

Provides a reusable async task runner that, on a fixed interval, selects a set
of guilds and calls a user-supplied coroutine for each of them. Guilds are
processed one after another; a failure in one guild is logged and the rest of
the tick carries on. Handles lifecycle (start/shutdown) and standard error
handling.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional

import discord

from flagkeeper.util.logger import get_logger

logger = get_logger("guild_scheduler")

GuildSelector = Callable[[discord.Client], Awaitable[Iterable[discord.Guild]]]


async def _all_guilds(bot: discord.Client) -> Iterable[discord.Guild]:
    return list(bot.guilds)


class GuildIntervalScheduler:
    """
    Reusable scheduler for periodic per-guild operations.

    Args:
        name: Human-readable name for logging (e.g., "overview").
        per_guild_coro: Async callable that accepts a single `discord.Guild` argument.
        get_interval: Callable returning the interval in seconds (called at start).
        select_guilds: Async callable choosing the guilds of one tick; all
            guilds the bot is in by default.
    """

    def __init__(
        self,
        name: str,
        per_guild_coro: Callable[[discord.Guild], Awaitable[Any]],
        get_interval: Callable[[], float],
        select_guilds: Optional[GuildSelector] = None,
    ) -> None:
        self._name = name
        self._per_guild_coro = per_guild_coro
        self._get_interval = get_interval
        self._select_guilds = select_guilds or _all_guilds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, bot: discord.Client) -> int:
        """Run one tick; return how many guilds were processed without error."""
        succeeded = 0
        for guild in await self._select_guilds(bot):
            try:
                await self._per_guild_coro(guild)
                succeeded += 1
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("[%s] Failed for guild %s: %s", self._name, getattr(guild, "name", guild), exc)
        return succeeded

    async def _run_loop(self, bot: discord.Client, interval: float) -> None:
        """Infinite loop: sleep, run a tick, repeat."""
        logger.info("[%s] Starting periodic task (interval=%.1fs)", self._name, interval)
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await self.run_once(bot)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[%s] Unexpected error during tick: %s", self._name, exc)
        except asyncio.CancelledError:
            logger.info("[%s] Periodic task cancelled", self._name)
            raise

    def start(self, bot: discord.Client) -> None:
        """Start the background task if not already running."""
        if self.is_running:
            logger.warning("[%s] Task already running", self._name)
            return
        interval = self._get_interval()
        logger.info("[%s] Creating task with interval %.1fs", self._name, interval)
        self._task = asyncio.create_task(self._run_loop(bot, interval))

    async def shutdown(self) -> None:
        """Stop the background task and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        logger.info("[%s] Scheduler shutdown complete", self._name)
