"""Hourly overview digest for guilds with a running competition."""

from __future__ import annotations

from typing import List, Optional

import discord

from flagkeeper.configuration.app_configuration import app_config
from flagkeeper.datatypes.guild_config import RUNNING, Predicate
from flagkeeper.notification.broadcaster import Broadcaster
from flagkeeper.scheduler.generic_scheduler import GuildIntervalScheduler
from flagkeeper.store.fact_store import FactStore
from flagkeeper.util.logger import get_logger

logger = get_logger("overview_scheduler")


class OverviewScheduler:
    """
    Periodically broadcasts the overview digest.

    The set of guilds is read from the fact store on every tick, so ``start``
    and ``stop`` take effect from the next tick on without touching the task.
    """

    def __init__(
        self,
        store: FactStore,
        broadcaster: Broadcaster,
        interval: Optional[float] = None,
    ) -> None:
        self.store = store
        self.broadcaster = broadcaster
        self._scheduler = GuildIntervalScheduler(
            name="OVERVIEW",
            per_guild_coro=broadcaster.broadcast_overview,
            get_interval=lambda: interval if interval is not None else app_config.broadcast_interval,
            select_guilds=self.running_guilds,
        )

    async def running_guilds(self, bot: discord.Client) -> List[discord.Guild]:
        guilds = []
        for guild_id, value in await self.store.list_by_predicate(Predicate.COMPETITION_RUNNING):
            if value != RUNNING:
                continue
            guild = bot.get_guild(guild_id.to_int())
            if guild is None:
                logger.debug("[OVERVIEW] Guild %s is not available to the bot, skipping", guild_id)
                continue
            guilds.append(guild)
        return guilds

    @property
    def is_running(self) -> bool:
        return self._scheduler.is_running

    async def tick(self, bot: discord.Client) -> int:
        return await self._scheduler.run_once(bot)

    def start(self, bot: discord.Client) -> None:
        self._scheduler.start(bot)

    async def shutdown(self) -> None:
        await self._scheduler.shutdown()
