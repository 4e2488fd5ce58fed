"""Event listener Cog for Flagkeeper.

This cog has exactly ONE responsibility: handle bot lifecycle events
(on_ready, on_guild_join, on_guild_remove).
"""

import discord
from discord.ext import commands

from flagkeeper.scheduler.overview_scheduler import OverviewScheduler
from flagkeeper.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, scheduler: OverviewScheduler) -> None:
        self.bot = bot
        self.scheduler = scheduler
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """Set bot presence and make sure the overview scheduler runs."""
        if not self.bot.user:
            logger.warning(
                "[EVENTS LISTENER] Bot partially connected - user info not yet available."
            )
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="the scoreboard",
            ),
        )
        logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

        # on_ready fires again after reconnects; start() ignores repeats
        if not self.scheduler.is_running:
            self.scheduler.start(self.bot)

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("[EVENTS LISTENER] Bot joined guild: %s (ID: %s)", guild.name, guild.id)

    @commands.Cog.listener(name="on_guild_remove")
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        # Facts are kept; they are harmless and restore state if the bot is re-invited
        logger.info("[EVENTS LISTENER] Bot removed from guild: %s (ID: %s)", guild.name, guild.id)


def setup(bot: discord.Bot, scheduler: OverviewScheduler) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, scheduler))
