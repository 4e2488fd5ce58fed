"""
Best-effort notifications to a guild's configured notification channel.

A guild that never ran ``notify`` simply gets no notifications; that is not
an error. Failures while looking up or sending are logged and swallowed so
a broken notification channel can never abort the command that triggered it.
"""

from __future__ import annotations

import discord

from flagkeeper.challenge.challenge_manager import ChallengeManager
from flagkeeper.challenge.overview import compose_overview
from flagkeeper.datatypes.discord_datatypes import GuildID
from flagkeeper.store.fact_store import FactStore
from flagkeeper.util.discord_utils import is_text_channel
from flagkeeper.util.logger import get_logger

logger = get_logger("broadcaster")


class Broadcaster:
    """Sends event notices and overview digests to notification channels."""

    def __init__(self, store: FactStore, challenges: ChallengeManager) -> None:
        self.store = store
        self.challenges = challenges

    async def notify(self, guild: discord.Guild, content: str) -> bool:
        """
        Send ``content`` to the guild's notification channel.

        Returns:
            bool: True if the message was delivered.
        """
        try:
            config = await self.store.load_guild_config(GuildID.from_guild(guild))
            channel_id = config.notify_channel_id
            if channel_id is None:
                return False

            channel = guild.get_channel(channel_id.to_int())
            if channel is None or not is_text_channel(channel):
                logger.debug("[BROADCASTER] Notify channel %s of guild %s is not a text channel", channel_id, guild.id)
                return False

            await channel.send(content)
            return True
        except Exception:
            logger.exception("[BROADCASTER] Failed to send notification to guild %s", guild.id)
            return False

    async def broadcast_overview(self, guild: discord.Guild) -> bool:
        """Send the open-challenge digest of the active category."""
        try:
            category = await self.challenges.find_active_category(guild)
        except Exception:
            logger.exception("[BROADCASTER] Could not load active category of guild %s", guild.id)
            return False

        if category is None:
            logger.debug("[BROADCASTER] Guild %s has no active category, skipping overview", guild.id)
            return False

        return await self.notify(guild, compose_overview(guild, category.id))
