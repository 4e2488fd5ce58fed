"""Router listener Cog for Flagkeeper.

This cog has exactly ONE responsibility: forward Discord message and raw
reaction events to the command and reaction routers.

Parsing, permission checks and error handling live in the routers and the
handlers they call, NOT here.
"""

import discord
from discord.ext import commands

from flagkeeper.bot.command_router import CommandRouter
from flagkeeper.bot.reaction_router import ReactionAction, ReactionRouter
from flagkeeper.util.logger import get_logger

logger = get_logger("router_listener_cog")


class RouterListenerCog(commands.Cog):
    """Thin event listener in front of the routers."""

    def __init__(
        self,
        bot: discord.Bot,
        command_router: CommandRouter,
        reaction_router: ReactionRouter,
    ) -> None:
        self.bot = bot
        self._command_router = command_router
        self._reaction_router = reaction_router
        logger.info("[ROUTER LISTENER] Router listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        await self._command_router.on_message(message)

    @commands.Cog.listener(name="on_raw_reaction_add")
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await self._reaction_router.on_raw_reaction(payload, ReactionAction.ADD)

    @commands.Cog.listener(name="on_raw_reaction_remove")
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        await self._reaction_router.on_raw_reaction(payload, ReactionAction.REMOVE)


def setup(
    bot: discord.Bot,
    command_router: CommandRouter,
    reaction_router: ReactionRouter,
) -> None:
    """Register the RouterListenerCog with the bot."""
    bot.add_cog(RouterListenerCog(bot, command_router, reaction_router))
