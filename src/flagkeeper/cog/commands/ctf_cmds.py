"""
CTF command set.

Registers the prefix commands on the CommandRouter:

- admin: clear, notify, start, stop, active, delete
- everyone: ctf, new, solve, overview

Admin commands need Manage Channels in the active CTF category (or, when no
category is active yet, in the category the command is typed in).
Precondition failures raise UserFacingError and reach the user verbatim.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from flagkeeper.bot.command_router import CommandRouter
from flagkeeper.challenge.challenge_manager import ChallengeManager, SolveOutcome
from flagkeeper.challenge.overview import compose_overview
from flagkeeper.datatypes.command_datatypes import (
    CommandResult,
    HandlerParams,
    Ok,
    Rejected,
    UserFacingError,
)
from flagkeeper.datatypes.discord_datatypes import ChannelID, GuildID
from flagkeeper.datatypes.guild_config import RUNNING, STOPPED, Predicate
from flagkeeper.notification.broadcaster import Broadcaster
from flagkeeper.ui.confirmation import confirm
from flagkeeper.util.discord_utils import has_manage_channels, is_text_channel
from flagkeeper.util.logger import get_logger

logger = get_logger("ctf_commands")

MAX_DELETE = 100


def _require_guild(message: discord.Message) -> discord.Guild:
    if message.guild is None:
        raise UserFacingError("Error: this command only works inside a server")
    return message.guild


class CtfCommandsCog(commands.Cog):
    """Prefix commands for running a CTF."""

    def __init__(
        self,
        bot: discord.Bot,
        router: CommandRouter,
        challenges: ChallengeManager,
        broadcaster: Broadcaster,
    ) -> None:
        self.bot = bot
        self.challenges = challenges
        self.broadcaster = broadcaster
        self.register(router)
        logger.info("[CTF CMDS] CTF commands loaded")

    def register(self, router: CommandRouter) -> None:
        router.add_command("clear", "Clear all roles starting with `chall-` and the voice channels of the active CTF (Admin)", self.clear)
        router.add_command("notify", "Set notification channel, CTF events will be sent to the channel. (Admin)", self.notify)
        router.add_command("start", "Start the competition, an overview is broadcast every hour. (Admin)", self.start)
        router.add_command("stop", "Stop the scheduled overview broadcast. (Admin)", self.stop)
        router.add_command("active", "Make current category as active CTF. (Admin)", self.active)
        router.add_command("delete", "Delete the last <count> (1-100) messages of this channel after confirmation. (Admin)", self.delete)
        router.add_command("ctf", "Query current active CTF.", self.ctf)
        router.add_command("new", "Create a new challenge in the current active CTF.", self.new_challenge)
        router.add_command("solve", "Solve current challenge, will remove the voice channel and role with the same name.", self.solve)
        router.add_command("overview", "List all challenges and users on each challenge.", self.overview)

    # ------------------------------------------------------------------
    # Permission helpers
    # ------------------------------------------------------------------

    async def _require_admin(self, message: discord.Message, invoking_category: bool = False) -> discord.Guild:
        guild = _require_guild(message)

        category = None
        if not invoking_category:
            category = await self.challenges.find_active_category(guild)
        if category is None:
            category = getattr(message.channel, "category", None)

        if not has_manage_channels(message.author, category):
            logger.info("[CTF CMDS] Permission denied for %s in guild %s", message.author, guild.id)
            raise UserFacingError("Permission denied")
        return guild

    # ------------------------------------------------------------------
    # Admin commands
    # ------------------------------------------------------------------

    async def clear(self, params: HandlerParams) -> CommandResult:
        guild = await self._require_admin(params.message)
        result = await self.challenges.clear(guild)
        await params.reply(
            f"Clear done: removed {result.roles} role(s) and {result.voice_channels} voice channel(s)"
        )
        return Ok()

    async def notify(self, params: HandlerParams) -> CommandResult:
        guild = await self._require_admin(params.message)

        target = ChannelID.parse(params.rest)
        if target is None:
            return Rejected("Usage: notify <#channel>")

        channel = guild.get_channel(target.to_int())
        if channel is None or not is_text_channel(channel):
            return Rejected(f"Error: <#{target}> is not a text channel of this server")

        await params.store.upsert(GuildID.from_guild(guild), Predicate.NOTIFY_CHANNEL, str(target))
        await params.reply(f"Notification will be sent to <#{target}>")
        return Ok()

    async def start(self, params: HandlerParams) -> CommandResult:
        guild = await self._require_admin(params.message)
        category = await self.challenges.get_active_category(guild)
        await params.store.upsert(GuildID.from_guild(guild), Predicate.COMPETITION_RUNNING, RUNNING)
        await params.reply(f"Competition {category.name} started, overview will be broadcast periodically")
        return Ok()

    async def stop(self, params: HandlerParams) -> CommandResult:
        guild = await self._require_admin(params.message)
        await params.store.upsert(GuildID.from_guild(guild), Predicate.COMPETITION_RUNNING, STOPPED)
        await params.reply("Competition stopped, overview broadcast disabled")
        return Ok()

    async def active(self, params: HandlerParams) -> CommandResult:
        message = params.message
        guild = await self._require_admin(message, invoking_category=True)

        category = getattr(message.channel, "category", None)
        if category is None:
            return Rejected("Error: category not found")

        logger.info("[CTF CMDS] guild: %s active ctf: %s by %s", guild.name, category.name, message.author)
        category_id = ChannelID.from_channel(category)
        await params.store.upsert(GuildID.from_guild(guild), Predicate.ACTIVE_CATEGORY, str(category_id))
        await params.reply(f"Current active CTF is set to {category.name}")
        return Ok()

    async def delete(self, params: HandlerParams) -> CommandResult:
        message = params.message
        await self._require_admin(message)

        try:
            count = int(params.rest.strip())
        except ValueError:
            count = 0
        if not 1 <= count <= MAX_DELETE:
            return Rejected(f"Usage: delete <count 1..{MAX_DELETE}>")

        channel = message.channel
        if not is_text_channel(channel):
            return Rejected("Error: messages can only be deleted in text channels")

        if not await confirm(self.bot, message, f"delete the last {count} message(s) in this channel?"):
            await params.reply("Delete cancelled")
            return Ok()

        to_delete = [m async for m in channel.history(limit=count, before=message)]
        if to_delete:
            await channel.delete_messages(to_delete)
        logger.info("[CTF CMDS] %s deleted %d message(s) in #%s", message.author, len(to_delete), channel.name)
        await params.reply(f"Deleted {len(to_delete)} message(s)")
        return Ok()

    # ------------------------------------------------------------------
    # Everyone
    # ------------------------------------------------------------------

    async def ctf(self, params: HandlerParams) -> CommandResult:
        guild = _require_guild(params.message)
        category = await self.challenges.get_active_category(guild)
        await params.reply(f"Current active CTF is {category.name}")
        return Ok()

    async def new_challenge(self, params: HandlerParams) -> CommandResult:
        guild = _require_guild(params.message)
        logger.info("[CTF CMDS] New challenge: %s by %s", params.rest, params.message.author)

        channel = await self.challenges.create(guild, params.rest)

        text = f"Challenge {channel.mention} created"
        await params.reply(text)
        await self.broadcaster.notify(guild, text)
        return Ok()

    async def solve(self, params: HandlerParams) -> CommandResult:
        message = params.message
        guild = _require_guild(message)
        channel = message.channel

        outcome = await self.challenges.solve(channel)

        if outcome is SolveOutcome.NOT_ACTIVE:
            await params.reply(f"{message.author.mention} current channel's CTF is not active")
        elif outcome is SolveOutcome.ALREADY_SOLVED:
            await params.reply(f"Challenge {channel.mention} is already solved")
        elif outcome is SolveOutcome.INCONSISTENT:
            return Rejected(
                f"Error: challenge {channel.name} is in an inconsistent state "
                "(only one of its voice channel and role exists), please fix it manually"
            )
        else:
            text = f"Challenge {channel.mention} solved"
            await params.reply(text)
            await self.broadcaster.broadcast_overview(guild)
            await self.broadcaster.notify(guild, text)
        return Ok()

    async def overview(self, params: HandlerParams) -> CommandResult:
        guild = _require_guild(params.message)
        category = await self.challenges.get_active_category(guild)
        await params.reply(compose_overview(guild, category.id))
        return Ok()


def setup(
    bot: discord.Bot,
    router: CommandRouter,
    challenges: ChallengeManager,
    broadcaster: Broadcaster,
) -> None:
    """Register the CtfCommandsCog with the bot."""
    bot.add_cog(CtfCommandsCog(bot, router, challenges, broadcaster))
