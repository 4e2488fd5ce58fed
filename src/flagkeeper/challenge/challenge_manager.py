"""
Challenge lifecycle management.

A challenge named ``N`` is not stored anywhere; it *is* three Discord
resources under the active CTF category:

- text channel ``N``: the anchor, kept after the challenge is solved;
- voice channel ``N`` and role ``chall-N``: present while the challenge is
  open, both removed when it is solved.

Exactly one of voice/role existing is an inconsistent state. It is reported
to the user and left for an admin to fix by hand.

Every operation re-derives the challenge from live guild state through
``resolve_challenge`` and never caches it. Operations on the same
``(guild, name)`` pair are serialised with a ``KeyedLock``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import discord

from flagkeeper.bot.reaction_router import ReactionAction, ResolvedReaction
from flagkeeper.configuration.app_configuration import app_config
from flagkeeper.datatypes.command_datatypes import UserFacingError
from flagkeeper.datatypes.discord_datatypes import GuildID
from flagkeeper.store.fact_store import FactStore
from flagkeeper.util.discord_utils import (
    channel_category_id,
    channels_in_category,
    emoji_matches,
    is_ignored_author,
    is_text_channel,
)
from flagkeeper.util.keyed_lock import KeyedLock
from flagkeeper.util.logger import get_logger

logger = get_logger("challenge_manager")

CHALLENGE_ROLE_PREFIX = "chall-"
CHALLENGE_ROLE_COLOUR = discord.Colour.from_rgb(0, 255, 0)
FLAG_MESSAGE = "React to this message to get the role"


class ChallengeState(str, Enum):
    ABSENT = "absent"
    OPEN = "open"
    SOLVED = "solved"
    INCONSISTENT = "inconsistent"


class SolveOutcome(str, Enum):
    SOLVED = "solved"
    ALREADY_SOLVED = "already_solved"
    INCONSISTENT = "inconsistent"
    NOT_ACTIVE = "not_active"


@dataclass(slots=True)
class ChallengeResources:
    """Live Discord resources backing one challenge name."""

    text: Optional[discord.TextChannel] = None
    voice: Optional[discord.VoiceChannel] = None
    role: Optional[discord.Role] = None

    @property
    def state(self) -> ChallengeState:
        if (self.voice is None) != (self.role is None):
            return ChallengeState.INCONSISTENT
        if self.voice is not None:
            return ChallengeState.OPEN if self.text is not None else ChallengeState.INCONSISTENT
        return ChallengeState.SOLVED if self.text is not None else ChallengeState.ABSENT


@dataclass(slots=True)
class ClearResult:
    roles: int = 0
    voice_channels: int = 0


def challenge_role_name(name: str) -> str:
    return f"{CHALLENGE_ROLE_PREFIX}{name}"


def normalize_challenge_name(raw: str) -> str:
    """
    Validate a user-supplied challenge name.

    Names are lower-cased because Discord lower-cases text channel names and
    the role is matched by the text channel's name later on.

    Raises:
        UserFacingError: If the name is empty or contains whitespace.
    """
    name = raw.strip()
    if not name:
        raise UserFacingError("Usage: new <name>")
    if any(ch.isspace() for ch in name):
        raise UserFacingError("Error: challenge name can't contain whitespace")
    return name.lower()


def _find_channel(guild: discord.Guild, category_id: int, name: str, channel_type: discord.ChannelType):
    return next(
        (ch for ch in channels_in_category(guild, category_id, channel_type) if ch.name == name),
        None,
    )


def _has_other_text_channel(guild: discord.Guild, category_id: int, channel: discord.TextChannel) -> bool:
    return any(
        other.id != channel.id and other.name == channel.name
        for other in channels_in_category(guild, category_id, discord.ChannelType.text)
    )


def resolve_challenge(guild: discord.Guild, category_id: int, name: str) -> ChallengeResources:
    """Look up the text channel, voice channel and role for ``name``."""
    return ChallengeResources(
        text=_find_channel(guild, category_id, name, discord.ChannelType.text),
        voice=_find_channel(guild, category_id, name, discord.ChannelType.voice),
        role=discord.utils.get(guild.roles, name=challenge_role_name(name)),
    )


def open_challenge_channels(guild: discord.Guild, category_id: int) -> List[discord.TextChannel]:
    """Text channels under the category whose challenge role still exists, in order."""
    return [
        channel
        for channel in channels_in_category(guild, category_id, discord.ChannelType.text)
        if discord.utils.get(guild.roles, name=challenge_role_name(channel.name)) is not None
    ]


class ChallengeManager:
    """
    Create, solve and clear challenges, and keep challenge roles in sync
    with flag reactions.

    Args:
        store: Fact store holding the guild's active category.
        flag_emoji: Opt-in reaction; defaults to the configured one.
        locks: Mutex registry shared by lifecycle operations.
    """

    def __init__(
        self,
        store: FactStore,
        flag_emoji: Optional[str] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.store = store
        self.flag_emoji = flag_emoji or app_config.flag_emoji
        self._locks = locks or KeyedLock()

    # ------------------------------------------------------------------
    # Active category
    # ------------------------------------------------------------------

    async def find_active_category(self, guild: discord.Guild) -> Optional[discord.CategoryChannel]:
        """Return the active category, or None when unset or deleted."""
        config = await self.store.load_guild_config(GuildID.from_guild(guild))
        category_id = config.active_category_id
        if category_id is None:
            return None

        category = guild.get_channel(category_id.to_int())
        if category is None or getattr(category, "type", None) != discord.ChannelType.category:
            logger.warning("[CHALLENGE] Active category %s of guild %s no longer exists", category_id, guild.id)
            return None
        return category

    async def get_active_category(self, guild: discord.Guild) -> discord.CategoryChannel:
        """
        Raises:
            UserFacingError: If the guild has no usable active category.
        """
        category = await self.find_active_category(guild)
        if category is None:
            raise UserFacingError("Current active CTF is not set")
        return category

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, guild: discord.Guild, raw_name: str) -> discord.TextChannel:
        """
        Create challenge ``raw_name`` in the active category.

        The text channel is created first and acts as the transaction anchor:
        if any later step fails, everything created so far is deleted again
        and the original exception is re-raised.

        Raises:
            UserFacingError: No active category, bad name, or the challenge exists.
        """
        name = normalize_challenge_name(raw_name)
        category = await self.get_active_category(guild)

        async with self._locks.hold((guild.id, name)):
            existing = resolve_challenge(guild, category.id, name)
            if existing.text is not None:
                raise UserFacingError(f"Challenge {name} already exists")

            text_channel = await guild.create_text_channel(
                name, category=category, reason="New challenge"
            )
            created: List[Union[discord.abc.GuildChannel, discord.Role]] = [text_channel]

            # Voice channel and role follow the name Discord gave the text channel.
            channel_name = text_channel.name

            try:
                if channel_name != name and _has_other_text_channel(guild, category.id, text_channel):
                    raise UserFacingError(f"Challenge {channel_name} already exists")

                voice_channel = await guild.create_voice_channel(
                    channel_name, category=category, reason="New challenge"
                )
                created.append(voice_channel)

                role = await guild.create_role(
                    name=challenge_role_name(channel_name),
                    colour=CHALLENGE_ROLE_COLOUR,
                    hoist=True,
                    mentionable=True,
                    reason="New challenge",
                )
                created.append(role)

                await self._place_after_open_challenges(guild, category, text_channel)

                flag_message = await text_channel.send(FLAG_MESSAGE)
                await flag_message.pin()
                await flag_message.add_reaction(self.flag_emoji)
            except Exception as exc:
                await self._rollback(channel_name, created, exc)
                raise

        logger.info("[CHALLENGE] Created %s in %s (guild %s)", channel_name, category.name, guild.id)
        return text_channel

    async def _place_after_open_challenges(
        self,
        guild: discord.Guild,
        category: discord.CategoryChannel,
        text_channel: discord.TextChannel,
    ) -> None:
        others = [ch for ch in open_challenge_channels(guild, category.id) if ch.id != text_channel.id]
        if not others:
            return
        await text_channel.edit(position=others[-1].position + 1)

    async def _rollback(
        self,
        name: str,
        created: List[Union[discord.abc.GuildChannel, discord.Role]],
        original: BaseException,
    ) -> None:
        logger.warning("[CHALLENGE] Creating %s failed (%r), rolling back %d resource(s)", name, original, len(created))
        for resource in reversed(created):
            try:
                await resource.delete(reason="Challenge creation rolled back")
            except Exception as exc:
                logger.error(
                    "[CHALLENGE] Rollback of %s for %s failed: %r (original failure: %r)",
                    getattr(resource, "name", resource),
                    name,
                    exc,
                    original,
                )

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    async def solve(self, channel: discord.abc.GuildChannel) -> SolveOutcome:
        """
        Mark the challenge behind ``channel`` as solved.

        Deletes the voice channel and role, then moves the text channel to
        the end of the category. The caller owns replies and notifications.

        Raises:
            UserFacingError: Not a guild text channel, or no active category.
        """
        guild = getattr(channel, "guild", None)
        if guild is None or not is_text_channel(channel):
            raise UserFacingError("Error: run this command inside a challenge text channel")

        category = await self.get_active_category(guild)
        if channel_category_id(channel) != category.id:
            return SolveOutcome.NOT_ACTIVE

        async with self._locks.hold((guild.id, channel.name)):
            resources = resolve_challenge(guild, category.id, channel.name)
            state = resources.state

            if state is ChallengeState.SOLVED:
                return SolveOutcome.ALREADY_SOLVED
            if state is not ChallengeState.OPEN:
                logger.warning(
                    "[CHALLENGE] %s is inconsistent (voice=%s, role=%s)",
                    channel.name,
                    resources.voice is not None,
                    resources.role is not None,
                )
                return SolveOutcome.INCONSISTENT

            await resources.voice.delete(reason="Challenge solved")
            await resources.role.delete(reason="Challenge solved")
            await self._move_to_end(guild, category, channel)

        logger.info("[CHALLENGE] Solved %s (guild %s)", channel.name, guild.id)
        return SolveOutcome.SOLVED

    async def _move_to_end(
        self,
        guild: discord.Guild,
        category: discord.CategoryChannel,
        channel: discord.TextChannel,
    ) -> None:
        text_channels = channels_in_category(guild, category.id, discord.ChannelType.text)
        if not text_channels or text_channels[-1].id == channel.id:
            return
        await channel.edit(position=text_channels[-1].position + 1)

    # ------------------------------------------------------------------
    # Clear
    # ------------------------------------------------------------------

    async def clear(self, guild: discord.Guild) -> ClearResult:
        """
        Delete every ``chall-*`` role, then every voice channel of the active category.

        Text channels are left alone. Without an active category only the
        roles are removed.
        """
        result = ClearResult()

        for role in [r for r in guild.roles if r.name.startswith(CHALLENGE_ROLE_PREFIX)]:
            await role.delete(reason="Deleted by clear")
            result.roles += 1

        category = await self.find_active_category(guild)
        if category is not None:
            for voice in channels_in_category(guild, category.id, discord.ChannelType.voice):
                await voice.delete(reason="Deleted by clear")
                result.voice_channels += 1

        logger.info(
            "[CHALLENGE] Cleared guild %s: %d role(s), %d voice channel(s)",
            guild.id,
            result.roles,
            result.voice_channels,
        )
        return result

    # ------------------------------------------------------------------
    # Reaction -> role sync
    # ------------------------------------------------------------------

    async def on_reaction(
        self,
        reaction: ResolvedReaction,
        user: Union[discord.User, discord.Member],
        action: ReactionAction,
    ) -> None:
        """
        Grant or revoke the challenge role when a flag reaction changes.

        Only reactions matching the flag emoji on messages the bot itself
        reacted to are considered. Granting requires the channel to be in the
        active category; revoking never checks it, so opting out always works.
        """
        if not emoji_matches(reaction.emoji, self.flag_emoji) or not reaction.me:
            return
        if is_ignored_author(user):
            return

        channel = reaction.channel
        guild = reaction.guild
        if guild is None or not is_text_channel(channel):
            return

        if action is ReactionAction.ADD:
            category = await self.find_active_category(guild)
            if category is None or channel_category_id(channel) != category.id:
                await channel.send(f"{user.mention} current channel's CTF is not active")
                return

        role = discord.utils.get(guild.roles, name=challenge_role_name(channel.name))
        if role is None:
            await channel.send(f"{user.mention} current channel's role is not found")
            return

        member = user if isinstance(user, discord.Member) else guild.get_member(user.id)
        if member is None:
            logger.warning("[CHALLENGE] %s is not a member of guild %s, skipping role sync", user, guild.id)
            return

        if action is ReactionAction.ADD:
            await member.add_roles(role, reason="Flag reaction added")
            logger.info("[CHALLENGE] Granted %s to %s", role.name, member)
        else:
            await member.remove_roles(role, reason="Flag reaction removed")
            logger.info("[CHALLENGE] Revoked %s from %s", role.name, member)
