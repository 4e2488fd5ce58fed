"""
Reaction event router.

Discord delivers reaction events as raw payloads that reference the channel,
message and user only by id, because the message may have left (or never
entered) the client cache. The router resolves those ids into full objects,
drops events it cannot resolve, and fans each event out to every registered
callback. Callbacks are isolated from each other: one raising does not stop
the rest.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Tuple, Union

import discord

from flagkeeper.util.discord_utils import emoji_matches
from flagkeeper.util.logger import get_logger

logger = get_logger("reaction_router")


class ReactionAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(slots=True)
class ResolvedReaction:
    """A reaction with its message fully loaded."""

    message: discord.Message
    emoji: Union[discord.PartialEmoji, str]
    me: bool

    @property
    def channel(self):
        return self.message.channel

    @property
    def guild(self):
        return self.message.guild


ReactionUser = Union[discord.User, discord.Member]
ReactionCallback = Callable[[ResolvedReaction, ReactionUser, ReactionAction], Awaitable[None]]


class ReactionRouter:
    """Normalises raw reaction payloads and dispatches them to callbacks."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client
        self._callbacks: List[ReactionCallback] = []

    def add_callback(self, callback: ReactionCallback) -> None:
        self._callbacks.append(callback)

    async def on_raw_reaction(self, payload: discord.RawReactionActionEvent, action: ReactionAction) -> None:
        me = self.client.user
        if me is not None and payload.user_id == me.id:
            return

        try:
            reaction, user = await self.resolve(payload)
        except discord.DiscordException as exc:
            logger.warning(
                "[REACTION ROUTER] Dropping %s on message %s in channel %s: %s",
                action.value,
                payload.message_id,
                payload.channel_id,
                exc,
            )
            return

        await self.dispatch(reaction, user, action)

    async def resolve(self, payload: discord.RawReactionActionEvent) -> Tuple[ResolvedReaction, ReactionUser]:
        """
        Load the channel, message and reacting user behind ``payload``.

        Cached objects are used when available; anything missing is fetched
        from the API.

        Raises:
            discord.DiscordException: If any piece cannot be fetched.
        """
        channel = self.client.get_channel(payload.channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(payload.channel_id)

        message = await channel.fetch_message(payload.message_id)

        user: ReactionUser | None = payload.member
        if user is None:
            guild = message.guild
            if guild is not None:
                user = guild.get_member(payload.user_id) or await guild.fetch_member(payload.user_id)
            else:
                user = self.client.get_user(payload.user_id) or await self.client.fetch_user(payload.user_id)

        existing = next(
            (r for r in message.reactions if emoji_matches(r.emoji, payload.emoji)),
            None,
        )
        reaction = ResolvedReaction(
            message=message,
            emoji=payload.emoji,
            me=bool(existing is not None and existing.me),
        )
        return reaction, user

    async def dispatch(self, reaction: ResolvedReaction, user: ReactionUser, action: ReactionAction) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(reaction, user, action)
            except Exception:
                logger.exception(
                    "[REACTION ROUTER] Callback %s failed for %s by %s",
                    getattr(callback, "__qualname__", callback),
                    action.value,
                    user,
                )
