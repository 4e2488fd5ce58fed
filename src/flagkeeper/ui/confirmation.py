"""
Reaction-based yes/no confirmation.

The prompt is posted in the channel of the invoking message and offers two
reactions. Only the invoking user's first matching reaction counts. The
waiter is registered before the reactions are added so a fast click cannot
slip through, and the prompt is deleted however the wait ends.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import discord

from flagkeeper.configuration.app_configuration import app_config
from flagkeeper.util.discord_utils import emoji_matches
from flagkeeper.util.logger import get_logger

logger = get_logger("confirmation")

ACCEPT_EMOJI = "✅"
DECLINE_EMOJI = "❌"


async def confirm(
    client: discord.Client,
    message: discord.Message,
    prompt: str,
    timeout: Optional[float] = None,
) -> bool:
    """
    Ask the author of ``message`` to confirm ``prompt``.

    Args:
        client: Client used to wait for the reaction event.
        message: Message that triggered the confirmation.
        prompt: Question shown to the user.
        timeout: Seconds to wait; defaults to the configured timeout.

    Returns:
        bool: True only if the author reacted with the accept emoji in time.
        Timeouts and errors count as a decline.
    """
    timeout = timeout if timeout is not None else app_config.confirmation_timeout
    author = message.author
    prompt_message: Optional[discord.Message] = None
    waiter: Optional[asyncio.Future] = None

    try:
        prompt_message = await message.channel.send(f"{author.mention} {prompt}")
        prompt_id = prompt_message.id

        def check(reaction: discord.Reaction, user: discord.abc.User) -> bool:
            return (
                reaction.message.id == prompt_id
                and user.id == author.id
                and (emoji_matches(reaction.emoji, ACCEPT_EMOJI) or emoji_matches(reaction.emoji, DECLINE_EMOJI))
            )

        waiter = asyncio.ensure_future(client.wait_for("reaction_add", check=check, timeout=timeout))

        await prompt_message.add_reaction(ACCEPT_EMOJI)
        await prompt_message.add_reaction(DECLINE_EMOJI)

        reaction, _ = await waiter
        accepted = emoji_matches(reaction.emoji, ACCEPT_EMOJI)
        logger.debug("[CONFIRMATION] %s answered %s", author, "yes" if accepted else "no")
        return accepted
    except asyncio.TimeoutError:
        logger.info("[CONFIRMATION] %s did not answer within %.0fs", author, timeout)
        return False
    except Exception as exc:
        logger.warning("[CONFIRMATION] Confirmation for %s failed: %s", author, exc)
        return False
    finally:
        if waiter is not None:
            if not waiter.done():
                waiter.cancel()
            elif not waiter.cancelled():
                # mark a failure nobody awaited as retrieved
                waiter.exception()
        if prompt_message is not None:
            try:
                await prompt_message.delete()
            except discord.HTTPException as exc:
                logger.debug("[CONFIRMATION] Could not delete prompt: %s", exc)
