"""
discord_utils.py
================

Stateless Discord helpers shared by the routers and the challenge manager:
channel kind checks, emoji comparison and permission checks. Nothing here
holds state or talks to the fact store.
"""

from typing import List, Optional, Union

import discord

from flagkeeper.util.logger import get_logger

logger = get_logger("discord_utils")

# Variation selectors VS1..VS16. Clients send the same flag glyph with or
# without U+FE0F, so comparisons ignore them.
_VARIATION_SELECTORS = {chr(cp) for cp in range(0xFE00, 0xFE10)}


def is_ignored_author(author: Union[discord.User, discord.Member]) -> bool:
    """Bots never drive commands or role sync."""
    return bool(getattr(author, "bot", False))


def is_text_channel(channel: object) -> bool:
    return getattr(channel, "type", None) == discord.ChannelType.text


def strip_variation_selectors(text: str) -> str:
    return "".join(ch for ch in text if ch not in _VARIATION_SELECTORS)


def emoji_matches(left: object, right: object) -> bool:
    """Compare two emoji (str, PartialEmoji, Emoji) ignoring variation selectors."""
    return strip_variation_selectors(str(left)) == strip_variation_selectors(str(right))


def channel_category_id(channel: object) -> Optional[int]:
    """Return the id of the category a channel sits in, if any."""
    return getattr(channel, "category_id", None)


def channels_in_category(
    guild: discord.Guild,
    category_id: int,
    channel_type: discord.ChannelType,
) -> List[discord.abc.GuildChannel]:
    """
    Channels of ``channel_type`` under ``category_id``, in sidebar order.

    Args:
        guild (discord.Guild): Guild whose channel cache is scanned.
        category_id (int): Parent category.
        channel_type (discord.ChannelType): Kind of channel to keep.

    Returns:
        List[discord.abc.GuildChannel]: Matching channels sorted by position.
    """
    found = [
        channel
        for channel in guild.channels
        if getattr(channel, "category_id", None) == category_id
        and getattr(channel, "type", None) == channel_type
    ]
    return sorted(found, key=lambda ch: ch.position)


def has_manage_channels(
    member: Union[discord.User, discord.Member],
    category: Optional[discord.CategoryChannel],
) -> bool:
    """
    Check whether a member may manage channels in ``category``.

    Falls back to guild-wide permissions when no category is given. Users
    that are not guild members never qualify.
    """
    if not isinstance(member, discord.Member):
        return False

    if category is not None:
        return bool(category.permissions_for(member).manage_channels)
    return bool(member.guild_permissions.manage_channels)
