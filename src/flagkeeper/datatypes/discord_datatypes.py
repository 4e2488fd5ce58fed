"""
Type-safe wrapper classes for Discord identifiers.

Snowflakes are 64-bit integers but the fact store persists them as text, so
every identifier crosses the string/int boundary at least once. These
wrappers keep that conversion in one place and stop a guild id from being
passed where a channel id is expected.
"""

from __future__ import annotations

from typing import Union

import discord


class Snowflake:
    """
    Base wrapper for a Discord snowflake id.

    Attributes:
        _value (str): The snowflake ID stored as a string.

    Example:
        >>> gid = GuildID(123456789012345678)
        >>> gid.to_int()
        123456789012345678
        >>> str(GuildID("123456789012345678"))
        '123456789012345678'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Args:
            value: The snowflake ID as a string, int, or a wrapper of the same type.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    def to_int(self) -> int:
        """Integer form, for Discord API lookups."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))


class GuildID(Snowflake):
    """Snowflake of a Discord guild; the subject of every stored fact."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> "GuildID":
        return cls(guild.id)


class ChannelID(Snowflake):
    """Snowflake of a guild channel or category."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: discord.abc.GuildChannel) -> "ChannelID":
        return cls(channel.id)

    @classmethod
    def parse(cls, text: str) -> "ChannelID | None":
        """
        Extract a channel id from a mention (``<#123>``) or a bare id.

        Returns None when the text carries no digits.
        """
        digits = "".join(ch for ch in text if ch.isdigit())
        if not digits:
            return None
        return cls(digits)
