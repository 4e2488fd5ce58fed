from types import SimpleNamespace

import discord
import pytest

from fakes import FakeGuild, make_member

from flagkeeper.util.discord_utils import (
    channel_category_id,
    channels_in_category,
    emoji_matches,
    has_manage_channels,
    is_ignored_author,
    is_text_channel,
    strip_variation_selectors,
)


def test_channel_kind_checks():
    guild = FakeGuild()
    text = guild.add_text("t")
    voice = guild.add_voice("v")

    assert is_text_channel(text)
    assert not is_text_channel(voice)
    assert not is_text_channel(object())


def test_is_ignored_author():
    assert is_ignored_author(SimpleNamespace(bot=True))
    assert not is_ignored_author(SimpleNamespace(bot=False))


@pytest.mark.parametrize(
    "left,right,expected",
    [
        ("🏳", "🏳", True),
        ("\U0001F3F3\uFE0F", "🏳", True),
        ("🏳", "🚩", False),
    ],
)
def test_emoji_matches(left, right, expected):
    assert emoji_matches(left, right) is expected


def test_strip_variation_selectors():
    assert strip_variation_selectors("a\uFE0Fb\uFE00") == "ab"


def test_channels_in_category_filters_and_sorts():
    guild = FakeGuild()
    category = guild.add_category("ctf")
    second = guild.add_text("b", category, position=5)
    first = guild.add_text("a", category, position=2)
    guild.add_voice("a", category)
    guild.add_text("outside")

    assert channels_in_category(guild, category.id, discord.ChannelType.text) == [first, second]
    assert channel_category_id(first) == category.id


def test_has_manage_channels_uses_category_permissions():
    guild = FakeGuild()
    member = make_member(manage_channels=False)

    assert has_manage_channels(member, guild.add_category("ctf", manage_channels=True))
    assert not has_manage_channels(member, guild.add_category("other", manage_channels=False))


def test_has_manage_channels_falls_back_to_guild_permissions():
    assert has_manage_channels(make_member(manage_channels=True), None)
    assert not has_manage_channels(make_member(manage_channels=False), None)


def test_non_members_never_manage_channels():
    user = SimpleNamespace(guild_permissions=SimpleNamespace(manage_channels=True))

    assert not has_manage_channels(user, None)
