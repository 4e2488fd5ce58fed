"""Tests for the snowflake wrappers and guild state datatypes."""

from types import SimpleNamespace

import pytest

from flagkeeper.datatypes.discord_datatypes import ChannelID, GuildID
from flagkeeper.datatypes.guild_config import GuildConfig, Predicate


class TestSnowflake:
    def test_accepts_int_and_str(self):
        assert GuildID(123).to_int() == 123
        assert str(GuildID(" 123 ")) == "123"
        assert GuildID(GuildID(5)) == GuildID(5)

    @pytest.mark.parametrize("value", [True, 1.5, None, "abc"])
    def test_rejects_invalid_values(self, value):
        with pytest.raises(ValueError):
            GuildID(value)

    def test_different_kinds_never_compare_equal(self):
        assert GuildID(1) != ChannelID(1)
        assert len({GuildID(1), ChannelID(1)}) == 2

    def test_compares_with_raw_values(self):
        assert GuildID(42) == 42
        assert GuildID(42) == "42"
        assert GuildID(42) != 43

    def test_repr(self):
        assert repr(ChannelID(7)) == "ChannelID('7')"

    def test_from_objects(self):
        assert GuildID.from_guild(SimpleNamespace(id=9)) == GuildID(9)
        assert ChannelID.from_channel(SimpleNamespace(id=10)) == ChannelID(10)


class TestChannelIDParse:
    def test_parses_mention(self):
        assert ChannelID.parse("<#123456>") == ChannelID(123456)

    def test_parses_bare_id(self):
        assert ChannelID.parse(" 987 ") == ChannelID(987)

    @pytest.mark.parametrize("text", ["", "general", "<#>"])
    def test_returns_none_without_digits(self, text):
        assert ChannelID.parse(text) is None


def test_guild_config_defaults():
    config = GuildConfig(guild_id=GuildID(1))

    assert config.active_category_id is None
    assert config.notify_channel_id is None
    assert config.competition_running is False


def test_predicate_values_are_stable():
    assert Predicate.ACTIVE_CATEGORY.value == "ActiveCategory"
    assert Predicate.NOTIFY_CHANNEL.value == "NotifyChannel"
    assert Predicate.COMPETITION_RUNNING.value == "CompetitionRunning"
