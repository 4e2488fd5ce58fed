import asyncio
from types import SimpleNamespace

import pytest

from fakes import FakeGuild, FakeMessage, MemoryStore

from flagkeeper.bot.command_router import CommandRouter, typing_indicator
from flagkeeper.datatypes.command_datatypes import Failed, Ok, Rejected, UserFacingError


def make_router(typing_delay: float = 10.0) -> CommandRouter:
    return CommandRouter(client=SimpleNamespace(), store=MemoryStore(), prefix=".", typing_delay=typing_delay)


def make_message(content: str, bot: bool = False):
    guild = FakeGuild()
    channel = guild.add_text("general")
    author = SimpleNamespace(id=42, bot=bot, mention="<@42>")
    return FakeMessage(channel=channel, content=content, author=author)


class TestParse:
    def test_command_with_arguments(self):
        assert make_router().parse(".new baby  rev") == ("new", "baby  rev")

    def test_command_without_arguments(self):
        assert make_router().parse(".help") == ("help", "")

    @pytest.mark.parametrize("content", ["help", ".", ". help", "", "!help"])
    def test_not_a_command(self, content):
        assert make_router().parse(content) is None

    def test_custom_prefix(self):
        router = CommandRouter(client=None, store=MemoryStore(), prefix="!ctf ", typing_delay=0)
        assert router.parse("!ctf solve") == ("solve", "")


@pytest.mark.asyncio
async def test_help_lists_registered_commands():
    router = make_router()

    async def handler(params):
        return Ok()

    router.add_command("solve", "Solve current challenge", handler)
    message = make_message(".help")

    await router.on_message(message)

    assert message.channel.sent == [".help - Show help message\n.solve - Solve current challenge"]


@pytest.mark.asyncio
async def test_handler_receives_params():
    router = make_router()
    seen = []

    async def handler(params):
        seen.append(params)
        await params.reply("pong")

    router.add_command("ping", "Ping", handler)
    message = make_message(".ping a b")

    await router.on_message(message)

    assert message.channel.sent == ["pong"]
    assert seen[0].rest == "a b"
    assert seen[0].command == "ping"
    assert seen[0].message is message
    assert seen[0].store is router.store


@pytest.mark.asyncio
async def test_bot_authors_are_ignored():
    router = make_router()
    message = make_message(".help", bot=True)

    await router.on_message(message)

    assert message.channel.sent == []


@pytest.mark.asyncio
async def test_unknown_command_is_silent():
    router = make_router()
    message = make_message(".nope")

    await router.on_message(message)

    assert message.channel.sent == []


@pytest.mark.asyncio
async def test_user_facing_error_is_replied_verbatim():
    router = make_router()

    async def handler(params):
        raise UserFacingError("Current active CTF is not set")

    router.add_command("ctf", "Query", handler)
    message = make_message(".ctf")

    await router.on_message(message)

    assert message.channel.sent == ["Current active CTF is not set"]


@pytest.mark.asyncio
async def test_rejected_result_is_replied_verbatim():
    router = make_router()

    async def handler(params):
        return Rejected("Permission denied")

    router.add_command("clear", "Clear", handler)
    message = make_message(".clear")

    await router.on_message(message)

    assert message.channel.sent == ["Permission denied"]


@pytest.mark.asyncio
async def test_unexpected_error_gets_generic_reply():
    router = make_router()

    async def handler(params):
        raise RuntimeError("discord exploded")

    router.add_command("boom", "Boom", handler)
    message = make_message(".boom")

    await router.on_message(message)

    assert message.channel.sent == ["Error: `.boom` failed, check the bot logs."]


@pytest.mark.asyncio
async def test_run_handler_classifies_outcomes():
    router = make_router()
    params = SimpleNamespace()

    async def returns_none(p):
        return None

    async def raises(p):
        raise ValueError("bad")

    ok = await router.run_handler(SimpleNamespace(handler=returns_none), params)
    failed = await router.run_handler(SimpleNamespace(handler=raises), params)

    assert ok == Ok()
    assert isinstance(failed, Failed)
    assert isinstance(failed.cause, ValueError)


@pytest.mark.asyncio
async def test_failing_reply_does_not_escape():
    router = make_router()

    async def handler(params):
        return Rejected("nope")

    router.add_command("x", "X", handler)
    message = make_message(".x")
    message.channel.fail_send = True

    await router.on_message(message)


@pytest.mark.asyncio
async def test_slow_handler_shows_typing():
    router = make_router(typing_delay=0)

    async def handler(params):
        await asyncio.sleep(0.05)
        return Ok()

    router.add_command("slow", "Slow", handler)
    message = make_message(".slow")

    await router.on_message(message)

    assert message.channel.typing_entered == 1


@pytest.mark.asyncio
async def test_fast_handler_shows_no_typing():
    router = make_router(typing_delay=10)

    async def handler(params):
        return Ok()

    router.add_command("fast", "Fast", handler)
    message = make_message(".fast")

    await router.on_message(message)

    assert message.channel.typing_entered == 0


@pytest.mark.asyncio
async def test_typing_indicator_stops_when_block_raises():
    guild = FakeGuild()
    channel = guild.add_text("general")

    with pytest.raises(RuntimeError):
        async with typing_indicator(channel, 0):
            await asyncio.sleep(0.01)
            raise RuntimeError("handler failed")

    assert channel.typing_entered == 1


def test_add_command_replaces_existing():
    router = make_router()

    async def first(params):
        return Ok()

    async def second(params):
        return Ok()

    router.add_command("x", "first", first)
    router.add_command("x", "second", second)

    assert router.commands["x"].help == "second"
    assert router.commands["x"].handler is second
