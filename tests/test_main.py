from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fakes import MemoryStore

from flagkeeper import main as main_module
from flagkeeper.cog.commands.ctf_cmds import CtfCommandsCog
from flagkeeper.cog.listener.events_listener import EventsListenerCog
from flagkeeper.cog.listener.router_listener import RouterListenerCog
from flagkeeper.scheduler.overview_scheduler import OverviewScheduler


def test_build_intents_enables_required_events():
    intents = main_module.build_intents()

    assert intents.message_content
    assert intents.guilds
    assert intents.messages
    assert intents.reactions
    assert intents.members


def test_load_environment_exits_without_token(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda **kwargs: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main_module.load_environment()


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda **kwargs: None)
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "secret")

    assert main_module.load_environment() == "secret"


def test_load_cogs_wires_everything():
    added = []
    bot = SimpleNamespace(add_cog=added.append)

    scheduler = main_module.load_cogs(bot, MemoryStore())

    assert isinstance(scheduler, OverviewScheduler)
    assert [type(cog) for cog in added] == [CtfCommandsCog, RouterListenerCog, EventsListenerCog]


@pytest.mark.asyncio
async def test_async_main_fails_when_database_cannot_open(monkeypatch):
    monkeypatch.setattr(main_module, "load_environment", lambda: "token")
    monkeypatch.setattr(
        main_module,
        "db_connection",
        SimpleNamespace(open=AsyncMock(side_effect=OSError("read-only")), close=AsyncMock()),
    )

    assert await main_module.async_main() == 1


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_everything(monkeypatch):
    connection = SimpleNamespace(close=AsyncMock())
    monkeypatch.setattr(main_module, "db_connection", connection)
    scheduler = SimpleNamespace(shutdown=AsyncMock())
    bot = SimpleNamespace(is_closed=lambda: False, close=AsyncMock())

    await main_module.shutdown_runtime(bot, scheduler)

    scheduler.shutdown.assert_awaited_once()
    bot.close.assert_awaited_once()
    connection.close.assert_awaited_once()


def test_main_returns_exit_code(monkeypatch):
    monkeypatch.setattr(main_module.sys, "excepthook", main_module.sys.__excepthook__)
    monkeypatch.setattr(main_module, "async_main", AsyncMock(return_value=3))

    assert main_module.main() == 3


def test_main_installs_exception_hook(monkeypatch):
    monkeypatch.setattr(main_module.sys, "excepthook", main_module.sys.__excepthook__)
    monkeypatch.setattr(main_module, "async_main", AsyncMock(return_value=0))

    main_module.main()

    assert main_module.sys.excepthook is main_module.handle_exception
