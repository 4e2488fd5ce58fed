"""
Flagkeeper CTF Bot
==================

A Discord bot that runs CTF competitions: it keeps track of the active CTF
category, creates and retires challenge channels and roles, hands out
challenge roles through flag reactions, and broadcasts a periodic overview
while a competition is running.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. FLAGKEEPER_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("FLAGKEEPER_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from typing import Tuple

import discord
from dotenv import load_dotenv

from flagkeeper.bot.command_router import CommandRouter
from flagkeeper.bot.reaction_router import ReactionRouter
from flagkeeper.challenge.challenge_manager import ChallengeManager
from flagkeeper.configuration.app_configuration import app_config
from flagkeeper.database.db_connection import db_connection
from flagkeeper.notification.broadcaster import Broadcaster
from flagkeeper.scheduler.overview_scheduler import OverviewScheduler
from flagkeeper.store.fact_store import FactStore
from flagkeeper.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for guild, member, message content and reaction events."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.reactions = True
    intents.members = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, store: FactStore) -> OverviewScheduler:
    """Wire routers, services and cogs together; return the overview scheduler.

    Parameters
    ----------
    discord_bot_instance:
        Py-Cord bot object that should receive the Flagkeeper cogs.
    store:
        Fact store shared by every component.
    """
    from flagkeeper.cog.commands import ctf_cmds
    from flagkeeper.cog.listener import events_listener, router_listener

    command_router = CommandRouter(discord_bot_instance, store)
    reaction_router = ReactionRouter(discord_bot_instance)
    challenges = ChallengeManager(store)
    broadcaster = Broadcaster(store, challenges)
    scheduler = OverviewScheduler(store, broadcaster)

    reaction_router.add_callback(challenges.on_reaction)

    ctf_cmds.setup(discord_bot_instance, command_router, challenges, broadcaster)
    router_listener.setup(discord_bot_instance, command_router, reaction_router)
    events_listener.setup(discord_bot_instance, scheduler)

    logger.info("All cogs loaded successfully (prefix %r).", command_router.prefix)
    return scheduler


def create_bot(store: FactStore) -> Tuple[discord.Bot, OverviewScheduler]:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    scheduler = load_cogs(bot, store)
    return bot, scheduler


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, scheduler: OverviewScheduler | None) -> None:
    """Stop the scheduler, close the Discord connection and the database."""
    if scheduler is not None:
        try:
            await scheduler.shutdown()
        except Exception as exc:
            logger.exception("Error during scheduler shutdown: %s", exc)

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing Discord connection: %s", exc)

    try:
        await db_connection.close()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap database and bot, run until disconnected, return an exit code."""
    token = load_environment()

    try:
        logger.info("Opening fact store at %s", app_config.database_path)
        await db_connection.open(app_config.database_path)
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    store = FactStore(db_connection)

    try:
        bot, scheduler = create_bot(store)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await shutdown_runtime(None, None)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, scheduler)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting Flagkeeper CTF bot…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
