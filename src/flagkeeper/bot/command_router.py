"""
Prefix command router.

Turns chat messages such as ``.new baby-rev`` into handler calls. The router
owns the command table, shows a typing indicator while slow handlers run,
and converts every handler outcome into at most one reply:

- unknown commands are ignored so unrelated prefixed chatter stays quiet;
- ``Rejected`` outcomes (and ``UserFacingError``) are replied verbatim;
- any other exception is logged and answered with a generic error.

No exception raised by a handler escapes into the Discord event loop.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Mapping, Optional, Tuple

import discord

from flagkeeper.configuration.app_configuration import app_config
from flagkeeper.datatypes.command_datatypes import (
    Command,
    CommandResult,
    Failed,
    Handler,
    HandlerParams,
    Ok,
    Rejected,
    UserFacingError,
)
from flagkeeper.store.fact_store import FactStore
from flagkeeper.util.discord_utils import is_ignored_author, is_text_channel
from flagkeeper.util.logger import get_logger

logger = get_logger("command_router")


async def _show_typing(channel: discord.abc.Messageable, delay: float) -> None:
    await asyncio.sleep(delay)
    try:
        async with channel.typing():
            # Parked here until the command finishes and cancels us
            await asyncio.Event().wait()
    except discord.HTTPException as exc:
        logger.debug("[COMMAND ROUTER] Could not show typing indicator: %s", exc)


@asynccontextmanager
async def typing_indicator(channel: discord.abc.Messageable, delay: float) -> AsyncIterator[None]:
    """
    Show "typing..." in ``channel`` if the block runs longer than ``delay``.

    The indicator is torn down on every exit path, including exceptions and
    cancellation of the surrounding task.
    """
    task = asyncio.create_task(_show_typing(channel, delay))
    try:
        yield
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


class CommandRouter:
    """
    Registry and dispatcher for prefix commands.

    Parameters
    ----------
    client:
        Discord client handed to every handler.
    store:
        Fact store handed to every handler.
    prefix:
        Command prefix; defaults to the configured one.
    typing_delay:
        Seconds before the typing indicator shows; defaults to the configured value.
    """

    def __init__(
        self,
        client: discord.Client,
        store: FactStore,
        prefix: Optional[str] = None,
        typing_delay: Optional[float] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.prefix = prefix if prefix is not None else app_config.command_prefix
        self.typing_delay = typing_delay if typing_delay is not None else app_config.typing_delay
        self._commands: Dict[str, Command] = {}

        self.add_command("help", "Show help message", self._help)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_command(self, name: str, help: str, handler: Handler) -> None:
        if name in self._commands:
            logger.warning("[COMMAND ROUTER] Replacing existing command %r", name)
        self._commands[name] = Command(help=help, handler=handler)

    @property
    def commands(self) -> Mapping[str, Command]:
        return dict(self._commands)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def parse(self, content: str) -> Optional[Tuple[str, str]]:
        """
        Split ``content`` into ``(command, rest)``.

        Returns None when the message is not a command. ``rest`` keeps its
        internal spacing; only the separator after the command is dropped.
        """
        if not content.startswith(self.prefix):
            return None

        body = content[len(self.prefix):]
        if not body or body[0].isspace():
            return None

        parts = body.split(maxsplit=1)
        command = parts[0]
        rest = parts[1] if len(parts) > 1 else ""
        return command, rest

    async def on_message(self, message: discord.Message) -> None:
        """Entry point for every inbound chat message."""
        if is_ignored_author(message.author):
            return

        parsed = self.parse(message.content or "")
        if parsed is None:
            return

        name, rest = parsed
        command = self._commands.get(name)
        if command is None:
            logger.debug("[COMMAND ROUTER] Ignoring unknown command %r from %s", name, message.author)
            return

        channel = message.channel

        async def reply(content: str) -> discord.Message:
            return await channel.send(content)

        params = HandlerParams(
            client=self.client,
            message=message,
            reply=reply,
            store=self.store,
            rest=rest,
            command=name,
        )

        logger.debug("[COMMAND ROUTER] %s invoked %r (rest=%r)", message.author, name, rest)

        if is_text_channel(channel):
            async with typing_indicator(channel, self.typing_delay):
                result = await self.run_handler(command, params)
        else:
            result = await self.run_handler(command, params)

        await self._deliver(result, params)

    async def run_handler(self, command: Command, params: HandlerParams) -> CommandResult:
        """Invoke a handler and classify how it finished."""
        try:
            result = await command.handler(params)
        except UserFacingError as exc:
            return Rejected(exc.message)
        except Exception as exc:
            return Failed(exc)
        return result if result is not None else Ok()

    async def _deliver(self, result: CommandResult, params: HandlerParams) -> None:
        if isinstance(result, Ok):
            return

        if isinstance(result, Rejected):
            text = result.reason
        else:
            guild = getattr(params.message, "guild", None)
            logger.error(
                "[COMMAND ROUTER] Command %r failed (guild=%s): %s",
                params.command,
                getattr(guild, "id", None),
                result.cause,
                exc_info=(type(result.cause), result.cause, result.cause.__traceback__),
            )
            text = f"Error: `{self.prefix}{params.command}` failed, check the bot logs."

        try:
            await params.reply(text)
        except Exception:
            logger.exception("[COMMAND ROUTER] Failed to deliver reply for %r", params.command)

    # ------------------------------------------------------------------
    # Built-in commands
    # ------------------------------------------------------------------

    async def _help(self, params: HandlerParams) -> CommandResult:
        lines = [f"{self.prefix}{name} - {cmd.help}" for name, cmd in self._commands.items()]
        await params.reply("\n".join(lines))
        return Ok()
