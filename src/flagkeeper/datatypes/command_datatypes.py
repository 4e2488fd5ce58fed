"""
Command dispatch datatypes.

A handler finishes with one of three outcomes:

- ``Ok``: nothing more for the router to do.
- ``Rejected(reason)``: an expected precondition failed (no active CTF,
  permission denied, challenge exists...). The reason is sent back verbatim.
- ``Failed(cause)``: anything else. The router logs the cause and replies
  with a generic error.

Handlers may return ``Rejected`` directly or raise ``UserFacingError`` from
deep inside a helper; the router turns the exception into ``Rejected`` at
the dispatch boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

import discord

if TYPE_CHECKING:
    from flagkeeper.store.fact_store import FactStore


class UserFacingError(Exception):
    """Expected failure whose message is meant for the invoking user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(slots=True, frozen=True)
class Ok:
    pass


@dataclass(slots=True, frozen=True)
class Rejected:
    reason: str


@dataclass(slots=True, frozen=True)
class Failed:
    cause: BaseException


CommandResult = Union[Ok, Rejected, Failed]

ReplyFunc = Callable[[str], Awaitable[discord.Message]]


@dataclass(slots=True)
class HandlerParams:
    """Everything a command handler gets to work with."""

    client: discord.Client
    message: discord.Message
    reply: ReplyFunc
    store: "FactStore"
    rest: str
    command: str


Handler = Callable[[HandlerParams], Awaitable[Optional[CommandResult]]]


@dataclass(slots=True, frozen=True)
class Command:
    help: str
    handler: Handler
