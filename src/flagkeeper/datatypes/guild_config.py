"""
Guild-scoped state model.

Facts are (guild, predicate, object) rows in the store; GuildConfig is the
view the challenge manager and broadcaster read. It is rebuilt from the
store on every use and never cached.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flagkeeper.datatypes.discord_datatypes import ChannelID, GuildID


class Predicate(str, Enum):
    """Keys of the guild-scoped facts."""
    ACTIVE_CATEGORY = "ActiveCategory"
    NOTIFY_CHANNEL = "NotifyChannel"
    COMPETITION_RUNNING = "CompetitionRunning"


RUNNING = "true"
STOPPED = "false"


@dataclass(slots=True)
class GuildConfig:
    """Derived per-guild configuration."""

    guild_id: GuildID
    active_category_id: Optional[ChannelID] = None
    notify_channel_id: Optional[ChannelID] = None
    competition_running: bool = False
