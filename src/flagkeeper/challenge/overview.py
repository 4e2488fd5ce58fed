"""Overview digest: one line per open challenge with its age and participants."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import discord

from flagkeeper.challenge.challenge_manager import challenge_role_name
from flagkeeper.util.discord_utils import channels_in_category

NO_OPEN_CHALLENGES = "No open challenges"


def compose_overview(guild: discord.Guild, category_id: int, now: Optional[datetime] = None) -> str:
    """
    Render the digest for the challenges under ``category_id``.

    A challenge is listed while its role exists. Each line reads
    ``name (<minutes since creation>min) - member, member`` or ``Nobody``.
    """
    now = now or datetime.now(timezone.utc)
    lines = []

    for channel in channels_in_category(guild, category_id, discord.ChannelType.text):
        role = discord.utils.get(guild.roles, name=challenge_role_name(channel.name))
        if role is None:
            continue
        minutes = max(0, int((now - channel.created_at).total_seconds() // 60))
        users = ", ".join(member.display_name for member in role.members) or "Nobody"
        lines.append(f"{channel.name} ({minutes}min) - {users}")

    return "\n".join(lines) if lines else NO_OPEN_CHALLENGES
