"""
Fact store: guild-scoped, single-valued subject/predicate/object records.

The store behaves as a map keyed by ``(guild, predicate)``: ``upsert``
deletes whatever object the pair currently holds before inserting the new
one, inside a single serialised write transaction. Different predicates of
the same guild are independent and may be written concurrently.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from flagkeeper.database.db_connection import ConnectionManager, db_connection
from flagkeeper.datatypes.discord_datatypes import ChannelID, GuildID
from flagkeeper.datatypes.guild_config import RUNNING, GuildConfig, Predicate
from flagkeeper.util.logger import get_logger

logger = get_logger("fact_store")


class FactStore:
    """CRUD over the facts table."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._connection = connection

    async def find(self, guild_id: GuildID, predicate: Predicate) -> Optional[str]:
        """Return the current object for ``(guild_id, predicate)``, or None."""
        async with self._connection.read() as conn:
            async with conn.execute(
                "SELECT object FROM facts WHERE subject = ? AND predicate = ?",
                (str(guild_id), predicate.value),
            ) as cursor:
                row = await cursor.fetchone()
        return row[0] if row else None

    async def upsert(self, guild_id: GuildID, predicate: Predicate, obj: str) -> None:
        """Replace the object stored for ``(guild_id, predicate)``."""
        async with self._connection.transaction() as conn:
            await conn.execute(
                "DELETE FROM facts WHERE subject = ? AND predicate = ?",
                (str(guild_id), predicate.value),
            )
            await conn.execute(
                "INSERT INTO facts (subject, predicate, object) VALUES (?, ?, ?)",
                (str(guild_id), predicate.value, obj),
            )
        logger.debug("[FACT STORE] %s %s := %s", guild_id, predicate.value, obj)

    async def list_by_predicate(self, predicate: Predicate) -> List[Tuple[GuildID, str]]:
        """Return ``(guild_id, object)`` for every guild holding ``predicate``."""
        async with self._connection.read() as conn:
            async with conn.execute(
                "SELECT subject, object FROM facts WHERE predicate = ? ORDER BY subject",
                (predicate.value,),
            ) as cursor:
                rows = await cursor.fetchall()
        return [(GuildID(row[0]), row[1]) for row in rows]

    async def load_guild_config(self, guild_id: GuildID) -> GuildConfig:
        """Build the derived configuration view for one guild."""
        async with self._connection.read() as conn:
            async with conn.execute(
                "SELECT predicate, object FROM facts WHERE subject = ?",
                (str(guild_id),),
            ) as cursor:
                rows = await cursor.fetchall()

        values = {row[0]: row[1] for row in rows}
        return GuildConfig(
            guild_id=guild_id,
            active_category_id=_channel_or_none(values.get(Predicate.ACTIVE_CATEGORY.value)),
            notify_channel_id=_channel_or_none(values.get(Predicate.NOTIFY_CHANNEL.value)),
            competition_running=values.get(Predicate.COMPETITION_RUNNING.value) == RUNNING,
        )


def _channel_or_none(value: Optional[str]) -> Optional[ChannelID]:
    if not value:
        return None
    try:
        return ChannelID(value)
    except ValueError:
        logger.warning("[FACT STORE] Ignoring malformed channel id %r", value)
        return None
