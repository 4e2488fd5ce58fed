"""
Database schema initialization.

The bot persists a single table of guild-scoped facts. There is no schema
versioning; ``CREATE TABLE IF NOT EXISTS`` is the whole story.
"""

import aiosqlite
from flagkeeper.util.logger import get_logger

logger = get_logger("database_schema")


class SchemaManager:
    """Creates the tables and indexes the fact store relies on."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all database tables and indexes.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # One row per (guild, predicate); the primary key backs the
        # single-valued invariant the store enforces on upsert.
        await db.execute("""
            CREATE TABLE IF NOT EXISTS facts (
                subject TEXT NOT NULL,
                predicate TEXT NOT NULL,
                object TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (subject, predicate)
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        # The scheduler enumerates every guild holding a given predicate
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_facts_predicate ON facts(predicate)"
        )
