"""
Database package for Flagkeeper.

Public API:
    - db_connection: process-wide ConnectionManager singleton
    - ConnectionManager: single aiosqlite connection with serialised writes
    - SchemaManager: creates the facts table
"""
from flagkeeper.database.db_connection import ConnectionManager, db_connection
from flagkeeper.database.db_schema import SchemaManager

__all__ = ["ConnectionManager", "SchemaManager", "db_connection"]
