"""Guild-scoped fact store backed by the SQLite connection manager."""
from flagkeeper.store.fact_store import FactStore

__all__ = ["FactStore"]
