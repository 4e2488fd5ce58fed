"""
Utility helpers for Flagkeeper.

- **logger.py**: session log file plus colored console output.
- **discord_utils.py**: stateless Discord helpers (channel kinds, emoji
  comparison, permission checks).
- **keyed_lock.py**: per-key asyncio mutex used to serialise challenge
  lifecycle operations.
"""
