"""Discord cogs: prefix command set and thin event listeners."""
