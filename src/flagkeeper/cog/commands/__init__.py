"""Prefix command handlers registered on the CommandRouter."""
