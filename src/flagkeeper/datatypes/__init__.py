"""Shared datatypes: Discord id wrappers, guild state model and command outcomes."""
