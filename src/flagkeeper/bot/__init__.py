"""
Event dispatch for Flagkeeper.

- **command_router.py**: prefix command table, typing indicator and outcome
  handling for chat commands.
- **reaction_router.py**: resolves raw reaction events and fans them out to
  callbacks.
"""
from flagkeeper.bot.command_router import CommandRouter
from flagkeeper.bot.reaction_router import ReactionAction, ReactionRouter, ResolvedReaction

__all__ = ["CommandRouter", "ReactionAction", "ReactionRouter", "ResolvedReaction"]
