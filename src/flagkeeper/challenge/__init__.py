"""
Challenge lifecycle for Flagkeeper.

- **challenge_manager.py**: create/solve/clear over the text channel, voice
  channel and role that make up a challenge, plus flag reaction role sync.
- **overview.py**: digest of open challenges and who is working on them.
"""
from flagkeeper.challenge.challenge_manager import (
    ChallengeManager,
    ChallengeResources,
    ChallengeState,
    ClearResult,
    SolveOutcome,
    challenge_role_name,
    resolve_challenge,
)
from flagkeeper.challenge.overview import compose_overview

__all__ = [
    "ChallengeManager",
    "ChallengeResources",
    "ChallengeState",
    "ClearResult",
    "SolveOutcome",
    "challenge_role_name",
    "compose_overview",
    "resolve_challenge",
]
