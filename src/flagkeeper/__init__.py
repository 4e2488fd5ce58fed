"""
Flagkeeper - Discord bot for running CTF competitions

Administrators mark one channel category as the active CTF; Flagkeeper then
manages the challenges inside it.

Core Components:

- **Fact Store**: single-valued (guild, predicate) -> value records in SQLite
  holding the active category, notification channel and competition flag
- **Command Router**: prefix command dispatch with typing indicator and
  uniform handling of rejected and failed commands
- **Reaction Router**: turns raw reaction events into resolved callbacks
- **Challenge Manager**: creates, solves and clears challenges (text channel,
  voice channel and ``chall-<name>`` role) with rollback on partial failure,
  and grants the challenge role to users reacting with the flag emoji
- **Broadcaster**: best-effort notifications and an hourly overview digest
  while a competition is running

Usage:
    from flagkeeper.main import main
    main()
"""
