"""
Scheduled background work.

- **generic_scheduler.py**: interval runner calling a coroutine per selected
  guild with per-guild error isolation and start/shutdown lifecycle.

- **overview_scheduler.py**: broadcasts the open-challenge digest to every
  guild whose competition is running (hourly by default).
"""
