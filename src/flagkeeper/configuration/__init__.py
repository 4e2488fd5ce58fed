"""
Configuration management for Flagkeeper.

- **app_configuration.py**: YAML configuration loader for process-wide
  settings (command prefix, typing delay, flag emoji, confirmation timeout,
  broadcast interval, database location). Falls back to defaults on missing
  or malformed config files.

Guild-scoped state (active category, notify channel, competition flag) is not
configuration; it lives in the fact store (see ``flagkeeper.store``).
"""
