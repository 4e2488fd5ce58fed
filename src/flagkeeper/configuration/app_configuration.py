from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from flagkeeper.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_COMMAND_PREFIX = "."
DEFAULT_FLAG_EMOJI = "🏳"
DEFAULT_DATABASE_PATH = "./data/flagkeeper.db"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes typed
    properties for every setting the bot reads. Missing keys fall back to the
    built-in defaults so a bot without a config file still starts.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping, using defaults.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (which will be an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def command_prefix(self) -> str:
        """Prefix that marks a chat message as a bot command."""
        value = self._data.get("command_prefix") or DEFAULT_COMMAND_PREFIX
        return str(value)

    @property
    def typing_delay(self) -> float:
        """Seconds a command may run before the typing indicator is shown."""
        return float(self._data.get("typing_delay_seconds", 0.5))

    @property
    def flag_emoji(self) -> str:
        """Reaction used as the opt-in signal on challenge flag messages."""
        value = self._data.get("flag_emoji") or DEFAULT_FLAG_EMOJI
        return str(value)

    @property
    def confirmation_timeout(self) -> float:
        """Seconds a confirmation prompt waits for the invoking user."""
        return float(self._data.get("confirmation_timeout_seconds", 30.0))

    @property
    def broadcast_interval(self) -> float:
        """Return the overview broadcast interval in seconds.

        Default is 3600 seconds (hourly).
        """
        broadcast = self._data.get("broadcast", {})
        if isinstance(broadcast, dict):
            return float(broadcast.get("interval_seconds", 3600.0))
        return 3600.0

    @property
    def database_path(self) -> Path:
        """Location of the SQLite fact store."""
        value = self._data.get("database_path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
