"""Configuration management for Errand."""

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .core.sorting import SortMode

logger = logging.getLogger(__name__)

ERRAND_HOME = Path(os.environ.get("ERRAND_HOME", Path.home() / ".errand"))
CONFIG_FILE = ERRAND_HOME / "config" / "errand.conf"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class Config:
    """Errand preferences."""

    timezone: str = ""  # empty = system local zone
    sort_mode: SortMode = SortMode.AUTO
    reverse_sort: bool = False
    show_completed: bool = False
    temporarily_show_completed: bool = False
    show_hidden: bool = False

    def tzinfo(self) -> tzinfo | None:
        """Configured zone, or None for the system local zone."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self.timezone!r}, using local time")
            return None


def _parse_bool(key: str, value: str, default: bool) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning(f"Invalid boolean for {key.upper()}: {value!r}")
    return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from errand.conf (KEY=value lines)."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value[:1] in ('"', "'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            # Unquoted: strip inline comments
            value = value.split("#")[0].strip()

        match key:
            case "timezone":
                config.timezone = value
            case "sort_mode":
                config.sort_mode = SortMode.coerce(value)
            case "reverse_sort":
                config.reverse_sort = _parse_bool(key, value, config.reverse_sort)
            case "show_completed":
                config.show_completed = _parse_bool(key, value, config.show_completed)
            case "temporarily_show_completed":
                config.temporarily_show_completed = _parse_bool(key, value, config.temporarily_show_completed)
            case "show_hidden":
                config.show_hidden = _parse_bool(key, value, config.show_hidden)
            case _:
                logger.debug(f"Ignoring unknown config key {key.upper()}")

    return config
