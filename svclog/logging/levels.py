"""
Log Levels - Severity enumeration and per-sink level gate

Severities are ordered by increasing verbosity: a lower value is more
urgent. A sink configured with a minimum level accepts every record whose
level is at or below that minimum.

Usage:
    from svclog.logging.levels import LogLevel, is_enabled

    is_enabled(LogLevel.ERROR, LogLevel.INFO)  # True
    is_enabled(LogLevel.DEBUG, LogLevel.INFO)  # False
"""

from enum import IntEnum
from beartype.typing import Union


class LogLevel(IntEnum):
    """Severity levels, most urgent first"""

    ERROR = 0
    WARN = 1
    INFO = 2
    HTTP = 3
    VERBOSE = 4
    DEBUG = 5
    SILLY = 6

    @property
    def label(self) -> str:
        """Lowercase name used in rendered records"""
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union[str, int, "LogLevel"]) -> "LogLevel":
        """
        Resolve a level from its name, value or an existing member.

        Args:
            value: Level name (case-insensitive), integer value or LogLevel

        Returns:
            Matching LogLevel

        Raises:
            ValueError: If the value does not name a level

        Example:
            LogLevel.parse("debug")    # LogLevel.DEBUG
            LogLevel.parse("WARNING")  # LogLevel.WARN
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        name = LEVEL_ALIASES.get(name, name)
        if name in cls.__members__:
            return cls[name]
        raise ValueError(f"Invalid log level: {value}. Must be one of: {', '.join(level_names())}")


LEVEL_ALIASES = {"WARNING": "WARN"}

LOG_COLORS = {
    LogLevel.ERROR: "red",
    LogLevel.WARN: "yellow",
    LogLevel.INFO: "green",
    LogLevel.HTTP: "magenta",
    LogLevel.VERBOSE: "cyan",
    LogLevel.DEBUG: "blue",
    LogLevel.SILLY: "bright_black",
}


def level_names() -> list:
    return [level.label for level in LogLevel]


def is_enabled(level: LogLevel, minimum: LogLevel) -> bool:
    """Check whether a record at `level` passes a gate set to `minimum`"""
    return level <= minimum
