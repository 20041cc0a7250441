"""
Formatters - Render log records for their destination

Two renderings are provided:
- JsonFormatter: one JSON object per line (NDJSON) for file sinks, with a
  canonical key order and service identity merged at the top level
- ConsoleFormatter: colorized, human-readable single entry for terminals

Both formatters tolerate arbitrary metadata: exceptions are expanded into
message/name/stack fields, cycles become "[Circular]", nesting deeper than
MAX_DEPTH becomes "[Truncated]" and unknown objects fall back to str().

Usage:
    from svclog.logging.formatters import JsonFormatter

    line = JsonFormatter().format(record)
    # {"timestamp":"2025-01-20 10:15:30.123","level":"info","message":"Started",...}
"""

import json
from collections.abc import Mapping
from datetime import date, datetime

import click
from beartype.typing import Any, Dict

from svclog.logging.levels import LOG_COLORS
from svclog.logging.record import LogRecord, describe_exception
from svclog.logging.redactor import CIRCULAR, MAX_DEPTH, TRUNCATED

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_TIME_FORMAT = "%H:%M:%S"
IDENTITY_KEYS = ("service", "version", "environment")


def format_timestamp(moment: datetime) -> str:
    """Render as YYYY-MM-DD HH:mm:ss.SSS"""
    return f"{moment.strftime(TIMESTAMP_FORMAT)}.{moment.microsecond // 1000:03d}"


def to_jsonable(value: Any, depth: int = 0, seen: set = None) -> Any:
    """
    Convert a metadata value into something json.dumps accepts.

    Args:
        value: Arbitrary metadata value
        depth: Current nesting depth
        seen: Ids of containers on the current path

    Returns:
        JSON-compatible value
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if seen is None:
        seen = set()
    if isinstance(value, BaseException):
        return describe_exception(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if id(value) in seen:
            return CIRCULAR
        if depth >= MAX_DEPTH:
            return TRUNCATED
        seen.add(id(value))
        try:
            if isinstance(value, Mapping):
                return {str(k): to_jsonable(v, depth + 1, seen) for k, v in value.items()}
            return [to_jsonable(item, depth + 1, seen) for item in value]
        finally:
            seen.discard(id(value))
    return str(value)


class JsonFormatter:
    """
    Structured line formatter for file sinks.

    Key order: timestamp, level, message, service, version, environment,
    module, then caller metadata. Caller metadata may override identity keys
    but never timestamp, level or message.

    Example:
        {"timestamp":"2025-01-20 10:15:30.123","level":"error","message":"DB down",
         "service":"billing","version":"1.0.0","environment":"production","password":"[REDACTED]"}
    """

    reserved = ("timestamp", "level", "message")

    def render(self, record: LogRecord) -> Dict[str, Any]:
        entry = {
            "timestamp": format_timestamp(record.timestamp),
            "level": record.level.label,
            "message": record.message,
        }
        entry.update(record.identity.as_fields())
        if record.module_tag:
            entry["module"] = record.module_tag

        for key, value in to_jsonable(dict(record.metadata)).items():
            if key not in self.reserved:
                entry[key] = value
        return entry

    def format(self, record: LogRecord) -> str:
        return json.dumps(self.render(record), ensure_ascii=False, separators=(",", ":"))


class ConsoleFormatter:
    """
    Human-readable formatter for terminal output.

    Example:
        10:15:30 info [api.users]: Fetching user data {
          "userId": 42
        }
    """

    def __init__(self, color: bool = True):
        self.color = color

    def _style_level(self, record: LogRecord) -> str:
        label = record.level.label
        if not self.color:
            return label
        return click.style(label, fg=LOG_COLORS[record.level])

    def format(self, record: LogRecord) -> str:
        parts = [record.timestamp.strftime(CONSOLE_TIME_FORMAT), self._style_level(record)]
        if record.module_tag:
            parts.append(f"[{record.module_tag}]")
        line = " ".join(parts) + f": {record.message}"

        meta = {k: v for k, v in record.metadata.items() if k not in IDENTITY_KEYS}
        if meta:
            line += " " + json.dumps(to_jsonable(meta), indent=2, ensure_ascii=False)
        return line


def get_formatter(format_style: str, color: bool = True):
    """
    Resolve a formatter by name.

    Args:
        format_style: "json" or "console"
        color: Colorize console output

    Raises:
        ValueError: If the style is unknown
    """
    if format_style == "json":
        return JsonFormatter()
    if format_style == "console":
        return ConsoleFormatter(color=color)
    raise ValueError(f"Invalid format style: {format_style}. Must be 'json' or 'console'")
