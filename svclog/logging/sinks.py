"""
Sinks - Output destinations for log records

Each sink owns a minimum level, a formatter and an output (a text stream or
a rotating file). A sink decides on its own whether a record is eligible;
the same record may be written by one sink and skipped by another.

Write failures are contained inside the sink: logging never crashes the
process that is doing the logging.
"""

import sys
from dataclasses import dataclass
from pathlib import Path

import click
from beartype.typing import Optional, TextIO
from serde import field, serialize, deserialize

from svclog.logging.file_handler import RotatingFileHandler
from svclog.logging.formatters import get_formatter
from svclog.logging.levels import LogLevel, is_enabled
from svclog.logging.record import LogRecord

STREAM = "stream"
FILE = "file"


@serialize
@deserialize
@dataclass(frozen=True)
class SinkConfig:
    """Static description of a sink, fixed at startup"""

    name: str
    kind: str = STREAM
    level: str = "info"
    format: str = "json"
    filename: Optional[str] = field(default=None, skip_if_default=True)
    max_bytes: int = 10485760  # 10MB
    max_files: int = 5
    compress: bool = True


class Sink:
    def __init__(self, config: SinkConfig, formatter):
        self.config = config
        self.level = LogLevel.parse(config.level)
        self.formatter = formatter
        self.failures = 0

    @property
    def name(self) -> str:
        return self.config.name

    def accepts(self, record: LogRecord) -> bool:
        return is_enabled(record.level, self.level)

    def emit(self, record: LogRecord) -> bool:
        """
        Format and write a record if it passes this sink's level gate.

        Returns:
            True if the record was written, False if filtered out or dropped
        """
        if not self.accepts(record):
            return False
        try:
            self._write(self.formatter.format(record) + "\n")
        except Exception:
            # Best effort only: drop the record, keep the process running
            self.failures += 1
            return False
        return True

    def _write(self, line: str):
        raise NotImplementedError

    def flush(self):
        pass

    def close(self):
        pass


class StreamSink(Sink):
    """Writes to a text stream, stdout by default"""

    def __init__(self, config: SinkConfig, formatter, stream: TextIO = None):
        super().__init__(config, formatter)
        self.stream = stream

    def _write(self, line: str):
        # click.echo drops color codes when the stream is not a terminal
        click.echo(line, file=self.stream or sys.stdout, nl=False)

    def flush(self):
        try:
            (self.stream or sys.stdout).flush()
        except Exception:
            pass


class FileSink(Sink):
    """Appends to a size-bounded rotating file"""

    def __init__(self, config: SinkConfig, formatter, log_dir: str = "."):
        super().__init__(config, formatter)
        self.handler = RotatingFileHandler(
            str(Path(log_dir) / config.filename),
            max_bytes=config.max_bytes,
            backup_count=config.max_files,
            compress=config.compress,
        )

    @property
    def path(self) -> Path:
        return self.handler.filepath

    def _write(self, line: str):
        self.handler.write(line)

    def flush(self):
        try:
            self.handler.flush()
        except Exception:
            pass

    def close(self):
        try:
            self.handler.close()
        except Exception:
            pass


def build_sink(config: SinkConfig, log_dir: str = ".", color: bool = True, stream: TextIO = None) -> Sink:
    """
    Instantiate a sink from its configuration.

    Args:
        config: Sink configuration
        log_dir: Directory for file sinks
        color: Colorize console-formatted output
        stream: Output stream for stream sinks (default: sys.stdout)

    Raises:
        ValueError: If kind, level or format is invalid
    """
    formatter = get_formatter(config.format, color=color)
    if config.kind == STREAM:
        return StreamSink(config, formatter, stream=stream)
    if config.kind == FILE:
        if not config.filename:
            raise ValueError(f"File sink '{config.name}' requires a filename")
        return FileSink(config, formatter, log_dir=log_dir)
    raise ValueError(f"Invalid sink kind: {config.kind}. Must be '{STREAM}' or '{FILE}'")
