"""
Structured Logger - Logging facade and pipeline context

Every emission runs the same pipeline:

    bound + call metadata -> redaction -> LogRecord -> per-sink level gate -> sink

A LoggingContext is the explicitly constructed pipeline: service identity,
sinks and redaction policy. StructuredLogger instances are lightweight
handles on a context carrying a module tag chain and bound metadata, so
child loggers share the sinks of their parent.

Usage:
    from svclog.logging.structured_logger import LoggerFactory

    logger = LoggerFactory.get_logger("api")

    # Simple logging
    logger.info("Operation completed", duration="15ms", count=100)

    # Scoped child loggers
    users = logger.child("users", tenant="acme")
    users.debug("Profile updated", userId="user123")
    # module: "api.users", tenant: "acme"
"""

import sys

from beartype.typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO, Tuple

from svclog.constants import FAULT_MAPPING
from svclog.logging.levels import LogLevel
from svclog.logging.record import LogRecord, ServiceIdentity, describe_exception
from svclog.logging.redactor import SENSITIVE_KEYS, redact
from svclog.logging.sinks import Sink, SinkConfig, StreamSink
from svclog.logging.formatters import get_formatter


def split_module(name: Optional[str]) -> Tuple[str, ...]:
    """Split a dotted logger name into its tag chain"""
    if not name:
        return ()
    return tuple(part for part in name.split(".") if part)


class LoggingContext:
    """
    The logging pipeline for one process (or one test).

    Example:
        context = LoggingContext(
            identity=ServiceIdentity("billing", "2.1.0", "production"),
            sinks=[StreamSink(SinkConfig("console", format="console"), ConsoleFormatter())],
        )
        logger = context.logger("payments")
        logger.info("Charge captured", amount=1200)
        context.close()
    """

    def __init__(
        self,
        identity: ServiceIdentity = None,
        sinks: Iterable[Sink] = (),
        redact_keys: Iterable[str] = SENSITIVE_KEYS,
        redact_nested: bool = False,
    ):
        self.identity = identity or ServiceIdentity()
        self.sinks: List[Sink] = list(sinks)
        self.redact_keys = frozenset(redact_keys)
        self.redact_nested = redact_nested

    def logger(self, name: Optional[str] = None, /, **bound) -> "StructuredLogger":
        return StructuredLogger(self, split_module(name), bound)

    def dispatch(self, record: LogRecord) -> int:
        """
        Hand a record to every sink.

        Returns:
            Number of sinks that wrote the record
        """
        written = 0
        for sink in self.sinks:
            if sink.emit(record):
                written += 1
        return written

    def sink(self, name: str) -> Optional[Sink]:
        for sink in self.sinks:
            if sink.name == name:
                return sink
        return None

    def flush(self):
        for sink in self.sinks:
            sink.flush()

    def close(self):
        for sink in self.sinks:
            sink.close()


class StructuredLogger:
    """
    Leveled emit calls plus child-logger derivation.

    Example:
        logger.error("DB down", {"host": "db-1"}, password="abc123")
        # {"level":"error","message":"DB down","host":"db-1","password":"[REDACTED]",...}
    """

    def __init__(self, context: LoggingContext, module: Tuple[str, ...] = (), bound: Mapping[str, Any] = None):
        self.context = context
        self.module = tuple(module)
        self._bound: Dict[str, Any] = dict(bound or {})

    @property
    def name(self) -> str:
        return ".".join(self.module)

    @property
    def bound(self) -> Dict[str, Any]:
        return dict(self._bound)

    def emit(
        self,
        level,
        message: str,
        metadata: Optional[Mapping[str, Any]] = None,
        /,
        *,
        error: Optional[BaseException] = None,
        exc_info: bool = False,
        **fields,
    ):
        """
        Push one record through the pipeline.

        Args:
            level: LogLevel or level name
            message: Log message
            metadata: Structured fields
            error: Exception to attach under "error"
            exc_info: Attach the exception currently being handled
            **fields: Additional structured fields (win over metadata)

        Never raises: a failure to build or write a record is reported on
        stderr and the record is dropped.
        """
        try:
            level = LogLevel.parse(level)
            merged = {**self._bound, **(metadata or {}), **fields}
            if error is not None and not isinstance(error, BaseException):
                merged["error"] = error
                error = None

            if error is None and exc_info:
                error = sys.exc_info()[1]
            if error is not None:
                existing = merged.get("error")
                base = dict(existing) if isinstance(existing, Mapping) else {}
                # The exception's own fields take precedence
                merged["error"] = {**base, **describe_exception(error)}

            record = LogRecord(
                level=level,
                message=str(message),
                metadata=redact(merged, self.context.redact_keys, deep=self.context.redact_nested),
                module=self.module,
                identity=self.context.identity,
            )
            self.context.dispatch(record)
        except Exception as e:
            try:
                sys.stderr.write(f"Logging error: failed to emit record ({e})\n")
            except Exception:
                pass

    def error(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        """
        Log error message.

        Example:
            logger.error("Upload failed", exc_info=True, run_id=12345)
        """
        self.emit(LogLevel.ERROR, message, metadata, **fields)

    def warn(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        """
        Log warning message.

        Example:
            logger.warn("Slow operation detected", duration="30500ms")
        """
        self.emit(LogLevel.WARN, message, metadata, **fields)

    warning = warn

    def info(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        """
        Log info message.

        Example:
            logger.info("Operation completed", items=100)
        """
        self.emit(LogLevel.INFO, message, metadata, **fields)

    def http(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        self.emit(LogLevel.HTTP, message, metadata, **fields)

    def verbose(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        self.emit(LogLevel.VERBOSE, message, metadata, **fields)

    def debug(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        """
        Log debug message.

        Example:
            logger.debug("Processing item", item_id=123, status="pending")
        """
        self.emit(LogLevel.DEBUG, message, metadata, **fields)

    def silly(self, message: str, metadata: Optional[Mapping[str, Any]] = None, /, **fields):
        self.emit(LogLevel.SILLY, message, metadata, **fields)

    def child(self, tag: str, /, **extra) -> "StructuredLogger":
        """
        Derive a logger scoped to a sub-module.

        The tag is appended to this logger's chain and `extra` is merged
        over the bound metadata. Sinks and service identity are shared.

        Args:
            tag: Module tag, may itself be dotted ("users.admin")
            **extra: Metadata bound to every record of the child

        Example:
            db = logger.child("database", pool="primary")
            db.child("migrations").info("Applied", version=42)
            # module: "database.migrations", pool: "primary"
        """
        return StructuredLogger(self.context, self.module + split_module(tag), {**self._bound, **extra})

    def with_context(self, /, **context) -> "StructuredLogger":
        """
        Return a logger with additional bound fields and the same module.

        Example:
            ctx_logger = logger.with_context(requestId="abc-123")
            ctx_logger.info("Request started")
        """
        return StructuredLogger(self.context, self.module, {**self._bound, **context})


class LoggerFactory:
    """
    Process-default logging context for code that does not pass one around.

    Tests and embedding applications should build their own LoggingContext;
    the factory exists so that `get_logger(name)` works out of the box.
    """

    _context: Optional[LoggingContext] = None
    _loggers: Dict[str, StructuredLogger] = {}

    @classmethod
    def install(cls, context: LoggingContext) -> LoggingContext:
        """Make `context` the default and drop cached loggers"""
        if cls._context is not None and cls._context is not context:
            cls._context.close()
        cls._context = context
        cls._loggers = {}
        return context

    @classmethod
    def configure(
        cls,
        level: str = "info",
        format_style: str = "json",
        stream: TextIO = None,
        identity: ServiceIdentity = None,
        color: bool = False,
    ) -> LoggingContext:
        """
        Configure a single-stream default context.

        Args:
            level: Log level name (error, warn, info, http, verbose, debug, silly)
            format_style: Output format - "json" or "console"
            stream: Output stream (default: sys.stdout)
            identity: Service identity (default: ServiceIdentity())
            color: Colorize console output

        Raises:
            ValueError: On an invalid level or format

        Example:
            LoggerFactory.configure(level="debug", format_style="console")
        """
        config = SinkConfig(name="stream", level=LogLevel.parse(level).label, format=format_style)
        sink = StreamSink(config, get_formatter(format_style, color=color), stream=stream)
        return cls.install(LoggingContext(identity=identity, sinks=[sink]))

    @classmethod
    def context(cls) -> LoggingContext:
        """
        The default context, built from environment configuration on first use.

        Never raises: invalid settings fall back to their defaults with a
        warning on stderr, and if the pipeline still cannot be built, records
        go to stderr.
        """
        if cls._context is None:
            from svclog.logging.config import LoggingConfig

            try:
                config = LoggingConfig.load()
                is_valid, error = LoggingConfig.validate(config)
                if not is_valid:
                    sys.stderr.write(FAULT_MAPPING["invalid_config"].format(error=error) + ", using defaults\n")
                    config = LoggingConfig.with_fallbacks(config)
                cls._context = LoggingConfig.build_context(config)
            except Exception as e:
                sys.stderr.write(f"Logging error: unable to build logging context ({e}), logging to stderr\n")
                cls._context = cls._stderr_context()
        return cls._context

    @staticmethod
    def _stderr_context() -> LoggingContext:
        config = SinkConfig(name="stderr", level=LogLevel.INFO.label, format="console")
        return LoggingContext(sinks=[StreamSink(config, get_formatter("console", color=False), stream=sys.stderr)])

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> StructuredLogger:
        """
        Get a logger bound to the default context.

        Returns cached logger if already created for this name.

        Example:
            logger = LoggerFactory.get_logger("api")
        """
        key = name or ""
        if key not in cls._loggers:
            cls._loggers[key] = cls.context().logger(key)
        return cls._loggers[key]

    @classmethod
    def reset(cls):
        """
        Close the default context and clear all cached loggers.

        Useful for testing.
        """
        if cls._context is not None:
            cls._context.close()
        cls._context = None
        cls._loggers = {}
