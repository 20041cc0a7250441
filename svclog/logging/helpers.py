"""
Logging helpers for errors, health checks and ad-hoc timings.

None of these helpers raise: they are called from error paths, and a
failure to log must never mask the failure being logged.
"""

import time
from datetime import datetime, timezone

from beartype.typing import Any, Dict, Optional

from svclog.logging.record import describe_exception
from svclog.logging.structured_logger import LoggerFactory, StructuredLogger

HEALTHY = "healthy"


def _resolve(logger: Optional[StructuredLogger]) -> StructuredLogger:
    return logger if logger is not None else LoggerFactory.get_logger()


def log_structured_error(error: BaseException, logger: StructuredLogger = None, /, **context) -> Dict[str, Any]:
    """
    Log an exception with its full context at error level.

    Args:
        error: The exception to record
        logger: Logger to use (default: factory root logger), positional only
            so that context may use any key
        **context: Caller context (route, user id, ...)

    Returns:
        The captured details: message, name, stack, code, statusCode, context, timestamp

    Example:
        try:
            charge(order)
        except PaymentError as e:
            log_structured_error(e, route="/api/orders", orderId=order.id)
    """
    captured = describe_exception(error)
    details = {
        "message": captured["message"],
        "name": captured["name"],
        "stack": captured["stack"],
        "code": captured.get("code"),
        "statusCode": captured.get("statusCode"),
        "context": context,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    fields = {key: details[key] for key in ("message", "name", "stack", "code", "statusCode")}
    _resolve(logger).error("Structured Error", error=fields, context=context)
    return details


def log_error(error: BaseException, logger: StructuredLogger = None, /, **context):
    """Log an exception as "Application Error" with a nested error object"""
    _resolve(logger).error("Application Error", error=error, context=context)


def log_health_check(service: str, status: str, logger: StructuredLogger = None, /, **details):
    """
    Log a health check result; anything but "healthy" is logged as an error.

    The checked service is recorded as "component" so the record keeps the
    emitting process's own service identity.

    Example:
        log_health_check("cache", "unhealthy", latencyMs=500)  # error
        log_health_check("cache", "healthy")                   # info
    """
    level = "info" if status == HEALTHY else "error"
    _resolve(logger).emit(level, "Health Check", component=service, status=status, details=details)


def log_performance(operation: str, start_time: float, logger: StructuredLogger = None, /, **additional_data):
    """
    Log the time elapsed since start_time at verbose level.

    Args:
        operation: Operation name
        start_time: Value previously taken from time.monotonic()

    Returns:
        Elapsed milliseconds
    """
    duration = (time.monotonic() - start_time) * 1000
    _resolve(logger).verbose("Performance Metric", operation=operation, duration=f"{round(duration)}ms", **additional_data)
    return duration
