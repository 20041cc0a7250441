"""
Domain Loggers - Call-pattern helpers for common subsystems

Each wrapper derives a child logger with a fixed module tag and shapes its
arguments into a (level, message, metadata) call on that child.

Usage:
    from svclog.logging.domain import DatabaseLogger, PerformanceLogger

    db = DatabaseLogger()
    db.log_query("SELECT * FROM users WHERE id = ?", [42], execution_time=12)

    perf = PerformanceLogger()
    perf.start_timer("import")
    ...
    perf.end_timer("import", rows=1500)
"""

import json
import os
import re
import sys
import time
from datetime import datetime, timezone
from threading import Lock

from beartype.typing import Any, Dict, Optional, Sequence
from humanfriendly import format_size

from svclog.logging.formatters import to_jsonable
from svclog.logging.record import describe_exception
from svclog.logging.redactor import sanitize_body, sanitize_headers
from svclog.logging.structured_logger import LoggerFactory, StructuredLogger

try:
    import resource
except ImportError:  # pragma: no cover - not available on Windows
    resource = None


def _current_rss() -> Optional[int]:
    """Current resident set size in bytes, from /proc on Linux"""
    try:
        with open("/proc/self/statm") as f:
            return int(f.read().split()[1]) * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError, AttributeError):
        return None


def _ms(value) -> Optional[str]:
    return f"{value}ms" if value else None


def _derive(parent: Optional[StructuredLogger], tag: str, **extra) -> StructuredLogger:
    parent = parent if parent is not None else LoggerFactory.get_logger()
    return parent.child(tag, **extra)


class DatabaseLogger:
    """Database operations and query performance"""

    def __init__(self, parent: StructuredLogger = None):
        self.logger = _derive(parent, "database")

    def log_query(self, query: str, params: Sequence[Any] = (), execution_time: Optional[float] = None):
        self.logger.debug(
            "Database Query",
            query=re.sub(r"\s+", " ", query).strip(),
            params=list(params),
            executionTime=_ms(execution_time),
        )

    def log_connection(self, action: str, /, **details):
        self.logger.info(f"Database {action}", details)

    def log_error(self, error: BaseException, query: Optional[str] = None):
        captured = describe_exception(error)
        self.logger.error(
            "Database Error",
            error={key: captured.get(key) for key in ("message", "code", "stack")},
            query=query,
        )


class APILogger:
    """Outbound or inbound API calls, with credential scrubbing"""

    def __init__(self, service_name: str, parent: StructuredLogger = None):
        self.logger = _derive(parent, "api", service=service_name)

    def log_request(self, method: str, url: str, headers: Optional[Dict[str, Any]] = None, body: Any = None):
        self.logger.http(
            "API Request",
            method=method,
            url=url,
            headers=sanitize_headers(headers),
            body=sanitize_body(body) if body else None,
        )

    def log_response(self, status: int, data: Any = None, duration: Optional[float] = None):
        data_size = len(json.dumps(to_jsonable(data))) if data else 0
        self.logger.http("API Response", status=status, duration=_ms(duration), dataSize=data_size)

    def log_rate_limit(self, limit: int, remaining: int, reset_time):
        """
        Args:
            reset_time: datetime, or epoch milliseconds
        """
        if not isinstance(reset_time, datetime):
            reset_time = datetime.fromtimestamp(reset_time / 1000, tz=timezone.utc)
        self.logger.warn("API Rate Limit Info", limit=limit, remaining=remaining, resetTime=reset_time.isoformat())


class SecurityLogger:
    """Authentication and authorization events"""

    def __init__(self, parent: StructuredLogger = None):
        self.logger = _derive(parent, "security")

    def log_auth_attempt(self, user_id: str, success: bool, ip: str = None, user_agent: str = None):
        level = "info" if success else "warn"
        self.logger.emit(level, "Authentication Attempt", userId=user_id, success=success, ip=ip, userAgent=user_agent)

    def log_permission_denied(self, user_id: str, resource: str, action: str, ip: str = None):
        self.logger.warn("Permission Denied", userId=user_id, resource=resource, action=action, ip=ip)

    def log_suspicious_activity(self, description: str, /, **details):
        self.logger.error("Suspicious Activity", description=description, details=details)


class BusinessLogger:
    """Business events, workflow steps and business metrics"""

    def __init__(self, domain: str, parent: StructuredLogger = None):
        self.logger = _derive(parent, "business", domain=domain)

    def log_event(self, event_name: str, /, **event_data):
        self.logger.info("Business Event", event=event_name, data=event_data)

    def log_workflow(self, workflow_name: str, step: str, status: str, /, **data):
        self.logger.info("Workflow Step", workflow=workflow_name, step=step, status=status, data=data)

    def log_metric(self, metric_name: str, value, /, unit: Optional[str] = None, **tags):
        self.logger.info("Business Metric", metric=metric_name, value=value, unit=unit, tags=tags)


class Timer:
    """
    Caller-owned timer handle.

    Example:
        timer = perf.start_timer("export")
        ...
        duration_ms = timer.stop(rows=200)
    """

    def __init__(self, owner: "PerformanceLogger", operation_id: str, started: float):
        self.owner = owner
        self.operation_id = operation_id
        self.started = started
        self.duration: Optional[float] = None

    def elapsed(self) -> float:
        """Milliseconds since start"""
        return (time.monotonic() - self.started) * 1000

    def stop(self, /, **additional_data) -> float:
        """Log and return the duration; later calls return the first measurement"""
        if not self.owner._finish(self):
            return self.duration
        self.owner._log_duration(self.operation_id, self.duration, additional_data)
        return self.duration


class PerformanceLogger:
    """
    Operation timers and process resource usage.

    Timers can be used through the id-keyed registry (start_timer/end_timer)
    or through the Timer handle returned by start_timer. Stopping a timer is
    atomic: concurrent stops of the same timer log it once.
    """

    def __init__(self, parent: StructuredLogger = None):
        self.logger = _derive(parent, "performance")
        self._timers: Dict[str, Timer] = {}
        self._lock = Lock()

    def start_timer(self, operation_id: str) -> Timer:
        timer = Timer(self, operation_id, time.monotonic())
        with self._lock:
            self._timers[operation_id] = timer
        return timer

    def end_timer(self, operation_id: str, /, **additional_data) -> Optional[float]:
        """
        Stop the timer registered under operation_id.

        Returns:
            Elapsed milliseconds, or None if no timer was started for this id
        """
        with self._lock:
            timer = self._timers.pop(operation_id, None)
        if timer is None:
            return None
        return timer.stop(**additional_data)

    def active_timers(self) -> list:
        with self._lock:
            return sorted(self._timers)

    def _finish(self, timer: Timer) -> bool:
        """Fix the timer's duration and unregister it; False if it was already stopped"""
        with self._lock:
            if timer.duration is not None:
                return False
            timer.duration = timer.elapsed()
            if self._timers.get(timer.operation_id) is timer:
                del self._timers[timer.operation_id]
            return True

    def _log_duration(self, operation_id: str, duration: float, additional_data: Dict[str, Any]):
        self.logger.verbose(
            "Performance Timer", additional_data, operation=operation_id, duration=f"{round(duration)}ms"
        )

    def log_memory_usage(self):
        """
        Log current and peak resident set size.

        rss is read from /proc and is None where that is unavailable (macOS).
        peakRss comes from getrusage, which reports KiB on Linux and bytes on
        macOS. Nothing is logged on platforms without the resource module.
        """
        if resource is None:
            return
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        if sys.platform != "darwin":
            peak *= 1024
        rss = _current_rss()
        self.logger.debug(
            "Memory Usage",
            rss=format_size(rss, binary=True) if rss is not None else None,
            peakRss=format_size(peak, binary=True),
        )

    def log_cpu_usage(self):
        times = os.times()
        self.logger.debug("CPU Usage", user=f"{round(times.user * 1000)}ms", system=f"{round(times.system * 1000)}ms")
