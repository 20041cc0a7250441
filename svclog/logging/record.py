"""
Log Record - The unit that flows through the logging pipeline

A record is built once per emission, after redaction, and is immutable from
then on: its timestamp and level never change.
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime

from beartype.typing import Any, Dict, Mapping, Optional, Tuple
from serde import serialize, deserialize

from svclog.logging.levels import LogLevel


@serialize
@deserialize
@dataclass(frozen=True)
class ServiceIdentity:
    """Service name, version and environment shared by every record of a process"""

    service: str = "svclog-app"
    version: str = "1.0.0"
    environment: str = "development"

    def as_fields(self) -> Dict[str, str]:
        return {"service": self.service, "version": self.version, "environment": self.environment}


@dataclass(frozen=True)
class LogRecord:
    level: LogLevel
    message: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    module: Tuple[str, ...] = ()
    identity: ServiceIdentity = field(default_factory=ServiceIdentity)
    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())

    @property
    def module_tag(self) -> Optional[str]:
        """Scope chain joined with dots, e.g. "api.users", or None for the root logger"""
        return ".".join(self.module) if self.module else None


def describe_exception(error: BaseException) -> Dict[str, Any]:
    """
    Capture the loggable fields of an exception.

    Returns message, name and stack, plus code and statusCode when the
    exception carries them (e.g. OSError.errno, HTTP errors with status_code).

    Example:
        try:
            open("/missing")
        except OSError as e:
            describe_exception(e)
            # {"message": "...", "name": "FileNotFoundError", "stack": "...", "code": 2}
    """
    details = {
        "message": str(error),
        "name": type(error).__name__,
        "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    }
    code = getattr(error, "code", None)
    if code is None:
        code = getattr(error, "errno", None)
    if code is not None:
        details["code"] = code
    status_code = getattr(error, "status_code", None)
    if status_code is None:
        status_code = getattr(error, "statusCode", None)
    if status_code is not None:
        details["statusCode"] = status_code
    return details
