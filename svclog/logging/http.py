"""
Process integration points: HTTP request logging and uncaught exceptions.

RequestLogger turns one request/response pair into two http-level records
("HTTP Request" and "HTTP Response") sharing a requestId. HttpLoggingMiddleware
applies it to any WSGI application. install_excepthook routes uncaught
exceptions through the structured error path before the process exits.

Usage:
    from svclog.logging.http import HttpLoggingMiddleware, install_excepthook

    app = HttpLoggingMiddleware(app)
    install_excepthook()
"""

import secrets
import string
import sys
import time
from dataclasses import dataclass

from beartype.typing import Callable, Iterable, Optional

from svclog.logging.helpers import log_structured_error
from svclog.logging.structured_logger import LoggerFactory, StructuredLogger

REQUEST_ID_ALPHABET = string.ascii_lowercase + string.digits
REQUEST_ID_LENGTH = 9


def generate_request_id() -> str:
    """Random short base-36 token, e.g. "k3x9q0a7z" """
    return "".join(secrets.choice(REQUEST_ID_ALPHABET) for _ in range(REQUEST_ID_LENGTH))


@dataclass
class RequestScope:
    method: str
    path: str
    request_id: str
    started: float


class RequestLogger:
    def __init__(self, logger: StructuredLogger = None):
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        return self._logger if self._logger is not None else LoggerFactory.get_logger()

    def request_started(
        self,
        method: str,
        path: str,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> RequestScope:
        scope = RequestScope(method, path, request_id or generate_request_id(), time.monotonic())
        self.logger.http(
            "HTTP Request", method=method, url=path, userAgent=user_agent, ip=ip, requestId=scope.request_id
        )
        return scope

    def request_finished(self, scope: RequestScope, status_code: int) -> float:
        """
        Log the response for a scope opened by request_started.

        Returns:
            Request duration in milliseconds
        """
        duration = (time.monotonic() - scope.started) * 1000
        self.logger.http(
            "HTTP Response",
            method=scope.method,
            url=scope.path,
            statusCode=status_code,
            duration=f"{round(duration)}ms",
            requestId=scope.request_id,
        )
        return duration


class _LoggedResponse:
    """Response iterable that logs the response once the server closes it"""

    def __init__(self, body: Iterable[bytes], on_close: Callable[[], None]):
        self._body = body
        self._on_close = on_close

    def __iter__(self):
        return iter(self._body)

    def close(self):
        try:
            if hasattr(self._body, "close"):
                self._body.close()
        finally:
            self._on_close()


class HttpLoggingMiddleware:
    """
    WSGI middleware logging every request and its response.

    The request id is taken from the X-Request-Id header when present.

    Example:
        from wsgiref.simple_server import make_server
        make_server("", 8000, HttpLoggingMiddleware(app)).serve_forever()
    """

    def __init__(self, app, logger: StructuredLogger = None):
        self.app = app
        self.requests = RequestLogger(logger)

    def __call__(self, environ, start_response):
        path = environ.get("PATH_INFO", "/")
        if environ.get("QUERY_STRING"):
            path = f"{path}?{environ['QUERY_STRING']}"
        scope = self.requests.request_started(
            environ.get("REQUEST_METHOD", "GET"),
            path,
            ip=environ.get("REMOTE_ADDR"),
            user_agent=environ.get("HTTP_USER_AGENT"),
            request_id=environ.get("HTTP_X_REQUEST_ID"),
        )
        state = {"status": 500, "logged": False}

        def logging_start_response(status, headers, exc_info=None):
            state["status"] = int(str(status).split(" ", 1)[0])
            return start_response(status, headers, exc_info)

        def finish():
            if not state["logged"]:
                state["logged"] = True
                self.requests.request_finished(scope, state["status"])

        try:
            body = self.app(environ, logging_start_response)
        except Exception:
            finish()
            raise
        return _LoggedResponse(body, finish)


def install_excepthook(logger: StructuredLogger = None) -> Callable:
    """
    Log uncaught exceptions as structured errors, then defer to the previous hook.

    KeyboardInterrupt is passed straight through.

    Returns:
        The hook that was replaced
    """
    previous = sys.excepthook

    def hook(exc_type, exc_value, exc_tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            target = logger if logger is not None else LoggerFactory.get_logger()
            log_structured_error(exc_value, target, uncaught=True)
            target.context.flush()
        previous(exc_type, exc_value, exc_tb)

    sys.excepthook = hook
    return previous
