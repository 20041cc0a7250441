"""
svclog Logging Module

Service logging pipeline: redaction, enrichment, per-sink level filtering
and size-bounded rotating files.

Provides:
- Seven severities (error, warn, info, http, verbose, debug, silly)
- Structured NDJSON file output and colorized console output
- error.log / combined.log / optional http.log with rotation and retention
- Credential redaction
- Child loggers with accumulated module tags
- Domain loggers (database, api, security, business, performance)

Usage:
    from svclog.logging import get_logger

    logger = get_logger("payments")
    logger.info("Charge captured", amount=1200, currency="EUR")

Configuration:
    # Via environment variables
    export APP_ENV=production
    export LOG_LEVEL=info
    export LOG_DIR=/var/log/billing
    export SERVICE_NAME=billing

    # Via configuration file
    from svclog.logging.config import LoggingConfig
    LoggingConfig.setup_logging(config_path="svclog.yml")
"""

from svclog.logging.levels import LogLevel
from svclog.logging.structured_logger import LoggerFactory, LoggingContext, StructuredLogger

__all__ = [
    "LoggerFactory",
    "LoggingContext",
    "StructuredLogger",
    "LogLevel",
    "get_logger",
]


def get_logger(name: str = None) -> StructuredLogger:
    """
    Get a logger bound to the default context.

    Args:
        name: Dotted module tag (e.g. "api.users"); None for the root logger

    Example:
        logger = get_logger("database")
        logger.debug("Query executed", rows=12)
    """
    return LoggerFactory.get_logger(name)
