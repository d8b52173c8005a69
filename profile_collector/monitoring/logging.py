"""Structured logging configuration."""

import logging
import sys
from typing import Optional
import structlog

from ..core.config import config


def setup_logging(log_level: Optional[str] = None, environment: Optional[str] = None):
    """Setup structured logging with structlog."""
    environment = environment or config.environment
    log_level = (log_level or config.log_level).upper()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if environment != "development"
            else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
    )


class CollectorLogger:
    """Thin wrapper around a structlog logger."""

    def __init__(self, name: str):
        self.name = name
        self.logger = structlog.get_logger(name)

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(message, **kwargs)

    def with_context(self, **kwargs) -> "CollectorLogger":
        """Create logger with additional context."""
        new_logger = CollectorLogger(self.name)
        new_logger.logger = self.logger.bind(**kwargs)
        return new_logger


class PerformanceLogger:
    """Logger for finished session timings."""

    def __init__(self):
        self.logger = CollectorLogger("performance")

    def log_session(
        self,
        operation: str,
        operation_type: str,
        duration: float,
        sampled: bool,
        outcome: str,
        **kwargs
    ):
        """Log a finished session."""
        self.logger.debug(
            "Session finished",
            event_type="session",
            operation=operation,
            operation_type=operation_type,
            duration_seconds=duration,
            sampled=sampled,
            outcome=outcome,
            **kwargs
        )


performance_logger = PerformanceLogger()


def get_logger(name: str) -> CollectorLogger:
    """Get a configured logger instance."""
    return CollectorLogger(name)
