"""Storage backends."""

from ..core.interfaces import Backend
from .logging_backend import LoggingBackend

__all__ = ["Backend", "LoggingBackend"]
