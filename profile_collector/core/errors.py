"""Error taxonomy and fatal error records for profiling sessions."""

from typing import Dict, Any, Optional
from dataclasses import dataclass
from enum import Enum
import traceback


class ErrorKind(Enum):
    """Kinds of runtime errors a session can observe."""
    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024

    @property
    def is_fatal(self) -> bool:
        """Whether this kind means the process is terminating abnormally."""
        return self in FATAL_KINDS


FATAL_KINDS = frozenset({ErrorKind.ERROR, ErrorKind.PARSE, ErrorKind.COMPILE_ERROR})


@dataclass(frozen=True)
class FatalError:
    """Evidence that the unit of work terminated abnormally."""
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    kind: ErrorKind = ErrorKind.USER_ERROR

    @property
    def is_fatal(self) -> bool:
        return self.kind.is_fatal

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FatalError":
        """Build a record from a Python exception.

        Syntax errors map to PARSE and carry their own location; any other
        exception maps to ERROR and is located at the innermost frame of its
        traceback.
        """
        if isinstance(exc, SyntaxError):
            return cls(
                message=exc.msg or str(exc),
                file=exc.filename,
                line=exc.lineno,
                kind=ErrorKind.PARSE
            )

        file = None
        line = None
        if exc.__traceback__ is not None:
            frames = traceback.extract_tb(exc.__traceback__)
            if frames:
                file = frames[-1].filename
                line = frames[-1].lineno

        message = str(exc)
        return cls(
            message=f"{type(exc).__name__}: {message}" if message else type(exc).__name__,
            file=file,
            line=line,
            kind=ErrorKind.ERROR
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "kind": self.kind.name
        }


class CollectorError(Exception):
    """Base exception for profile collector errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(CollectorError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: str = None, **kwargs):
        self.config_key = config_key
        super().__init__(message=f"Configuration error: {message}", **kwargs)


class BackendError(CollectorError):
    """Raised by storage backends that fail to store a session."""

    def __init__(self, backend_name: str, message: str, **kwargs):
        self.backend_name = backend_name
        super().__init__(message=f"Backend '{backend_name}' failed: {message}", **kwargs)
