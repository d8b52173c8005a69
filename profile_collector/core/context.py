"""Invocation contexts: what kind of unit of work is running and how it ended."""

from typing import Dict, Any, Optional, List, Mapping
from abc import ABC, abstractmethod
import os
import sys

from .errors import FatalError


class InvocationContext(ABC):
    """Read-only view of the environment a session runs in."""

    @abstractmethod
    def is_worker(self) -> bool:
        """True for batch/worker invocations, False for served requests."""
        pass

    def request_method(self) -> Optional[str]:
        return None

    def request_uri(self) -> Optional[str]:
        """Request path including the query string, if any."""
        return None

    def program_name(self) -> Optional[str]:
        return None

    def response_status(self) -> Optional[int]:
        return None

    def last_error(self) -> Optional[FatalError]:
        """The last error observed while the unit of work ran."""
        return None


class ProcessContext(InvocationContext):
    """Context of a worker process, backed by ``sys.argv``.

    Unhandled exceptions are observed by chaining ``sys.excepthook`` once
    ``watch_exceptions`` is called, so that an exit hook running after the
    traceback was printed can still see what killed the process.
    """

    def __init__(self, argv: Optional[List[str]] = None):
        self._argv = argv
        self._last_error: Optional[FatalError] = None
        self._previous_hook = None

    def is_worker(self) -> bool:
        return True

    def program_name(self) -> Optional[str]:
        argv = self._argv if self._argv is not None else sys.argv
        if not argv or not argv[0]:
            return None
        return argv[0]

    def last_error(self) -> Optional[FatalError]:
        return self._last_error

    def record_error(self, error: FatalError) -> None:
        """Remember an error explicitly, e.g. from a worker's own handler."""
        self._last_error = error

    def record_exception(self, exc: BaseException) -> None:
        if isinstance(exc, (SystemExit, KeyboardInterrupt)):
            return
        self._last_error = FatalError.from_exception(exc)

    def watch_exceptions(self) -> None:
        """Chain ``sys.excepthook`` to record unhandled exceptions."""
        if self._previous_hook is not None:
            return

        self._previous_hook = sys.excepthook

        def hook(exc_type, exc, tb):
            if exc is not None:
                self.record_exception(exc)
            self._previous_hook(exc_type, exc, tb)

        sys.excepthook = hook

    def unwatch_exceptions(self) -> None:
        if self._previous_hook is None:
            return
        sys.excepthook = self._previous_hook
        self._previous_hook = None


class RequestContext(InvocationContext):
    """Context of a single served HTTP request."""

    def __init__(
        self,
        method: str,
        uri: str,
        headers: Optional[Mapping[str, str]] = None
    ):
        self.method = method.upper()
        self.uri = uri
        self.headers: Dict[str, str] = {
            key.lower(): value for key, value in (headers or {}).items()
        }
        self.status: Optional[int] = None
        self.error: Optional[FatalError] = None

    def is_worker(self) -> bool:
        return False

    def request_method(self) -> Optional[str]:
        return self.method

    def request_uri(self) -> Optional[str]:
        return self.uri

    def response_status(self) -> Optional[int]:
        return self.status

    def last_error(self) -> Optional[FatalError]:
        return self.error

    def set_status(self, status: int) -> None:
        self.status = status

    def record_exception(self, exc: BaseException) -> None:
        self.error = FatalError.from_exception(exc)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "uri": self.uri,
            "status": self.status,
            "error": self.error.to_dict() if self.error else None
        }


def guess_operation_name(context: InvocationContext) -> Optional[str]:
    """Derive a session name from the invocation context.

    Workers are named after the base name of the invoked program, served
    requests after their method and path without the query string.
    """
    if context.is_worker():
        program = context.program_name()
        return os.path.basename(program) if program else None

    uri = context.request_uri() or "/"
    path = uri.split("?", 1)[0] or "/"
    method = context.request_method() or "GET"
    return f"{method} {path}"
