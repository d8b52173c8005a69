"""Profiling session controller."""

from typing import Any, Callable, Iterator, List, Optional
from contextlib import contextmanager
import math
import time

from .config import config
from .context import InvocationContext, ProcessContext, guess_operation_name
from .errors import ErrorKind, FatalError
from .hooks import ExitHookRegistrar, default_registrar
from .interfaces import Backend, ProfilerToggle, StartDecision
from .types import CustomTimer, OperationType
from ..monitoring.logging import get_logger, performance_logger
from ..monitoring.metrics import MetricsCollector, metrics_collector

logger = get_logger(__name__)

UNKNOWN_OPERATION = "unknown"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProfileCollector:
    """Controls one profiling session at a time.

    A session is either sampled, in which case the profiler toggle runs and
    the backend receives the full profile with its custom timers, or
    unsampled, in which case only its wall-clock duration is stored. No
    operation ever raises into the caller: misuse is ignored and collaborator
    failures are logged and counted.
    """

    def __init__(
        self,
        backend: Backend,
        starter: StartDecision,
        profiler: ProfilerToggle,
        context: Optional[InvocationContext] = None,
        registrar: Optional[ExitHookRegistrar] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
        server_error_status: Optional[int] = None
    ):
        self.backend = backend
        self.starter = starter
        self.profiler = profiler
        self._owns_context = context is None
        self.context = context or ProcessContext()
        self.registrar = registrar or default_registrar
        self.metrics = metrics or metrics_collector
        self.clock = clock
        self.server_error_status = server_error_status or config.server_error_status

        self._active = False
        self._started_at: Optional[float] = None
        self._sampled = False
        self._operation_type = OperationType.WEB
        self._operation_name: Optional[str] = None
        self._custom_timers: List[CustomTimer] = []
        self._fatal_error: Optional[FatalError] = None

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def is_sampled(self) -> bool:
        return self._sampled

    @property
    def operation_type(self) -> OperationType:
        return self._operation_type

    @property
    def operation_name(self) -> Optional[str]:
        return self._operation_name

    @property
    def custom_timers(self) -> List[CustomTimer]:
        return self._custom_timers

    @property
    def fatal_error(self) -> Optional[FatalError]:
        return self._fatal_error

    def is_started(self) -> bool:
        return self._active

    def start(self) -> None:
        """Begin a session; does nothing while one is already active."""
        if self._active:
            return

        self._operation_name = None
        self._custom_timers = []
        self._fatal_error = None
        self._started_at = self.clock()
        self._operation_type = OperationType.WORKER if self._is_worker() else OperationType.WEB
        self._sampled = self._should_profile()
        self._active = True

        if not self.registrar.installed and self.registrar.install(self.shutdown):
            if self._owns_context:
                # the exit hook reads the exception that killed the process
                self.context.watch_exceptions()

        if self._sampled:
            try:
                self.profiler.enable()
            except Exception as e:
                logger.warning("Profiler could not be enabled, measuring only", error=str(e))
                self._record_failure("profiler")
                self._sampled = False

        self.metrics.increment_counter(
            "sessions_started_total",
            {"operation_type": self._operation_type.name, "sampled": str(self._sampled).lower()}
        )
        logger.debug(
            "Session started",
            operation_type=self._operation_type.name,
            sampled=self._sampled
        )

    def set_operation_type(self, operation_type: OperationType) -> None:
        self._operation_type = operation_type

    def set_operation_name(self, operation_name: str) -> None:
        self._operation_name = operation_name

    def start_custom_timer(self, group: str, label: str) -> Optional[int]:
        """Open a timer inside a sampled session and return its handle.

        Custom timers are grouped by category, such as database queries or
        outgoing HTTP calls. Returns None outside a sampled session.
        """
        if not self._active or not self._sampled:
            return None

        self._custom_timers.append(CustomTimer(group=group, label=label, started_at=self.clock()))
        return len(self._custom_timers) - 1

    def stop_custom_timer(self, handle: Optional[int]) -> None:
        if not isinstance(handle, int) or isinstance(handle, bool):
            return
        if handle < 0 or handle >= len(self._custom_timers):
            return

        timer = self._custom_timers[handle]
        if timer.closed:
            return

        elapsed = max(0.0, self.clock() - timer.started_at)
        timer.duration_micros = _round_half_up(elapsed * 1_000_000)
        timer.started_at = None

    def log_fatal(
        self,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        kind: ErrorKind = ErrorKind.USER_ERROR
    ) -> None:
        """Record why the session failed; the first record wins."""
        if self._fatal_error is not None:
            return

        self._fatal_error = FatalError(message=message, file=file, line=line, kind=kind)
        logger.debug("Fatal error recorded", fatal_error=self._fatal_error.to_dict())

    def shutdown(self) -> None:
        """Finish the session at process (or request) end.

        A fatal last error or a server error response status is recorded
        before the session is stopped.
        """
        if not self._active:
            return

        error = self._inspect("last_error")
        if error is not None and error.is_fatal:
            self.log_fatal(error.message, error.file, error.line, error.kind)
        else:
            status = self._inspect("response_status")
            if status is not None and status >= self.server_error_status:
                self.log_fatal(f"Request failed with HTTP status {status}")

        self.stop()

    def stop(self, operation_name: Optional[str] = None) -> None:
        """End the session and forward its data to the backend."""
        if not self._active:
            return

        self._active = False

        data = None
        if self._sampled:
            try:
                data = self.profiler.disable()
            except Exception as e:
                logger.warning("Profiler could not be disabled", error=str(e))
                self._record_failure("profiler")

        duration = max(0.0, self.clock() - self._started_at)
        self._started_at = None

        if operation_name:
            self._operation_name = operation_name

        if not self._operation_name:
            self._operation_name = self._guess_operation_name()

        self._dispatch(data, duration)

    @contextmanager
    def session(self, operation_name: Optional[str] = None) -> Iterator["ProfileCollector"]:
        """Run a block as one session.

        An exception escaping the block is recorded as fatal and re-raised.
        Nested use inside an active session leaves the outer session running.
        """
        if self._active:
            yield self
            return

        self.start()
        try:
            yield self
        except Exception as e:
            error = FatalError.from_exception(e)
            self.log_fatal(error.message, error.file, error.line, error.kind)
            raise
        finally:
            self.stop(operation_name)

    @contextmanager
    def custom_timer(self, group: str, label: str) -> Iterator[Optional[int]]:
        handle = self.start_custom_timer(group, label)
        try:
            yield handle
        finally:
            self.stop_custom_timer(handle)

    def _dispatch(self, data: Any, duration: float) -> None:
        operation_type = self._operation_type.name
        self.metrics.record_histogram("session_duration_seconds", duration, {"operation_type": operation_type})

        if self._fatal_error is not None:
            self.metrics.increment_counter("sessions_discarded_total", {"operation_type": operation_type})
            self._log_session(duration, "discarded", fatal_error=self._fatal_error.to_dict())
            return

        try:
            if self._sampled:
                self.backend.store_profile(self._operation_name, data, self._custom_timers)
                kind = "profile"
            else:
                self.backend.store_measurement(
                    self._operation_name,
                    _round_half_up(duration * 1000),
                    self._operation_type
                )
                kind = "measurement"
        except Exception as e:
            logger.warning(
                "Backend failed to store session",
                operation=self._operation_name,
                error=str(e)
            )
            self._record_failure("backend")
            return

        self.metrics.increment_counter("sessions_stored_total", {"kind": kind})
        self._log_session(duration, kind)

    def _log_session(self, duration: float, outcome: str, **kwargs) -> None:
        performance_logger.log_session(
            operation=self._operation_name,
            operation_type=self._operation_type.name,
            duration=duration,
            sampled=self._sampled,
            outcome=outcome,
            custom_timers=len(self._custom_timers),
            **kwargs
        )

    def _is_worker(self) -> bool:
        try:
            return bool(self.context.is_worker())
        except Exception as e:
            logger.warning("Invocation context failed, assuming web", error=str(e))
            self._record_failure("context")
            return False

    def _should_profile(self) -> bool:
        try:
            return bool(self.starter.should_profile())
        except Exception as e:
            logger.warning("Start decision failed, measuring only", error=str(e))
            self._record_failure("decision")
            return False

    def _inspect(self, attribute: str) -> Any:
        try:
            return getattr(self.context, attribute)()
        except Exception as e:
            logger.warning("Invocation context failed", inspected=attribute, error=str(e))
            self._record_failure("context")
            return None

    def _guess_operation_name(self) -> str:
        try:
            name = guess_operation_name(self.context)
        except Exception as e:
            logger.warning("Could not derive operation name", error=str(e))
            self._record_failure("context")
            name = None
        return name or UNKNOWN_OPERATION

    def _record_failure(self, collaborator: str) -> None:
        self.metrics.increment_counter("collaborator_failures_total", {"collaborator": collaborator})
