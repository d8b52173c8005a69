"""ASGI middleware that runs one profiling session per request."""

from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..core.collector import ProfileCollector
from ..core.config import config
from ..core.context import RequestContext
from ..core.decision import HeaderForcedDecision
from ..core.hooks import ManualRegistrar
from ..core.interfaces import Backend, ProfilerToggle, StartDecision
from ..monitoring.logging import get_logger
from ..monitoring.metrics import MetricsCollector
from ..profilers import CProfileToggle

logger = get_logger(__name__)


def request_uri(request: Request) -> str:
    """Path of the request including its query string."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


class ProfilingMiddleware(BaseHTTPMiddleware):
    """Profiles or measures every request.

    The end of the request plays the role of process exit: the collector's
    shutdown runs once the response status (or the escaping exception) is
    known. Handlers reach the collector through
    ``request.state.profile_collector`` to add custom timers or names.
    """

    def __init__(
        self,
        app,
        backend: Backend,
        decision: StartDecision,
        profiler_factory: Callable[[], ProfilerToggle] = CProfileToggle,
        enabled: Optional[bool] = None,
        force_profile_header: Optional[str] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        super().__init__(app)
        self.backend = backend
        self.decision = decision
        self.profiler_factory = profiler_factory
        self.enabled = config.enabled if enabled is None else enabled
        self.force_profile_header = force_profile_header or config.force_profile_header
        self.metrics = metrics

    def create_collector(self, context: RequestContext, registrar: ManualRegistrar) -> ProfileCollector:
        return ProfileCollector(
            backend=self.backend,
            starter=HeaderForcedDecision(self.decision, context, self.force_profile_header),
            profiler=self.profiler_factory(),
            context=context,
            registrar=registrar,
            metrics=self.metrics
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled:
            return await call_next(request)

        context = RequestContext(
            method=request.method,
            uri=request_uri(request),
            headers=dict(request.headers)
        )
        registrar = ManualRegistrar()
        collector = self.create_collector(context, registrar)
        request.state.profile_collector = collector

        collector.start()
        try:
            response = await call_next(request)
            context.set_status(response.status_code)
            return response
        except Exception as exc:
            context.record_exception(exc)
            context.set_status(500)
            logger.debug("Request raised, session will be discarded", uri=context.uri, error=str(exc))
            raise
        finally:
            registrar.fire()


def add_middleware(app, backend: Backend, decision: StartDecision, **kwargs):
    """Install the profiling middleware on a Starlette or FastAPI app."""
    app.add_middleware(ProfilingMiddleware, backend=backend, decision=decision, **kwargs)
