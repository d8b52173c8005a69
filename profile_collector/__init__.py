"""
Profile Collector - per-request and per-process profiling sessions

Decides whether a unit of work is fully profiled or only timed, keeps
custom timers and fatal errors for the running session, and hands the
result to a storage backend.
"""

__version__ = "1.0.0"

from .core.collector import ProfileCollector
from .core.context import InvocationContext, ProcessContext, RequestContext
from .core.decision import StaticDecision, HeaderForcedDecision
from .core.errors import ErrorKind, FatalError, CollectorError
from .core.hooks import ExitHookRegistrar, AtexitRegistrar, ManualRegistrar
from .core.interfaces import Backend, ProfilerToggle, StartDecision
from .core.types import CustomTimer, OperationType

__all__ = [
    "ProfileCollector",
    "InvocationContext",
    "ProcessContext",
    "RequestContext",
    "StaticDecision",
    "HeaderForcedDecision",
    "ErrorKind",
    "FatalError",
    "CollectorError",
    "ExitHookRegistrar",
    "AtexitRegistrar",
    "ManualRegistrar",
    "Backend",
    "ProfilerToggle",
    "StartDecision",
    "CustomTimer",
    "OperationType",
]
