"""Web integration."""

from .middleware import ProfilingMiddleware, add_middleware

__all__ = [
    "ProfilingMiddleware",
    "add_middleware"
]
