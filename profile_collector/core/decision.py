"""Start decision adapters.

The sampling policy itself is supplied by the host; these adapters only wire
fixed answers and request headers into it.
"""

from typing import Optional

from .context import RequestContext
from .interfaces import StartDecision


class StaticDecision(StartDecision):
    """Always gives the same answer."""

    def __init__(self, profile: bool):
        self.profile = profile

    def should_profile(self) -> bool:
        return self.profile


class HeaderForcedDecision(StartDecision):
    """Forces profiling when a request carries a given header.

    Requests without the header defer to the wrapped decision.
    """

    def __init__(self, decision: StartDecision, context: RequestContext, header: Optional[str]):
        self.decision = decision
        self.context = context
        self.header = header

    def should_profile(self) -> bool:
        if self.header and self.context.header(self.header) is not None:
            return True
        return self.decision.should_profile()
