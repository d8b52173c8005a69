"""Profiler toggle backed by :mod:`cProfile`."""

from typing import Any, Dict, Optional
import cProfile
import sys

from ..core.config import config
from ..core.interfaces import ProfilerToggle


class CProfileToggle(ProfilerToggle):
    """Runs a fresh ``cProfile.Profile`` between ``enable`` and ``disable``.

    ``disable`` returns the raw stats mapping of
    ``(file, line, function) -> (cc, nc, tt, ct, callers)``, the same shape
    ``pstats.Stats`` works on. The collector passes it through untouched.
    """

    def __init__(self, builtins: Optional[bool] = None, subcalls: Optional[bool] = None):
        self.builtins = config.profile_builtins if builtins is None else builtins
        self.subcalls = config.profile_subcalls if subcalls is None else subcalls
        self._profile: Optional[cProfile.Profile] = None

    @property
    def enabled(self) -> bool:
        return self._profile is not None

    def enable(self) -> None:
        if self._profile is not None:
            return

        if sys.getprofile() is not None:
            raise RuntimeError("Another profiler is already active")

        profile = cProfile.Profile(builtins=self.builtins, subcalls=self.subcalls)
        profile.enable()
        self._profile = profile

    def disable(self) -> Optional[Dict[Any, Any]]:
        profile = self._profile
        if profile is None:
            return None

        self._profile = None
        profile.disable()
        profile.create_stats()
        return profile.stats
