"""Collaborator interfaces consumed by the profile collector."""

from typing import Any, List
from abc import ABC, abstractmethod

from .types import CustomTimer, OperationType


class ProfilerToggle(ABC):
    """Process-wide switch for the low-level profiler."""

    @abstractmethod
    def enable(self) -> None:
        pass

    @abstractmethod
    def disable(self) -> Any:
        """Stop profiling and return the backend-defined dataset."""
        pass


class StartDecision(ABC):
    """Decides, once per session, whether to run the full profiler."""

    @abstractmethod
    def should_profile(self) -> bool:
        pass


class Backend(ABC):
    """Storage sink for finished sessions."""

    @abstractmethod
    def store_profile(self, operation_name: str, data: Any, custom_timers: List[CustomTimer]) -> None:
        pass

    @abstractmethod
    def store_measurement(
        self,
        operation_name: str,
        duration_millis: int,
        operation_type: OperationType
    ) -> None:
        pass
