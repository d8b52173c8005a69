"""Backend that reports finished sessions through the structured log."""

from typing import Any, List

from ..core.interfaces import Backend
from ..core.types import CustomTimer, OperationType
from ..monitoring.logging import get_logger


class LoggingBackend(Backend):
    """Development sink: logs each session instead of persisting it."""

    def __init__(self, logger_name: str = "profile_collector.sessions"):
        self.logger = get_logger(logger_name)

    def store_profile(self, operation_name: str, data: Any, custom_timers: List[CustomTimer]) -> None:
        self.logger.info(
            "Profile collected",
            operation=operation_name,
            entries=len(data) if data is not None else 0,
            custom_timers=[timer.to_dict() for timer in custom_timers]
        )

    def store_measurement(
        self,
        operation_name: str,
        duration_millis: int,
        operation_type: OperationType
    ) -> None:
        self.logger.info(
            "Measurement collected",
            operation=operation_name,
            duration_ms=duration_millis,
            operation_type=operation_type.name
        )
