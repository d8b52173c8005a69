"""One-shot process exit hook registration."""

from typing import Callable, Optional
from abc import ABC, abstractmethod
import atexit
import threading


class ExitHookRegistrar(ABC):
    """Registers a single callback to run when the process terminates.

    ``install`` runs at most once per registrar; later calls are ignored and
    return False. Controllers share one registrar per process so cleanup is
    never registered twice.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._installed = False
        self.callback: Optional[Callable[[], None]] = None

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, callback: Callable[[], None]) -> bool:
        with self._lock:
            if self._installed:
                return False
            self._installed = True
            self.callback = callback
        self._register(callback)
        return True

    @abstractmethod
    def _register(self, callback: Callable[[], None]) -> None:
        pass


class AtexitRegistrar(ExitHookRegistrar):
    """Registrar backed by :mod:`atexit`."""

    def _register(self, callback: Callable[[], None]) -> None:
        atexit.register(callback)


class ManualRegistrar(ExitHookRegistrar):
    """Registrar whose callback is run by the host, e.g. at request end."""

    def _register(self, callback: Callable[[], None]) -> None:
        pass

    def fire(self) -> None:
        if self.callback is not None:
            self.callback()


# Process-wide default registrar
default_registrar = AtexitRegistrar()
