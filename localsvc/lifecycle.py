from __future__ import annotations

import logging
import signal
from enum import Enum
from typing import Callable, Iterable

from .errors import RegistryError
from .events import log_event
from .orchestrator import Registry
from .runtime import TeardownList

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS: frozenset[signal.Signals] = frozenset(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


class State(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class LifecycleController:
    """Holds the process until a termination signal, then deregisters everything.

    ``block_signals`` should be called before the first registration: the
    termination signals then stay pending instead of killing the process
    half-way through, and ``wait`` picks them up with ``sigwait``.
    """

    def __init__(
        self,
        registry: Registry,
        teardown: TeardownList,
        signals: Iterable[int] = TERMINATION_SIGNALS,
        waiter: Callable[[], int] | None = None,
    ) -> None:
        self.registry = registry
        self.teardown = teardown
        self.signals = frozenset(signals)
        self.state = State.RUNNING
        self._waiter = waiter or self._sigwait
        # A custom waiter delivers signals itself; leave the process mask alone.
        self._uses_sigwait = waiter is None
        self._old_mask: set[int] | None = None

    def block_signals(self) -> None:
        if self._uses_sigwait and self._old_mask is None:
            self._old_mask = signal.pthread_sigmask(signal.SIG_BLOCK, self.signals)

    def restore_signals(self) -> None:
        if self._old_mask is not None:
            signal.pthread_sigmask(signal.SIG_SETMASK, self._old_mask)
            self._old_mask = None

    def _sigwait(self) -> int:
        self.block_signals()
        return signal.sigwait(self.signals)

    def wait(self) -> int:
        log_event("INFO", f"Holding {len(self.teardown)} registrations until a termination signal", logger)
        signum = self._waiter()
        try:
            sig_name = signal.Signals(signum).name
        except ValueError:
            sig_name = str(signum)
        log_event("INFO", f"Received {sig_name}, deregistering services", logger, signal=sig_name)
        return signum

    def drain(self) -> tuple[int, int]:
        """Deregister every recorded service, newest first. Returns (ok, failed)."""
        self.state = State.DRAINING
        ok = failed = 0
        for action in self.teardown.drain():
            try:
                self.registry.deregister(action.service_id)
            except RegistryError as e:
                failed += 1
                log_event(
                    "WARN",
                    f"Failed to deregister service: {e}",
                    logger,
                    service_name=action.service_name,
                    service_id=action.service_id,
                    error=str(e),
                )
                continue
            ok += 1
            log_event("INFO", "Deregistered service", logger, service_name=action.service_name, service_id=action.service_id)
        self.state = State.TERMINATED
        self.restore_signals()
        return ok, failed

    def run(self) -> int:
        self.wait()
        self.drain()
        return 0
