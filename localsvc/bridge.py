from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Callable

from .address import resolve_address
from .consul import ConsulClient
from .errors import AddressResolutionError, JobSpecError, RegistryError
from .events import log_event
from .ids import IdGenerator
from .jobspec import parse_file
from .lifecycle import LifecycleController
from .orchestrator import Orchestrator, Registry
from .runtime import TeardownList
from .settings import Settings

logger = logging.getLogger(__name__)


def _connect(settings: Settings) -> ConsulClient:
    client = ConsulClient.from_settings(settings)
    try:
        client.agent_self()
    except RegistryError:
        client.close()
        raise
    return client


def run(
    settings: Settings,
    registry: Registry | None = None,
    waiter: Callable[[], int] | None = None,
) -> int:
    """Register the job's services, hold them until a signal, deregister them.

    Returns the process exit code: 1 when startup fails, 0 after a clean drain.
    """
    with ExitStack() as stack:
        if registry is None:
            try:
                client = _connect(settings)
            except RegistryError as e:
                log_event("ERROR", f"Couldn't build a consul client, that's a real problem: {e}", logger, error=str(e))
                return 1
            registry = stack.enter_context(client)

        try:
            job = parse_file(settings.jobspec_path)
        except JobSpecError as e:
            log_event("ERROR", f"Error when trying to parse {settings.jobspec_path}: {e}", logger, error=str(e))
            return 1

        try:
            address = resolve_address(settings)
        except AddressResolutionError as e:
            log_event("ERROR", f"Unable to determine the address of this host: {e}", logger, error=str(e))
            return 1
        log_event("INFO", f"Advertising services on {address}", logger, address=address, job=job.label)

        controller = LifecycleController(registry, TeardownList(), waiter=waiter)
        controller.block_signals()
        stack.callback(controller.restore_signals)
        Orchestrator(registry, IdGenerator(), controller.teardown).register_job(job, address)
        return controller.run()
