from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .errors import RegistryError
from .events import log_event
from .ids import IdGenerator
from .jobspec import JobSpec
from .runtime import TeardownList
from .synth import ServiceRegistration, synthesize_service

logger = logging.getLogger(__name__)


class Registry(Protocol):
    def register(self, registration: ServiceRegistration) -> None: ...

    def deregister(self, service_id: str) -> None: ...


@dataclass
class RegistrationSummary:
    registered: int = 0
    skipped: int = 0
    failed: int = 0


class Orchestrator:
    """Registers every service of a job, one at a time, in declaration order."""

    def __init__(self, registry: Registry, ids: IdGenerator, teardown: TeardownList | None = None):
        self.registry = registry
        self.ids = ids
        self.teardown = teardown if teardown is not None else TeardownList()
        self.summary = RegistrationSummary()

    def register_job(self, job: JobSpec, address: str) -> TeardownList:
        for group in job.task_groups:
            log_event("INFO", f"Processing task group: {group.name}", logger, job=job.label, task_group=group.name)
            for task in group.tasks:
                log_event("INFO", f"Diving into task: {task.name}", logger, task_group=group.name, task=task.name)
                for service in task.services:
                    log_event("INFO", f"Looking at service: {service.name}", logger, task=task.name, service_name=service.name)
                    reg = synthesize_service(service, address, self.ids)
                    if reg is None:
                        self.summary.skipped += 1
                        continue
                    self._submit(reg)

        log_event(
            "INFO",
            f"Registration pass done: {self.summary.registered} registered, "
            f"{self.summary.skipped} skipped, {self.summary.failed} failed",
            logger,
            job=job.label,
            address=address,
        )
        return self.teardown

    def _submit(self, reg: ServiceRegistration) -> None:
        # Every attempt is owed a deregistration; a failed answer may still have been stored.
        self.teardown.record(reg.id, reg.name)
        try:
            self.registry.register(reg)
        except RegistryError as e:
            self.summary.failed += 1
            log_event(
                "WARN",
                f"Something went wrong when trying to register the service: {e}",
                logger,
                service_name=reg.name,
                service_id=reg.id,
                error=str(e),
            )
            return
        self.summary.registered += 1
        log_event("INFO", f"Registered service {reg.name}", logger, service_name=reg.name, service_id=reg.id)
