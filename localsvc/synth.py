"""Turn job declarations into Consul registrations.

Both synthesizers are pure apart from logging and the id generator: they
never talk to Consul. A declaration that cannot be turned into something
Consul can execute is logged and dropped, never raised.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import urlunsplit

from .events import log_event
from .ids import IdGenerator
from .jobspec import CheckDecl, ServiceDecl

logger = logging.getLogger(__name__)

_PORT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class HttpProbe:
    url: str


@dataclass(frozen=True)
class UnsupportedProbe:
    type: str


Probe = Union[HttpProbe, UnsupportedProbe]


@dataclass(frozen=True)
class CheckRegistration:
    id: str
    name: str
    interval: str
    probe: Probe
    method: str = ""
    timeout: str | None = None

    @property
    def executable(self) -> bool:
        return isinstance(self.probe, HttpProbe)

    def to_consul(self) -> dict[str, Any]:
        """Consul AgentServiceCheck body."""
        data: dict[str, Any] = {"Name": self.name, "Interval": self.interval}
        if self.id:
            data["CheckID"] = self.id
        if isinstance(self.probe, HttpProbe):
            data["HTTP"] = self.probe.url
        if self.method:
            data["Method"] = self.method
        if self.timeout:
            data["Timeout"] = self.timeout
        return data


@dataclass(frozen=True)
class ServiceRegistration:
    id: str
    name: str
    port: int
    address: str
    tags: list[str] = field(default_factory=list)
    checks: list[CheckRegistration] = field(default_factory=list)

    def to_consul(self) -> dict[str, Any]:
        """Consul AgentServiceRegistration body."""
        return {
            "ID": self.id,
            "Name": self.name,
            "Tags": list(self.tags),
            "Port": self.port,
            "Address": self.address,
            "Checks": [c.to_consul() for c in self.checks],
        }


def parse_port(label: str) -> int | None:
    """Resolve a port label. Only plain decimal labels resolve ("8080", not " 8080" or "8_080")."""
    if not isinstance(label, str) or not _PORT_RE.fullmatch(label):
        return None
    return int(label)


def http_url(address: str, port: int, path: str) -> str:
    host = f"[{address}]" if ":" in address else address
    return urlunsplit(("http", f"{host}:{port}", path, "", ""))


def synthesize_check(check: CheckDecl, address: str) -> CheckRegistration | None:
    port = parse_port(check.port_label)
    if port is None:
        log_event(
            "WARN",
            f"Check port is not a number ({check.port_label})",
            logger,
            check_name=check.name,
            port_label=check.port_label,
        )
        return None

    probe: Probe
    if check.type.lower() == "http":
        probe = HttpProbe(url=http_url(address, port, check.path))
    else:
        log_event("WARN", f"Unhandled check type: {check.type}", logger, check_name=check.name, check_type=check.type)
        probe = UnsupportedProbe(type=check.type)

    return CheckRegistration(
        id=check.id,
        name=check.name,
        interval=check.interval,
        probe=probe,
        method=check.method,
        timeout=check.timeout,
    )


def synthesize_service(service: ServiceDecl, address: str, ids: IdGenerator) -> ServiceRegistration | None:
    port = parse_port(service.port_label)
    if port is None:
        log_event(
            "WARN",
            f"Service port label not a number ({service.port_label})",
            logger,
            service_name=service.name,
            port_label=service.port_label,
        )
        return None

    checks: list[CheckRegistration] = []
    for decl in service.checks:
        check = synthesize_check(decl, address)
        if check is None or not check.executable:
            continue
        checks.append(check)

    reg = ServiceRegistration(
        id=ids.service_id(service.name),
        name=service.name,
        port=port,
        address=address,
        tags=list(service.tags),
        checks=checks,
    )
    if logger.isEnabledFor(logging.DEBUG):
        log_event(
            "DEBUG",
            "Agent service registration:\n" + json.dumps(reg.to_consul(), indent=2),
            logger,
            service_name=reg.name,
            service_id=reg.id,
        )
    return reg
