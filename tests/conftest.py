import os as _os
import sys

import pytest

# Ensure project root is importable (so `import cli` works reliably across environments)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from localsvc.errors import RegistryError  # noqa: E402


class FakeRegistry:
    """In-memory stand-in for the Consul agent that records every call."""

    def __init__(self, fail_register=(), fail_deregister=()):
        self.fail_register = set(fail_register)
        self.fail_deregister = set(fail_deregister)
        self.calls = []
        self.registered = {}

    def register(self, registration):
        self.calls.append(("register", registration.name))
        if registration.name in self.fail_register:
            raise RegistryError(f"boom: {registration.name}", 500)
        self.registered[registration.id] = registration

    def deregister(self, service_id):
        self.calls.append(("deregister", service_id))
        if service_id in self.fail_deregister:
            raise RegistryError(f"boom: {service_id}", 500)
        self.registered.pop(service_id, None)

    @property
    def register_calls(self):
        return [name for op, name in self.calls if op == "register"]

    @property
    def deregister_calls(self):
        return [sid for op, sid in self.calls if op == "deregister"]


@pytest.fixture
def registry():
    return FakeRegistry()


def http_check(name="alive", port="8080", path="/healthz", type="http", interval="10s"):
    return {"name": name, "type": type, "port_label": port, "path": path, "interval": interval}


def service(name, port="8080", checks=(), tags=()):
    return {"name": name, "port_label": port, "tags": list(tags), "checks": list(checks)}


def job_doc(*services, group="grp", task="tsk"):
    return {"task_groups": [{"name": group, "tasks": [{"name": task, "services": list(services)}]}]}
