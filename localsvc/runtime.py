from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TeardownAction:
    service_id: str
    service_name: str


class TeardownList:
    """Deregistrations owed at shutdown.

    Append-only while services are being registered; drained exactly once,
    newest first, by the lifecycle controller.
    """

    def __init__(self) -> None:
        self._actions: list[TeardownAction] = []
        self._drained = False

    def record(self, service_id: str, service_name: str) -> TeardownAction:
        if self._drained:
            raise RuntimeError("Teardown list already drained")
        action = TeardownAction(service_id=service_id, service_name=service_name)
        self._actions.append(action)
        return action

    def drain(self) -> list[TeardownAction]:
        """Hand out every action in reverse recording order, then close the list."""
        if self._drained:
            raise RuntimeError("Teardown list already drained")
        self._drained = True
        actions = list(reversed(self._actions))
        self._actions = []
        return actions

    @property
    def drained(self) -> bool:
        return self._drained

    def __len__(self) -> int:
        return len(self._actions)

    def service_ids(self) -> list[str]:
        return [a.service_id for a in self._actions]
