from __future__ import annotations

import random
import time


class IdGenerator:
    """Service ids of the form ``<name>-<16 hex chars>``.

    Seeded once from the clock, so two runs over the same job produce
    different ids. Uniqueness is not checked against Consul or against ids
    already handed out in this run; a collision needs two equal 63-bit draws.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(time.time_ns() if seed is None else seed)

    def service_id(self, service_name: str) -> str:
        return f"{service_name}-{self._rng.getrandbits(63):016x}"
