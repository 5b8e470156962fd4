from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

DEFAULT_JOBSPEC = "nomad-jobspec.tmpl"


def _env_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(env: Mapping[str, str], name: str) -> float | None:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_str(env: Mapping[str, str], name: str) -> str | None:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    # Job file
    jobspec_path: str = DEFAULT_JOBSPEC

    # Address advertised for every registration
    advertise_address: str | None = None
    iface: str | None = None

    # Consul agent
    consul_http_addr: str = "127.0.0.1:8500"
    consul_http_ssl: bool = False
    consul_http_token: str | None = None
    # None means registry calls never time out.
    consul_timeout_s: float | None = None

    debug: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            jobspec_path=_env_str(env, "LOCALSVC_JOBSPEC") or DEFAULT_JOBSPEC,
            advertise_address=_env_str(env, "LOCALSVC_ADVERTISE_ADDRESS"),
            iface=_env_str(env, "LOCALSVC_IFACE"),
            consul_http_addr=_env_str(env, "CONSUL_HTTP_ADDR") or "127.0.0.1:8500",
            consul_http_ssl=_env_bool(env, "CONSUL_HTTP_SSL", False),
            consul_http_token=_env_str(env, "CONSUL_HTTP_TOKEN"),
            consul_timeout_s=_env_float(env, "LOCALSVC_CONSUL_TIMEOUT_S"),
            debug=_env_bool(env, "LOCALSVC_DEBUG", False),
        )

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied (CLI wins over env)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)
