from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlsplit

import httpx

from .errors import RegistryError
from .settings import Settings
from .synth import ServiceRegistration


def agent_base_url(http_addr: str, use_ssl: bool = False) -> str:
    """Base URL of the Consul agent from a CONSUL_HTTP_ADDR style value.

    Accepts ``host:port`` or a full ``http(s)://host:port`` URL.
    """
    addr = http_addr.strip()
    if not addr:
        raise RegistryError("Consul address is empty")
    if "://" in addr:
        parts = urlsplit(addr)
        if parts.scheme not in {"http", "https"}:
            raise RegistryError(f"Unsupported Consul address scheme: {parts.scheme}")
        if not parts.netloc:
            raise RegistryError(f"Invalid Consul address: {http_addr!r}")
        return f"{parts.scheme}://{parts.netloc}"
    scheme = "https" if use_ssl else "http"
    return f"{scheme}://{addr}"


class ConsulClient:
    """Minimal Consul agent client: register, deregister, agent self."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"X-Consul-Token": token} if token else {}
        self.base_url = base_url
        try:
            self._http = httpx.Client(
                base_url=base_url,
                headers=headers,
                timeout=timeout_s,
                follow_redirects=False,
                transport=transport,
            )
        except httpx.InvalidURL as e:
            raise RegistryError(f"Invalid Consul address {base_url!r}: {e}") from e

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> "ConsulClient":
        return cls(
            agent_base_url(settings.consul_http_addr, settings.consul_http_ssl),
            token=settings.consul_http_token,
            timeout_s=settings.consul_timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ConsulClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            resp = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise RegistryError(f"{method} {path} failed: {type(e).__name__}: {e}") from e
        if resp.status_code // 100 != 2:
            detail = resp.text.strip()
            raise RegistryError(f"{method} {path} returned HTTP {resp.status_code}: {detail}", resp.status_code)
        return resp

    def agent_self(self) -> dict[str, Any]:
        resp = self._request("GET", "/v1/agent/self")
        try:
            return resp.json()
        except ValueError as e:
            raise RegistryError(f"Invalid JSON from /v1/agent/self: {e}") from e

    def register(self, registration: ServiceRegistration) -> None:
        self._request("PUT", "/v1/agent/service/register", json=registration.to_consul())

    def deregister(self, service_id: str) -> None:
        self._request("PUT", f"/v1/agent/service/deregister/{quote(service_id, safe='')}")
