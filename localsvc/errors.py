from __future__ import annotations


class LocalServiceError(Exception):
    """Base class for errors raised by local-service."""


class JobSpecError(LocalServiceError):
    pass


class AddressResolutionError(LocalServiceError):
    pass


class RegistryError(LocalServiceError):
    """A Consul agent call failed (transport error or non-2xx answer)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
