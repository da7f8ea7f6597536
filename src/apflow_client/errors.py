"""Exceptions raised by the apflow client."""

from typing import Any

GENERIC_RPC_MESSAGE = "RPC Error"
GENERIC_TRANSPORT_MESSAGE = "Network error"


class ApflowClientError(Exception):
    """Base class for all client failures."""


class TransportError(ApflowClientError):
    """The HTTP exchange itself failed (network, timeout, bad status)."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or GENERIC_TRANSPORT_MESSAGE)


class MalformedResponseError(TransportError):
    """Response body is not a usable JSON-RPC envelope or result."""


class RpcError(ApflowClientError):
    """Server answered with a JSON-RPC error object."""

    def __init__(
        self,
        message: str | None = None,
        code: int | None = None,
        data: Any = None,
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.data = data
        self.status_code = status_code
        self.message = message or GENERIC_RPC_MESSAGE
        super().__init__(self.message)


class ClientValidationError(ApflowClientError, ValueError):
    """Caller input rejected before any request is built."""
