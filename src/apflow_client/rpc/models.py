"""JSON-RPC 2.0 envelope models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

JSONRPC_VERSION = "2.0"


class JsonRpcRequest(BaseModel):
    """Request envelope sent to the server."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str = Field(min_length=1)
    params: Any = None
    id: int | str

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the HTTP body, omitting params when unset."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            wire["params"] = self.params
        wire["id"] = self.id
        return wire


class JsonRpcErrorObject(BaseModel):
    """Error member of a response envelope."""

    code: int | None = None
    message: str | None = None
    data: Any = None


class JsonRpcResponse(BaseModel):
    """Response envelope returned by the server."""

    jsonrpc: str = JSONRPC_VERSION
    result: Any = None
    error: JsonRpcErrorObject | None = None
    id: int | str | None = None
