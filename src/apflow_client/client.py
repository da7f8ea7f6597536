"""Client facade for the apflow service."""

from apflow_client.api.system import SystemApi
from apflow_client.api.tasks import TasksApi
from apflow_client.rpc.transport import JsonRpcTransport


class ApflowClient:
    """Groups the task and system operations over one transport.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(self, transport: JsonRpcTransport) -> None:
        """Initialize client with a transport."""
        self.transport = transport
        self.tasks = TasksApi(transport)
        self.system = SystemApi(transport)

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ApflowClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
