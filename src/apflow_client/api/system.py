"""System operations and service discovery."""

import logging
from typing import Any

from pydantic import ValidationError

from apflow_client.api.models import SystemHealth
from apflow_client.errors import MalformedResponseError
from apflow_client.rpc.transport import JsonRpcTransport

logger = logging.getLogger(__name__)

SYSTEM_ENDPOINT = "/system"
AGENT_CARD_PATH = "/.well-known/agent-card"


class SystemApi:
    """Health probe over RPC and agent card discovery over plain GET."""

    def __init__(self, transport: JsonRpcTransport) -> None:
        self._transport = transport

    async def health(self) -> SystemHealth:
        """Check liveness and version of the server."""
        result = await self._transport.call(SYSTEM_ENDPOINT, "system.health", {})
        try:
            return SystemHealth.model_validate(result)
        except ValidationError as e:
            logger.error(f"[SystemApi] Unexpected result shape for system.health: {e}")
            raise MalformedResponseError("Unexpected result for system.health") from e

    async def agent_card(self) -> Any:
        """Fetch the agent card document.

        This is a plain GET at a well-known path, not a JSON-RPC call. The
        document is returned exactly as served.
        """
        return await self._transport.get_document(AGENT_CARD_PATH)
