"""Client construction."""

import logging

import httpx

from apflow_client.client import ApflowClient
from apflow_client.config import DEFAULT_API_URL, ClientConfig
from apflow_client.credentials import API_URL_KEY, CredentialStore
from apflow_client.rpc.transport import JsonRpcTransport

logger = logging.getLogger(__name__)


def get_config() -> ClientConfig:
    """Create Config instance from the environment.

    A new instance is returned on every call, nothing is cached.
    """
    return ClientConfig()


def create_transport(
    config: ClientConfig | None = None,
    *,
    credentials: CredentialStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> JsonRpcTransport:
    """Create a JSON-RPC transport from config.

    A server URL saved in the credential store is used when the config
    still points at the default URL.
    """
    config = config or get_config()
    api_url = config.api_url
    if credentials is not None and api_url == DEFAULT_API_URL:
        api_url = credentials.get(API_URL_KEY) or api_url
    logger.debug(f"[Factory] Creating transport for {api_url}")
    return JsonRpcTransport(
        api_url,
        token=config.auth_token,
        credentials=credentials,
        headers=config.extra_headers,
        timeout=config.timeout,
        http_client=http_client,
    )


def create_client(
    config: ClientConfig | None = None,
    *,
    credentials: CredentialStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ApflowClient:
    """Create an ApflowClient (composition root).

    Every call builds an independent client, so several configurations
    can be used side by side.

    Args:
        config: Client configuration. Read from the environment when None
        credentials: Store consulted for a token before each request
        http_client: Pre-built httpx client, e.g. with a mock transport

    Returns:
        Configured client
    """
    transport = create_transport(config, credentials=credentials, http_client=http_client)
    return ApflowClient(transport)
