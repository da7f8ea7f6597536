"""JSON-RPC 2.0 over HTTP transport."""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from apflow_client.config import DEFAULT_API_URL
from apflow_client.credentials import AUTH_TOKEN_KEY, CredentialStore
from apflow_client.errors import (
    ClientValidationError,
    MalformedResponseError,
    RpcError,
    TransportError,
)
from apflow_client.rpc.models import JsonRpcErrorObject, JsonRpcRequest, JsonRpcResponse

logger = logging.getLogger(__name__)

_NO_BODY = object()


class JsonRpcTransport:
    """Sends JSON-RPC requests to named endpoints of one server.

    Request ids start at 1 and increase by one per request. They are only
    used to correlate a response with its request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        token: str | None = None,
        credentials: CredentialStore | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            base_url: Server root, e.g. http://localhost:8000
            token: Bearer token attached to every request
            credentials: Store read for a token before each request when no
                explicit token is set
            headers: Extra headers passed through on every request
            timeout: Seconds, forwarded to httpx. None keeps the httpx default
            http_client: Pre-built client (tests, custom transports). Not
                closed by this transport
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._credentials = credentials
        self._headers = dict(headers or {})
        self._next_id = 1

        if http_client is None:
            if timeout is not None:
                http_client = httpx.AsyncClient(timeout=timeout)
            else:
                http_client = httpx.AsyncClient()
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = http_client

    @property
    def base_url(self) -> str:
        return self._base_url

    def next_request_id(self) -> int:
        """Reserve the next request id."""
        request_id = self._next_id
        self._next_id += 1
        return request_id

    async def call(
        self,
        endpoint: str,
        method: str,
        params: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        token: str | None = None,
    ) -> Any:
        """Send a JSON-RPC request and return its result.

        Args:
            endpoint: Endpoint path, e.g. /tasks
            method: Dot-namespaced method name, e.g. tasks.create
            params: Method parameters (object or array)
            headers: Extra headers for this call only
            token: Bearer token for this call only. An empty string sends
                no Authorization header

        Returns:
            The untouched result member of the response

        Raises:
            RpcError: If the response carries an error object
            TransportError: If the HTTP exchange fails
            MalformedResponseError: If the body is not a JSON-RPC envelope
        """
        if not method or not method.strip():
            raise ClientValidationError("RPC method name is required")

        request = JsonRpcRequest(method=method, params=params, id=self.next_request_id())
        url = self._url(endpoint)
        logger.debug(f"[Transport] -> {method} (id={request.id}) {url}")

        try:
            response = await self._client.post(
                url,
                json=request.to_wire(),
                headers=self._build_headers(headers, token, content_type=True),
            )
        except httpx.HTTPError as e:
            logger.error(f"[Transport] API error calling {method}: {e}")
            raise TransportError(str(e) or None) from e

        return self._unwrap(request, response)

    async def get_document(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        token: str | None = None,
    ) -> Any:
        """Fetch a plain JSON document with GET, outside the RPC envelope.

        The body is returned as decoded, no result/error unwrapping happens.
        """
        url = self._url(path)
        logger.debug(f"[Transport] -> GET {url}")

        try:
            response = await self._client.get(
                url, headers=self._build_headers(headers, token, content_type=False)
            )
        except httpx.HTTPError as e:
            logger.error(f"[Transport] API error fetching {path}: {e}")
            raise TransportError(str(e) or None) from e

        if not response.is_success:
            logger.error(f"[Transport] GET {path} returned HTTP {response.status_code}")
            raise TransportError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Document at {path} is not valid JSON", status_code=response.status_code
            ) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcTransport":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # -- Internal --

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _resolve_token(self, override: str | None) -> str | None:
        if override is not None:
            return override or None
        if self._token:
            return self._token
        if self._credentials is not None:
            return self._credentials.get(AUTH_TOKEN_KEY) or None
        return None

    def _build_headers(
        self,
        extra: Mapping[str, str] | None,
        token: str | None,
        *,
        content_type: bool,
    ) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = "application/json"
        headers.update(self._headers)
        if extra:
            headers.update(extra)

        resolved = self._resolve_token(token)
        if resolved:
            headers["Authorization"] = f"Bearer {resolved}"
        return headers

    def _unwrap(self, request: JsonRpcRequest, response: httpx.Response) -> Any:
        """Turn an HTTP response into a result or a normalized exception."""
        try:
            body = response.json()
        except ValueError:
            body = _NO_BODY

        # An embedded RPC error wins over the HTTP status
        error = _embedded_error(body)
        if error is not None:
            logger.warning(
                f"[Transport] RPC error for {request.method} (id={request.id}): "
                f"code={error.code} message={error.message}"
            )
            raise RpcError(
                error.message,
                code=error.code,
                data=error.data,
                status_code=response.status_code,
            )

        if not response.is_success:
            logger.error(
                f"[Transport] {request.method} returned HTTP {response.status_code} "
                "without an error envelope"
            )
            raise TransportError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict) or not ("jsonrpc" in body or "result" in body):
            raise MalformedResponseError(
                f"Response to {request.method} is not a JSON-RPC envelope",
                status_code=response.status_code,
            )

        try:
            envelope = JsonRpcResponse.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Response to {request.method} is not a JSON-RPC envelope",
                status_code=response.status_code,
            ) from e

        if envelope.id is not None and envelope.id != request.id:
            logger.warning(
                f"[Transport] Response id {envelope.id!r} does not match request id {request.id}"
            )

        return envelope.result


def _embedded_error(body: Any) -> JsonRpcErrorObject | None:
    """Extract a non-null error member from a decoded body."""
    if not isinstance(body, dict) or body.get("error") is None:
        return None

    raw = body["error"]
    if isinstance(raw, dict):
        try:
            return JsonRpcErrorObject.model_validate(raw)
        except ValidationError:
            # Keep the usable members, drop only the ones with bad types
            code = raw.get("code")
            message = raw.get("message")
            return JsonRpcErrorObject(
                code=code if isinstance(code, int) and not isinstance(code, bool) else None,
                message=message if isinstance(message, str) else None,
                data=raw.get("data"),
            )
    if isinstance(raw, str):
        return JsonRpcErrorObject(message=raw)
    return JsonRpcErrorObject(data=raw)
