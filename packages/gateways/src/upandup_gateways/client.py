"""Shared HTTP plumbing for the Dhiway and CORD gateway clients."""

from typing import Any

import httpx
import structlog

from upandup_core.errors import DIDNotFound, GatewayError, GatewayErrorKind
from upandup_core.models import CredentialType
from upandup_gateways.base import GatewayConfig, vc_type_for

logger = structlog.get_logger()

# 4xx responses that still mean "try again later"
_RETRYABLE_STATUS = {408, 425, 429}

# Bad API key or organization; the request itself was never judged
_AUTH_STATUS = {401, 403}


def raise_for_gateway_status(response: httpx.Response) -> None:
    """Map an HTTP error response onto a GatewayError."""
    if response.is_success:
        return
    status = response.status_code
    detail = response.text[:200]
    if status in _AUTH_STATUS:
        logger.error("Gateway refused credentials", url=str(response.request.url), status_code=status)
        raise GatewayError(
            GatewayErrorKind.UNAVAILABLE,
            f"{response.request.method} {response.request.url} refused authentication with {status}",
            status_code=status,
        )
    if status >= 500 or status in _RETRYABLE_STATUS:
        raise GatewayError(
            GatewayErrorKind.UNAVAILABLE,
            f"{response.request.method} {response.request.url} returned {status}: {detail}",
            status_code=status,
        )
    raise GatewayError(
        GatewayErrorKind.REJECTED,
        f"{response.request.method} {response.request.url} rejected with {status}: {detail}",
        status_code=status,
    )


class HTTPGatewayClient:
    """Base for gateway clients talking JSON over HTTP.

    Transport failures become ``GatewayError(UNAVAILABLE)``, client-side
    timeouts ``GatewayError(TIMEOUT)``, authentication failures
    ``GatewayError(UNAVAILABLE)`` and other 4xx answers
    ``GatewayError(REJECTED)``.
    """

    def __init__(self, config: GatewayConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = http_client
        self._schema_ids: dict[CredentialType, str] = {}

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        if self.config.organization_id:
            headers["X-Organization-Id"] = self.config.organization_id
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        not_found: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Make an authenticated request and return the decoded JSON body.

        Args:
            not_found: DID to report through ``DIDNotFound`` on a 404
        """
        client = self._get_client()
        headers = self._get_headers()
        if "headers" in kwargs:
            headers.update(kwargs.pop("headers"))

        try:
            response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayError(GatewayErrorKind.TIMEOUT, f"{method} {url} timed out") from e
        except httpx.HTTPError as e:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, f"{method} {url} failed: {e}") from e

        if response.status_code == 404 and not_found is not None:
            raise DIDNotFound(not_found)
        raise_for_gateway_status(response)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError(
                GatewayErrorKind.UNAVAILABLE,
                f"{method} {url} returned a non-JSON body",
                status_code=response.status_code,
            ) from e
        return body if isinstance(body, dict) else {"data": body}

    async def register_schema(self, credential_type: CredentialType) -> str:
        """Register the Mark Studio schema for a credential kind.

        Schema ids are cached per client, so each kind is registered once.
        """
        credential_type = CredentialType(credential_type)
        if credential_type in self._schema_ids:
            return self._schema_ids[credential_type]

        payload = {
            "name": f"{credential_type.value}-credential",
            "version": "1.0",
            "description": f"Schema for {vc_type_for(credential_type)}",
            "schema": {
                "type": "object",
                "properties": {
                    "documentType": {"type": "string"},
                    "documentHash": {"type": "string"},
                    "issueDate": {"type": "string", "format": "date-time"},
                    "expiryDate": {"type": "string", "format": "date-time"},
                    "documentUrl": {"type": "string"},
                },
                "required": ["documentType", "documentHash", "issueDate"],
            },
        }
        data = await self._request("POST", f"{self.config.mark_studio_url}/schemas", json=payload)
        schema_id = data.get("id") or data.get("schemaId")
        if not schema_id:
            raise GatewayError(GatewayErrorKind.UNAVAILABLE, "Schema registration returned no id")

        self._schema_ids[credential_type] = schema_id
        logger.info("Registered credential schema", credential_type=credential_type.value, schema_id=schema_id)
        return schema_id

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
