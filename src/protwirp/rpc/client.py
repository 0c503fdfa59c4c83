"""
TwirpClient: calls one Twirp method per HTTP POST over a caller-owned httpx.AsyncClient.
No retries, no timeouts and no pooling beyond what the httpx client provides.
"""
from __future__ import annotations

import os
from typing import TypeVar

import httpx
from google.protobuf.message import Message
from loguru import logger

from protwirp.core.envelope import ServiceRequest, ServiceResponse
from protwirp.core.errors import TransportError

O = TypeVar("O", bound=Message)


class TwirpClient:
    """
    Thin wrapper over an httpx client and a root URL (trailing slashes trimmed).
    call() raises TwirpError for protocol errors, TransportError for network failures,
    ProtoEncodeError / ProtoDecodeError / JsonDecodeError for payload failures.
    """

    def __init__(self, http_client: httpx.AsyncClient, root_url: str) -> None:
        self.http_client = http_client
        self.root_url = root_url.rstrip("/")

    @classmethod
    def from_env(cls, http_client: httpx.AsyncClient, service_name: str, suffix: str = "_TWIRP_URL") -> TwirpClient:
        """Root URL from ``<SERVICE_NAME><suffix>``, e.g. HABERDASHER_TWIRP_URL=http://hats:8080."""
        variable = f"{service_name.upper()}{suffix}"
        root_url = os.environ.get(variable, "").strip()
        if not root_url:
            raise KeyError(f"No root URL for service {service_name!r}: set {variable}")
        return cls(http_client, root_url)

    def url_for(self, path: str) -> str:
        """Root URL and method path joined by exactly one slash."""
        return f"{self.root_url}/{path.lstrip('/')}"

    async def call(
        self,
        path: str,
        request: ServiceRequest[Message] | Message,
        output_type: type[O],
    ) -> ServiceResponse[O]:
        """POST ``request`` to ``path`` and decode the reply as ``output_type``."""
        if not isinstance(request, ServiceRequest):
            request = ServiceRequest(request)
        # encode failures surface before any HTTP traffic
        raw = request.to_proto_raw()
        raw.uri = httpx.URL(self.url_for(path))
        http_request = raw.to_http_raw(self.http_client)

        logger.debug("Twirp call {} ({} bytes)", http_request.url, len(raw.input))
        try:
            http_response = await self.http_client.send(http_request)
        except httpx.HTTPError as exc:
            logger.warning("Twirp call {} failed: {}", http_request.url, exc)
            raise TransportError(f"request to {http_request.url} failed: {exc}", exc) from exc
        logger.debug("Twirp call {} -> {}", http_request.url, http_response.status_code)
        return await ServiceResponse.from_http_proto(http_response, output_type)
