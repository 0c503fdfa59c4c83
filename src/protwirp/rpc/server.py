"""
TwirpServer: ASGI application dispatching Twirp calls to a service implementation.
Generated servers subclass it and declare ``endpoints``; one instance wraps one shared
service object that must be safe for concurrent method calls.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, ClassVar

from google.protobuf.message import Message
from loguru import logger
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from protwirp.core.envelope import ServiceRequest, ServiceResponse
from protwirp.core.errors import (
    TwirpRuntimeError,
    bad_content_type_error,
    internal_error,
    not_found_error,
)
from protwirp.core.headers import (
    APPLICATION_PROTOBUF,
    CONTENT_TYPE,
    SUPPORTED_CONTENT_TYPES,
    normalize_content_type,
)


@dataclass(frozen=True)
class Endpoint:
    """Dispatch table entry: Twirp path -> service method name and its input message type."""

    path: str
    method: str
    input_type: type[Message]
    http_method: str = "POST"


class TwirpServer:
    """
    Pipeline per request: content negotiation (415) -> read body -> route by
    (method, path) (404) -> decode input (400) -> service method -> encode output (200).
    Every TwirpRuntimeError becomes its canonical JSON error response; anything else
    a handler raises becomes 500 internal_err.
    """

    endpoints: ClassVar[tuple[Endpoint, ...]] = ()

    def __init__(self, service: Any) -> None:
        self.service = service
        self._routes: dict[tuple[str, str], Endpoint] = {}
        for endpoint in self.endpoints:
            key = (endpoint.http_method, endpoint.path)
            if key in self._routes:
                raise ValueError(f"duplicate Twirp endpoint {endpoint.http_method} {endpoint.path}")
            self._routes[key] = endpoint

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return
        response = await self.handle(Request(scope, receive))
        await response(scope, receive, send)

    async def handle(self, request: Request) -> Response:
        """Full HTTP round: Starlette request in, Starlette response out."""
        path = request.url.path
        content_type = normalize_content_type(request.headers.get(CONTENT_TYPE))
        if content_type not in SUPPORTED_CONTENT_TYPES:
            logger.info("Twirp {} rejected: unsupported content type {!r}", path, content_type)
            return bad_content_type_error().to_http_response()

        try:
            service_request = await ServiceRequest.from_http_raw(request)
            service_response = await self.dispatch(service_request)
        except TwirpRuntimeError as err:
            logger.info("Twirp {} failed: {}", path, err)
            return err.to_http_response()
        except Exception:
            logger.exception("Twirp {} failed with an unexpected error", path)
            return internal_error().to_http_response()
        return service_response.to_http_raw()

    async def dispatch(self, request: ServiceRequest[bytes]) -> ServiceResponse[bytes]:
        """Route a byte-array request to its service method and encode the reply."""
        endpoint = self._routes.get((request.method, request.uri.path))
        if endpoint is None:
            logger.info("No Twirp endpoint for {} {}", request.method, request.uri.path)
            return not_found_error().to_resp_raw()

        typed_request = request.to_proto(endpoint.input_type)
        logger.debug("Twirp dispatch {} -> {}", endpoint.path, endpoint.method)
        result = getattr(self.service, endpoint.method)(typed_request)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, ServiceResponse):
            result = ServiceResponse(result)

        # answer in the codec the caller used
        response = result.clone_with_output(result.output)
        response.headers[CONTENT_TYPE] = request.content_type or APPLICATION_PROTOBUF
        return response.to_proto_raw()
