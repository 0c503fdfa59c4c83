"""
Service envelopes: HTTP metadata plus a payload that is either raw bytes or a protobuf message.

Conversions (R = raw bytes envelope, M = message envelope):
    HTTP -> R   from_http_raw (reads the body)      R -> HTTP   to_http_raw (sets Content-Length)
    R -> M      to_proto (decode)                   M -> R      to_proto_raw (encode)
    HTTP -> M   from_http_proto                     M -> HTTP   to_http_proto
Client side the HTTP types are httpx.Request / httpx.Response, server side
starlette Request / Response.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Generic, TypeVar

import httpx
from google.protobuf.message import Message
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response

from protwirp.core.codec import decode_message, encode_message
from protwirp.core.errors import (
    AfterBody,
    JsonDecodeError,
    ProtoDecodeError,
    TransportError,
    TwirpError,
    TwirpRuntimeError,
)
from protwirp.core.headers import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    DEFAULT_HTTP_VERSION,
    default_headers,
    http_version,
    normalize_content_type,
)

T = TypeVar("T")
U = TypeVar("U")
M = TypeVar("M", bound=Message)


def _as_headers(headers: Any) -> httpx.Headers:
    return headers if isinstance(headers, httpx.Headers) else httpx.Headers(headers)


@dataclass
class ServiceRequest(Generic[T]):
    """
    A request with HTTP info and the input object.
    ``uri`` only matters on servers: clients override it with the method URL.
    ``headers`` should always hold Content-Type; Content-Length is rewritten on serialization.
    """

    input: T
    uri: httpx.URL = field(default_factory=lambda: httpx.URL("/"))
    # always POST for Twirp traffic
    method: str = "POST"
    version: str = DEFAULT_HTTP_VERSION
    headers: httpx.Headers = field(default_factory=default_headers)

    def __post_init__(self) -> None:
        self.uri = httpx.URL(self.uri)
        self.headers = _as_headers(self.headers)

    @property
    def content_type(self) -> str | None:
        return normalize_content_type(self.headers.get(CONTENT_TYPE))

    def clone_with_input(self, input: U) -> ServiceRequest[U]:
        """Copy this request with a different input value."""
        return ServiceRequest(
            input=input,
            uri=self.uri,
            method=self.method,
            version=self.version,
            headers=self.headers.copy(),
        )

    @classmethod
    async def from_http_raw(cls, request: Request) -> ServiceRequest[bytes]:
        """Read a Starlette request (metadata first, then the whole body) into a byte-array request."""
        uri = httpx.URL(str(request.url))
        method = request.method
        version = http_version(request.scope.get("http_version"))
        headers = httpx.Headers(request.headers.raw)
        try:
            body = await request.body()
        except ClientDisconnect as exc:
            raise TransportError("client disconnected before the request body was read", exc) from exc
        return ServiceRequest(input=body, uri=uri, method=method, version=version, headers=headers)

    @classmethod
    async def from_http_proto(cls, request: Request, message_type: type[M]) -> ServiceRequest[M]:
        raw = await cls.from_http_raw(request)
        return raw.to_proto(message_type)

    def to_http_raw(self: ServiceRequest[bytes], client: httpx.AsyncClient | None = None) -> httpx.Request:
        """
        Byte-array request to an httpx request. The method is always POST.
        With ``client`` the request is built by it, so its default headers, cookies,
        params and timeout apply underneath the envelope's own headers.
        """
        headers = self.headers.copy()
        headers[CONTENT_LENGTH] = str(len(self.input))
        if client is not None:
            return client.build_request("POST", self.uri, headers=headers, content=bytes(self.input))
        return httpx.Request("POST", self.uri, headers=headers, content=bytes(self.input))

    def to_http_proto(self: ServiceRequest[Message]) -> httpx.Request:
        return self.to_proto_raw().to_http_raw()

    def body_err(self: ServiceRequest[bytes], err: TwirpRuntimeError) -> TwirpRuntimeError:
        """Attach this request's body and metadata to ``err``."""
        return err.with_body(
            AfterBody(
                body=bytes(self.input),
                version=self.version,
                headers=self.headers.copy(),
                method=self.method,
            )
        )

    def to_proto(self: ServiceRequest[bytes], message_type: type[M]) -> ServiceRequest[M]:
        """Decode the byte-array input into ``message_type``."""
        try:
            message = decode_message(message_type, self.input, self.content_type)
        except ProtoDecodeError as err:
            self.body_err(err)
            raise
        return self.clone_with_input(message)

    def to_proto_raw(self: ServiceRequest[Message]) -> ServiceRequest[bytes]:
        """Encode the message input into bytes. No body exists yet, so errors carry none."""
        return self.clone_with_input(encode_message(self.input, self.content_type))


@dataclass
class ServiceResponse(Generic[T]):
    """
    A response with HTTP info and the output object.
    ``headers`` should always hold Content-Type; Content-Length is rewritten on serialization.
    """

    output: T
    status: int = HTTPStatus.OK
    version: str = DEFAULT_HTTP_VERSION
    headers: httpx.Headers = field(default_factory=default_headers)

    def __post_init__(self) -> None:
        self.status = int(self.status)
        self.headers = _as_headers(self.headers)

    @property
    def content_type(self) -> str | None:
        return normalize_content_type(self.headers.get(CONTENT_TYPE))

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def clone_with_output(self, output: U) -> ServiceResponse[U]:
        """Copy this response with a different output value."""
        return ServiceResponse(
            output=output,
            status=self.status,
            version=self.version,
            headers=self.headers.copy(),
        )

    @classmethod
    async def from_http_raw(cls, response: httpx.Response) -> ServiceResponse[bytes]:
        """Read an httpx response (metadata first, then the whole body) into a byte-array response."""
        version = response.http_version
        headers = response.headers.copy()
        status = response.status_code
        try:
            body = await response.aread()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise TransportError(f"failed to read response body: {exc}", exc) from exc
        return ServiceResponse(output=body, status=status, version=version, headers=headers)

    @classmethod
    async def from_http_proto(cls, response: httpx.Response, message_type: type[M]) -> ServiceResponse[M]:
        raw = await cls.from_http_raw(response)
        return raw.to_proto(message_type)

    def to_http_raw(self: ServiceResponse[bytes]) -> Response:
        """Byte-array response to a Starlette response, keeping repeated headers."""
        response = Response(content=bytes(self.output), status_code=self.status)
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self.headers.multi_items()
            if name.lower() != CONTENT_LENGTH
        ]
        raw_headers.append((CONTENT_LENGTH.encode("latin-1"), str(len(self.output)).encode("latin-1")))
        response.raw_headers = raw_headers
        return response

    def to_http_proto(self: ServiceResponse[Message]) -> Response:
        return self.to_proto_raw().to_http_raw()

    def body_err(self: ServiceResponse[bytes], err: TwirpRuntimeError) -> TwirpRuntimeError:
        """Attach this response's body, metadata and status to ``err``."""
        return err.with_body(
            AfterBody(
                body=bytes(self.output),
                version=self.version,
                headers=self.headers.copy(),
                status=self.status,
            )
        )

    def to_proto(self: ServiceResponse[bytes], message_type: type[M]) -> ServiceResponse[M]:
        """
        Decode the output: a success status holds a ``message_type``, any other status
        a Twirp JSON error which is raised as TwirpError with this response's status.
        """
        if self.is_success:
            try:
                message = decode_message(message_type, self.output, self.content_type)
            except ProtoDecodeError as err:
                self.body_err(err)
                raise
            return self.clone_with_output(message)
        try:
            error = TwirpError.from_json_bytes(self.status, self.output)
        except JsonDecodeError as err:
            self.body_err(err)
            raise
        raise self.body_err(error)

    def to_proto_raw(self: ServiceResponse[Message]) -> ServiceResponse[bytes]:
        """Encode the message output into bytes."""
        return self.clone_with_output(encode_message(self.output, self.content_type))
