"""
Twirp error model: the JSON error envelope (TwirpError) and the runtime error hierarchy.
Every conversion and network operation raises a TwirpRuntimeError subclass; at the HTTP
boundary to_http_response() maps it onto the canonical JSON error response.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx

from protwirp.core.headers import APPLICATION_JSON, CONTENT_TYPE, DEFAULT_HTTP_VERSION

if TYPE_CHECKING:
    from starlette.responses import Response

    from protwirp.core.envelope import ServiceResponse


@dataclass
class AfterBody:
    """Request or response info captured when an error happened after the body was read."""

    body: bytes
    version: str
    headers: httpx.Headers
    # set for server-side (request) errors
    method: str | None = None
    # set for client-side (response) errors
    status: int | None = None


class TwirpRuntimeError(Exception):
    """Base of every error the runtime produces or surfaces."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.after_body: AfterBody | None = None

    def with_body(self, after_body: AfterBody) -> TwirpRuntimeError:
        """Attach the raw body that was in flight; returns self for ``raise err.with_body(...)``."""
        self.after_body = after_body
        return self

    def root_err(self) -> TwirpRuntimeError:
        """The error without its body info. Bodies live in a slot, so this is the error itself."""
        return self

    def to_http_response(self) -> Response:
        """Any failure without a more specific mapping is a 500 ``internal_err``."""
        return internal_error().to_http_response()


class TwirpError(TwirpRuntimeError):
    """
    A standard Twirp error: HTTP status, stable code, human message and optional meta.
    The status travels on the HTTP status line; the body is {"code", "msg", "meta"?}.
    Raise it from a service handler to answer with that status and code.
    """

    def __init__(self, status: int, code: str, msg: str, meta: Any = None) -> None:
        super().__init__(f"[{code}] {msg}")
        self.status = int(status)
        self.code = code
        self.msg = msg
        self.meta = meta

    def __repr__(self) -> str:
        return f"TwirpError(status={self.status}, code={self.code!r}, msg={self.msg!r}, meta={self.meta!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TwirpError):
            return NotImplemented
        return (self.status, self.code, self.msg, self.meta) == (other.status, other.code, other.msg, other.meta)

    def __hash__(self) -> int:
        return hash((self.status, self.code, self.msg))

    @classmethod
    def from_json_bytes(cls, status: int, data: bytes) -> TwirpError:
        """Parse a Twirp error body; the status comes from the HTTP layer."""
        try:
            payload = json.loads(data)
        except ValueError as exc:
            raise JsonDecodeError(f"invalid Twirp error body: {exc}", exc) from exc
        if not isinstance(payload, dict):
            raise JsonDecodeError("Twirp error body must be a JSON object")
        code, msg = payload.get("code"), payload.get("msg")
        if not isinstance(code, str) or not isinstance(msg, str):
            raise JsonDecodeError("Twirp error body needs string 'code' and 'msg'")
        return cls(status, code, msg, payload.get("meta"))

    def to_json_bytes(self) -> bytes:
        """Serialize to {"code", "msg"} plus "meta" when present. Raises TypeError/ValueError for bad meta."""
        payload: dict[str, Any] = {"code": self.code, "msg": self.msg}
        if self.meta is not None:
            payload["meta"] = self.meta
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")

    def to_resp_raw(self) -> ServiceResponse[bytes]:
        """Byte-array service response for this error. Never fails: bad meta gives ``{}``."""
        from protwirp.core.envelope import ServiceResponse

        try:
            output = self.to_json_bytes()
        except (TypeError, ValueError):
            output = b"{}"
        return ServiceResponse(
            output=output,
            status=self.status,
            version=DEFAULT_HTTP_VERSION,
            headers=httpx.Headers({CONTENT_TYPE: APPLICATION_JSON}),
        )

    def to_http_response(self) -> Response:
        return self.to_resp_raw().to_http_raw()


class JsonDecodeError(TwirpRuntimeError):
    """A JSON body (error envelope) could not be parsed."""


class ProtoEncodeError(TwirpRuntimeError):
    """A protobuf message could not be encoded."""


class ProtoDecodeError(TwirpRuntimeError):
    """A payload could not be decoded into the expected protobuf message."""

    def to_http_response(self) -> Response:
        return protobuf_decode_error().to_http_response()


class TransportError(TwirpRuntimeError):
    """The underlying HTTP exchange failed (connection, body read)."""

    def to_http_response(self) -> Response:
        # connection failures belong to the HTTP server, not to the Twirp envelope
        raise self


def not_found_error() -> TwirpError:
    return TwirpError(HTTPStatus.NOT_FOUND, "not_found", "Not found")


def bad_content_type_error() -> TwirpError:
    return TwirpError(HTTPStatus.UNSUPPORTED_MEDIA_TYPE, "bad_content_type", "Content type must be application/protobuf")


def protobuf_decode_error() -> TwirpError:
    return TwirpError(HTTPStatus.BAD_REQUEST, "protobuf_decode_err", "Invalid protobuf body")


def internal_error() -> TwirpError:
    return TwirpError(HTTPStatus.INTERNAL_SERVER_ERROR, "internal_err", "Internal Error")
