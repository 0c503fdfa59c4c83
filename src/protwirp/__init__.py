"""
protwirp: Twirp for Python: unary protobuf RPC over HTTP POST with a JSON error envelope.
Envelopes, errors and config live in protwirp.core, the client and the ASGI server in
protwirp.rpc, the stub generator and protoc plugin in protwirp.gen.
"""
from protwirp.core import (
    APPLICATION_JSON,
    APPLICATION_PROTOBUF,
    AfterBody,
    GeneratorConfig,
    JsonDecodeError,
    ProtoDecodeError,
    ProtoEncodeError,
    ServiceRequest,
    ServiceResponse,
    TransportError,
    TwirpError,
    TwirpRuntimeError,
)
from protwirp.rpc import Endpoint, PTReq, PTRes, TwirpClient, TwirpHandler, TwirpServer

__all__ = [
    "APPLICATION_JSON",
    "APPLICATION_PROTOBUF",
    "AfterBody",
    "Endpoint",
    "GeneratorConfig",
    "JsonDecodeError",
    "PTReq",
    "PTRes",
    "ProtoDecodeError",
    "ProtoEncodeError",
    "ServiceRequest",
    "ServiceResponse",
    "TransportError",
    "TwirpClient",
    "TwirpError",
    "TwirpHandler",
    "TwirpRuntimeError",
    "TwirpServer",
]
