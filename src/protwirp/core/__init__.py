from protwirp.core.config import GeneratorConfig
from protwirp.core.envelope import ServiceRequest, ServiceResponse
from protwirp.core.errors import (
    AfterBody,
    JsonDecodeError,
    ProtoDecodeError,
    ProtoEncodeError,
    TransportError,
    TwirpError,
    TwirpRuntimeError,
    bad_content_type_error,
    internal_error,
    not_found_error,
    protobuf_decode_error,
)
from protwirp.core.headers import APPLICATION_JSON, APPLICATION_PROTOBUF, SUPPORTED_CONTENT_TYPES

__all__ = [
    "APPLICATION_JSON",
    "APPLICATION_PROTOBUF",
    "SUPPORTED_CONTENT_TYPES",
    "AfterBody",
    "GeneratorConfig",
    "JsonDecodeError",
    "ProtoDecodeError",
    "ProtoEncodeError",
    "ServiceRequest",
    "ServiceResponse",
    "TransportError",
    "TwirpError",
    "TwirpRuntimeError",
    "bad_content_type_error",
    "internal_error",
    "not_found_error",
    "protobuf_decode_error",
]
