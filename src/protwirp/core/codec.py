"""Payload codecs: binary protobuf, or protobuf JSON when the Content-Type says so."""
from __future__ import annotations

from typing import TypeVar

from google.protobuf import json_format
from google.protobuf.message import DecodeError, EncodeError, Message

from protwirp.core.errors import ProtoDecodeError, ProtoEncodeError
from protwirp.core.headers import APPLICATION_JSON, normalize_content_type

M = TypeVar("M", bound=Message)


def is_json(content_type: str | None) -> bool:
    return normalize_content_type(content_type) == APPLICATION_JSON


def decode_message(message_type: type[M], data: bytes, content_type: str | None = None) -> M:
    """Decode ``data`` into a new ``message_type``. Raises ProtoDecodeError."""
    name = message_type.DESCRIPTOR.full_name
    if is_json(content_type):
        try:
            return json_format.Parse(bytes(data).decode("utf-8"), message_type(), ignore_unknown_fields=True)
        except (json_format.ParseError, UnicodeDecodeError) as exc:
            raise ProtoDecodeError(f"invalid JSON body for {name}: {exc}", exc) from exc
    try:
        return message_type.FromString(bytes(data))
    except DecodeError as exc:
        raise ProtoDecodeError(f"invalid protobuf body for {name}: {exc}", exc) from exc


def encode_message(message: Message, content_type: str | None = None) -> bytes:
    """Encode ``message`` for the given Content-Type. Raises ProtoEncodeError."""
    name = message.DESCRIPTOR.full_name
    if is_json(content_type):
        try:
            return json_format.MessageToJson(message, preserving_proto_field_name=True, indent=None).encode("utf-8")
        except json_format.SerializeToJsonError as exc:
            raise ProtoEncodeError(f"cannot encode {name} as JSON: {exc}", exc) from exc
    try:
        return message.SerializeToString()
    except EncodeError as exc:
        raise ProtoEncodeError(f"cannot encode {name}: {exc}", exc) from exc
