"""
Service descriptors consumed by the generator, built from protobuf descriptor protos.
Message types are resolved to Python expressions against protoc's ``_pb2`` modules.
"""
from __future__ import annotations

import keyword
import re
from dataclasses import dataclass, field
from typing import Iterable

from google.protobuf import descriptor_pb2


@dataclass
class MethodDescriptor:
    proto_name: str
    # Python identifier (snake_case)
    name: str
    # Python expressions, e.g. service__pb2.Size
    input_type: str
    output_type: str


@dataclass
class ServiceDescriptor:
    package: str
    proto_name: str
    name: str
    methods: list[MethodDescriptor] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.package}.{self.proto_name}" if self.package else self.proto_name

    def twirp_path(self, method: MethodDescriptor) -> str:
        """``/twirp/<package>.<Service>/<Method>``, proto names verbatim."""
        return f"/twirp/{self.full_name}/{method.proto_name}"


# members of generated clients; RPC methods must not shadow them
RESERVED_NAMES = frozenset({"new", "inner"})


def snake_case(name: str) -> str:
    """
    MakeHat -> make_hat, GetHTTPStatus -> get_http_status.
    Keywords and RESERVED_NAMES get a trailing underscore: Import -> import_, New -> new_.
    """
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s).lower()
    return f"{s}_" if keyword.iskeyword(s) or s in RESERVED_NAMES else s


def module_for_proto(proto_name: str) -> str:
    """protoc's Python module for a proto file: a/b-c.proto -> a.b_c_pb2."""
    base = proto_name[: -len(".proto")] if proto_name.endswith(".proto") else proto_name
    return base.replace("-", "_").replace("/", ".") + "_pb2"


def module_alias(module: str) -> str:
    """protoc's import alias: a.b_c_pb2 -> a_dot_b__c__pb2."""
    return module.replace("_", "__").replace(".", "_dot_")


class TypeIndex:
    """Fully qualified message name (``.pkg.Outer.Inner``) -> (Python module, attribute path)."""

    def __init__(self) -> None:
        self._types: dict[str, tuple[str, str]] = {}

    @classmethod
    def from_files(cls, files: Iterable[descriptor_pb2.FileDescriptorProto]) -> TypeIndex:
        index = cls()
        for file_proto in files:
            index.add_file(file_proto)
        return index

    def add_file(self, file_proto: descriptor_pb2.FileDescriptorProto) -> TypeIndex:
        module = module_for_proto(file_proto.name)
        prefix = f".{file_proto.package}" if file_proto.package else ""
        for message in file_proto.message_type:
            self._add_message(module, prefix, "", message)
        return self

    def _add_message(self, module: str, prefix: str, outer: str, message: descriptor_pb2.DescriptorProto) -> None:
        full_name = f"{prefix}.{message.name}"
        attr = f"{outer}.{message.name}" if outer else message.name
        self._types[full_name] = (module, attr)
        for nested in message.nested_type:
            self._add_message(module, full_name, attr, nested)

    def resolve(self, type_name: str) -> tuple[str, str]:
        try:
            return self._types[type_name]
        except KeyError:
            raise KeyError(f"unknown protobuf message type {type_name}") from None

    def module(self, type_name: str) -> str:
        return self.resolve(type_name)[0]

    def python_type(self, type_name: str) -> str:
        module, attr = self.resolve(type_name)
        return f"{module_alias(module)}.{attr}"


def services_from_file(
    file_proto: descriptor_pb2.FileDescriptorProto,
    type_index: TypeIndex,
) -> list[ServiceDescriptor]:
    """One ServiceDescriptor per ``service`` block of the file. Streaming methods raise ValueError."""
    services = []
    for service in file_proto.service:
        for method in service.method:
            if method.client_streaming or method.server_streaming:
                raise ValueError(f"{service.name}.{method.name}: Twirp has no streaming methods")
        methods = [
            MethodDescriptor(
                proto_name=method.name,
                name=snake_case(method.name),
                input_type=type_index.python_type(method.input_type),
                output_type=type_index.python_type(method.output_type),
            )
            for method in service.method
        ]
        services.append(
            ServiceDescriptor(package=file_proto.package, proto_name=service.name, name=service.name, methods=methods)
        )
    return services


def modules_for_file(file_proto: descriptor_pb2.FileDescriptorProto, type_index: TypeIndex) -> list[str]:
    """Sorted ``_pb2`` modules the file's services refer to."""
    modules = {
        type_index.module(type_name)
        for service in file_proto.service
        for method in service.method
        for type_name in (method.input_type, method.output_type)
    }
    return sorted(modules)
