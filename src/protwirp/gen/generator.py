"""
ServiceGenerator: descriptor in, Python source out.
Per service: a Protocol interface, a <Service>Client delegating to TwirpClient and a
<Service>Server plugging an implementation into TwirpServer. Output can be piped
through an external formatter; formatter failures keep the raw source.
"""
from __future__ import annotations

import shlex
import subprocess
from typing import Iterable, Sequence

from google.protobuf import descriptor_pb2
from loguru import logger

from protwirp.core.config import GeneratorConfig
from protwirp.gen import templates
from protwirp.gen.descriptor import (
    ServiceDescriptor,
    TypeIndex,
    module_alias,
    modules_for_file,
    services_from_file,
)


def output_name(proto_name: str) -> str:
    """a/b.proto -> a/b_twirp.py"""
    base = proto_name[: -len(".proto")] if proto_name.endswith(".proto") else proto_name
    return f"{base}_twirp.py"


class ServiceGenerator:
    def __init__(self, config: GeneratorConfig | None = None) -> None:
        self.config = config or GeneratorConfig()

    @property
    def runtime(self) -> str:
        return self.config.runtime_module

    def generate(self, service: ServiceDescriptor) -> str:
        """Source for one service, without module header."""
        parts = [self._interface(service)]
        if self.config.generate_client:
            parts.append(self._client(service))
        if self.config.generate_server:
            parts.append(self._server(service))
        return "\n\n\n".join(parts)

    def generate_module(self, services: Sequence[ServiceDescriptor], modules: Iterable[str] = (), source: str = "") -> str:
        """Complete module: header, imports, type aliases and every service; formatted if configured."""
        header = templates.MODULE_HEADER.format(
            source=source or "protobuf services",
            imports=self._imports(modules),
            runtime=self.runtime,
        )
        body = [header, *(self.generate(service) for service in services)]
        return self.format("\n\n\n".join(body) + "\n")

    def generate_file(self, file_proto: descriptor_pb2.FileDescriptorProto, type_index: TypeIndex) -> str:
        services = services_from_file(file_proto, type_index)
        modules = modules_for_file(file_proto, type_index)
        logger.debug("Generating {} ({} services)", output_name(file_proto.name), len(services))
        return self.generate_module(services, modules, source=file_proto.name)

    def generate_set(
        self,
        file_protos: Sequence[descriptor_pb2.FileDescriptorProto],
        targets: Iterable[str] | None = None,
    ) -> dict[str, str]:
        """Output file name -> source for every target file that declares services."""
        index = TypeIndex.from_files(file_protos)
        by_name = {file_proto.name: file_proto for file_proto in file_protos}
        names = list(targets) if targets is not None else list(by_name)
        out: dict[str, str] = {}
        for name in names:
            if name not in by_name:
                raise KeyError(f"proto file {name} is not in the descriptor set")
            file_proto = by_name[name]
            if file_proto.service:
                out[output_name(name)] = self.generate_file(file_proto, index)
        return out

    def format(self, source: str) -> str:
        """Pipe through the configured formatter (stdin -> stdout); on any failure keep ``source``."""
        if not self.config.formatter:
            return source
        try:
            completed = subprocess.run(
                shlex.split(self.config.formatter),
                input=source,
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, ValueError, subprocess.CalledProcessError) as exc:
            logger.warning("Formatter {!r} failed, keeping unformatted output: {}", self.config.formatter, exc)
            return source
        return completed.stdout or source

    def _imports(self, modules: Iterable[str]) -> str:
        groups = []
        if self.config.generate_client:
            groups.append(["import httpx"])
        local = [f"import {self.runtime}"]
        local.extend(f"import {module} as {module_alias(module)}" for module in modules)
        groups.append(local)
        return "\n\n".join("\n".join(group) for group in groups)

    def _interface(self, service: ServiceDescriptor) -> str:
        methods = "\n".join(
            templates.INTERFACE_METHOD.format(method=m.name, input_type=m.input_type, output_type=m.output_type)
            for m in service.methods
        )
        return templates.SERVICE_INTERFACE.format(name=service.name, full_name=service.full_name, methods=methods)

    def _client(self, service: ServiceDescriptor) -> str:
        methods = "\n".join(
            templates.CLIENT_METHOD.format(
                method=m.name,
                input_type=m.input_type,
                output_type=m.output_type,
                path=service.twirp_path(m),
            )
            for m in service.methods
        )
        return templates.SERVICE_CLIENT.format(
            name=service.name,
            full_name=service.full_name,
            runtime=self.runtime,
            methods=methods,
        )

    def _server(self, service: ServiceDescriptor) -> str:
        endpoints = "".join(
            templates.SERVER_ENDPOINT.format(
                runtime=self.runtime,
                path=service.twirp_path(m),
                method=m.name,
                input_type=m.input_type,
            )
            for m in service.methods
        )
        return templates.SERVICE_SERVER.format(
            name=service.name,
            full_name=service.full_name,
            runtime=self.runtime,
            endpoints=endpoints,
        )
