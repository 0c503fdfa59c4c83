"""
protoc plugin: protoc --plugin=protoc-gen-twirp_python --twirp_python_out=. service.proto
Parameters: --twirp_python_opt=client=false,runtime=pkg.twirp,formatter=black -q -
"""
from __future__ import annotations

import sys

from google.protobuf.compiler import plugin_pb2

from protwirp.core.config import GeneratorConfig
from protwirp.gen.generator import ServiceGenerator


def generate_response(
    request: plugin_pb2.CodeGeneratorRequest,
    config: GeneratorConfig | None = None,
) -> plugin_pb2.CodeGeneratorResponse:
    """One ``_twirp.py`` per requested file with services; failures go to ``response.error``."""
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    try:
        generator = ServiceGenerator(config or GeneratorConfig.from_parameter(request.parameter))
        files = generator.generate_set(list(request.proto_file), request.file_to_generate)
    except (KeyError, ValueError) as exc:
        response.error = str(exc.args[0]) if exc.args else str(exc)
        return response
    for name, content in files.items():
        response.file.add(name=name, content=content)
    return response


def main() -> None:
    request = plugin_pb2.CodeGeneratorRequest.FromString(sys.stdin.buffer.read())
    sys.stdout.buffer.write(generate_response(request).SerializeToString())


if __name__ == "__main__":
    main()
