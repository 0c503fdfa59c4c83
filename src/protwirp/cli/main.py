"""
CLI: generate Twirp bindings from a FileDescriptorSet, list Twirp routes.
Descriptor sets come from: protoc --include_imports -o service.pb service.proto
"""
from pathlib import Path
from typing import List, Optional

import typer
from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from protwirp.core.config import GeneratorConfig
from protwirp.gen.descriptor import TypeIndex, services_from_file
from protwirp.gen.generator import ServiceGenerator

app = typer.Typer(help="protwirp CLI: Twirp bindings from protobuf descriptors.")


def _load_descriptor_set(path: Path) -> descriptor_pb2.FileDescriptorSet:
    try:
        return descriptor_pb2.FileDescriptorSet.FromString(path.read_bytes())
    except (OSError, DecodeError) as exc:
        typer.echo(f"Cannot read descriptor set {path}: {exc}", err=True)
        raise typer.Exit(1)


@app.command()
def generate(
    descriptor_set: Path = typer.Argument(..., help="FileDescriptorSet file (protoc -o)"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
    proto: Optional[List[str]] = typer.Option(None, "--proto", "-p", help="Only these proto files (default: all with services)"),
    client: Optional[bool] = typer.Option(None, "--client/--no-client", help="Generate <Service>Client"),
    server: Optional[bool] = typer.Option(None, "--server/--no-server", help="Generate <Service>Server"),
    runtime: Optional[str] = typer.Option(None, "--runtime", help="Runtime module path (default protwirp)"),
    formatter: Optional[str] = typer.Option(None, "--formatter", help="Formatter command reading stdin, e.g. 'black -q -'"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files"),
) -> None:
    """Write <name>_twirp.py next to where protoc puts <name>_pb2.py. Defaults come from PROTWIRP_* env."""
    config = GeneratorConfig.from_env()
    if client is not None:
        config.generate_client = client
    if server is not None:
        config.generate_server = server
    if runtime:
        config.runtime_module = runtime
    if formatter:
        config.formatter = formatter

    file_set = _load_descriptor_set(descriptor_set)
    try:
        files = ServiceGenerator(config).generate_set(list(file_set.file), proto or None)
    except (KeyError, ValueError) as exc:
        typer.echo(f"Generation failed: {exc}", err=True)
        raise typer.Exit(1)

    if not files:
        typer.echo("No services found, nothing generated")
        return
    skipped = []
    for name, content in files.items():
        path = out / name
        if path.exists() and not force:
            skipped.append(name)
            typer.echo(f"{name} already exists, skipped")
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        typer.echo(f"Created: {path}")
    if skipped:
        typer.echo("Use --force to overwrite existing files.")


@app.command()
def routes(
    descriptor_set: Path = typer.Argument(..., help="FileDescriptorSet file (protoc -o)"),
) -> None:
    """Print every Twirp path (POST) declared in the descriptor set."""
    file_set = _load_descriptor_set(descriptor_set)
    index = TypeIndex.from_files(file_set.file)
    try:
        services = [service for file_proto in file_set.file for service in services_from_file(file_proto, index)]
    except (KeyError, ValueError) as exc:
        typer.echo(f"Invalid descriptor set: {exc}", err=True)
        raise typer.Exit(1)
    for service in services:
        for method in service.methods:
            typer.echo(f"POST {service.twirp_path(method)}")


if __name__ == "__main__":
    app()
