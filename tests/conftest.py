"""Pytest fixtures: protobuf messages built at runtime, a Haberdasher server and HTTP clients."""

from types import SimpleNamespace

import httpx
import pytest
from google.protobuf import descriptor_pb2, descriptor_pool, empty_pb2, message_factory, wrappers_pb2

from protwirp import Endpoint, ServiceResponse, TwirpError, TwirpServer

FieldProto = descriptor_pb2.FieldDescriptorProto

MAKE_HAT = "/twirp/twitch.twirp.example.Haberdasher/MakeHat"
DO = "/twirp/x.Svc/Do"


def haberdasher_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="haberdasher.proto",
        package="twitch.twirp.example",
        syntax="proto2",
    )
    size = file_proto.message_type.add(name="Size")
    size.field.add(name="inches", number=1, type=FieldProto.TYPE_INT32, label=FieldProto.LABEL_OPTIONAL)
    hat = file_proto.message_type.add(name="Hat")
    hat.field.add(name="size", number=1, type=FieldProto.TYPE_INT32, label=FieldProto.LABEL_OPTIONAL)
    hat.field.add(name="color", number=2, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_OPTIONAL)
    hat.field.add(name="name", number=3, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_OPTIONAL)
    strict = file_proto.message_type.add(name="Strict")
    strict.field.add(name="token", number=1, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_REQUIRED)
    service = file_proto.service.add(name="Haberdasher")
    service.method.add(
        name="MakeHat",
        input_type=".twitch.twirp.example.Size",
        output_type=".twitch.twirp.example.Hat",
    )
    return file_proto


def _build_messages() -> SimpleNamespace:
    file_proto = haberdasher_file()
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())

    def message(name: str):
        return message_factory.GetMessageClass(pool.FindMessageTypeByName(f"twitch.twirp.example.{name}"))

    return SimpleNamespace(
        Size=message("Size"),
        Hat=message("Hat"),
        Strict=message("Strict"),
        file_proto=file_proto,
    )


PB = _build_messages()


class HaberdasherService:
    """make_hat is async, do is plain def returning a bare message."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def make_hat(self, request):
        self.calls.append("make_hat")
        inches = request.input.inches
        if inches < 0:
            raise TwirpError(403, "forbidden", "no")
        if inches == 13:
            raise ValueError("unlucky size")
        return ServiceResponse(PB.Hat(size=inches, color="blue", name="fedora"))

    def do(self, request):
        self.calls.append("do")
        return wrappers_pb2.Int32Value(value=7)


class HaberdasherServer(TwirpServer):
    endpoints = (
        Endpoint(MAKE_HAT, "make_hat", PB.Size),
        Endpoint(DO, "do", empty_pb2.Empty),
    )


@pytest.fixture(scope="session")
def pb():
    return PB


@pytest.fixture
def service():
    return HaberdasherService()


@pytest.fixture
def server(service):
    return HaberdasherServer(service)


@pytest.fixture
async def http(server):
    """httpx client talking to the Twirp server in-process."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=server), base_url="http://test") as client:
        yield client
