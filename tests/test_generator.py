"""Tests for descriptors, naming helpers and generated source."""

import sys
import types

import httpx
import pytest
from google.protobuf import descriptor_pb2

from protwirp import GeneratorConfig, TwirpError
from protwirp.gen import ServiceGenerator, TypeIndex, output_name, services_from_file
from protwirp.gen.descriptor import module_alias, module_for_proto, modules_for_file, snake_case

MAKE_HAT = "/twirp/twitch.twirp.example.Haberdasher/MakeHat"


def nested_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(name="shop/store-v1.proto")
    outer = file_proto.message_type.add(name="Outer")
    outer.nested_type.add(name="Inner")
    file_proto.message_type.add(name="Reply")
    service = file_proto.service.add(name="Store")
    service.method.add(name="Import", input_type=".Outer.Inner", output_type=".Reply")
    service.method.add(name="GetHTTPStatus", input_type=".Outer", output_type=".Reply")
    return file_proto


@pytest.mark.parametrize(
    "name, expected",
    [
        ("MakeHat", "make_hat"),
        ("GetHTTPStatus", "get_http_status"),
        ("Do", "do"),
        ("Import", "import_"),
        ("New", "new_"),
        ("Inner", "inner_"),
        ("already_snake", "already_snake"),
    ],
)
def test_snake_case(name, expected):
    assert snake_case(name) == expected


def test_module_names():
    assert module_for_proto("haberdasher.proto") == "haberdasher_pb2"
    assert module_for_proto("shop/store-v1.proto") == "shop.store_v1_pb2"
    assert module_alias("shop.store_v1_pb2") == "shop_dot_store__v1__pb2"
    assert output_name("shop/store-v1.proto") == "shop/store-v1_twirp.py"


def test_type_index_resolves_nested_messages():
    index = TypeIndex.from_files([nested_file()])
    assert index.resolve(".Outer.Inner") == ("shop.store_v1_pb2", "Outer.Inner")
    assert index.python_type(".Outer.Inner") == "shop_dot_store__v1__pb2.Outer.Inner"
    with pytest.raises(KeyError):
        index.resolve(".Missing")


def test_services_from_file(pb):
    index = TypeIndex.from_files([pb.file_proto])
    (service,) = services_from_file(pb.file_proto, index)
    assert service.full_name == "twitch.twirp.example.Haberdasher"
    (method,) = service.methods
    assert method.name == "make_hat"
    assert method.input_type == "haberdasher__pb2.Size"
    assert method.output_type == "haberdasher__pb2.Hat"
    assert service.twirp_path(method) == MAKE_HAT
    assert modules_for_file(pb.file_proto, index) == ["haberdasher_pb2"]


def test_empty_package_has_no_leading_dot():
    file_proto = nested_file()
    (service,) = services_from_file(file_proto, TypeIndex.from_files([file_proto]))
    assert service.full_name == "Store"
    assert service.twirp_path(service.methods[0]) == "/twirp/Store/Import"
    assert service.methods[0].name == "import_"


def test_streaming_methods_are_rejected():
    file_proto = nested_file()
    file_proto.service[0].method[0].server_streaming = True
    with pytest.raises(ValueError):
        services_from_file(file_proto, TypeIndex.from_files([file_proto]))


def test_unknown_message_type_is_rejected():
    file_proto = nested_file()
    file_proto.service[0].method[0].input_type = ".other.Thing"
    with pytest.raises(KeyError):
        services_from_file(file_proto, TypeIndex.from_files([file_proto]))


def test_generated_module_compiles(pb):
    source = ServiceGenerator().generate_file(pb.file_proto, TypeIndex.from_files([pb.file_proto]))
    compile(source, "haberdasher_twirp.py", "exec")
    assert "import haberdasher_pb2 as haberdasher__pb2" in source
    assert "class Haberdasher(Protocol):" in source
    assert "class HaberdasherClient(Haberdasher):" in source
    assert "class HaberdasherServer(protwirp.TwirpServer):" in source
    assert f'self.inner.call("{MAKE_HAT}", request, haberdasher__pb2.Hat)' in source
    assert f'protwirp.Endpoint("{MAKE_HAT}", "make_hat", haberdasher__pb2.Size),' in source


def test_nested_module_compiles():
    file_proto = nested_file()
    source = ServiceGenerator().generate_file(file_proto, TypeIndex.from_files([file_proto]))
    compile(source, "store_twirp.py", "exec")
    assert "import shop.store_v1_pb2 as shop_dot_store__v1__pb2" in source
    assert "def import_(self, request: PTReq[shop_dot_store__v1__pb2.Outer.Inner])" in source


@pytest.mark.parametrize(
    "client, server",
    [(True, False), (False, True), (False, False)],
)
def test_toggles(pb, client, server):
    config = GeneratorConfig(generate_client=client, generate_server=server, runtime_module="my.rt")
    source = ServiceGenerator(config).generate_file(pb.file_proto, TypeIndex.from_files([pb.file_proto]))
    compile(source, "haberdasher_twirp.py", "exec")
    assert ("HaberdasherClient" in source) is client
    assert ("import httpx" in source) is client
    assert ("HaberdasherServer" in source) is server
    assert "import my.rt" in source
    assert "PTReq = my.rt.PTReq" in source


def test_generate_set_skips_files_without_services(pb):
    messages_only = descriptor_pb2.FileDescriptorProto(name="common.proto", package="c")
    messages_only.message_type.add(name="Empty")
    files = ServiceGenerator().generate_set([messages_only, pb.file_proto])
    assert list(files) == ["haberdasher_twirp.py"]


def test_generate_set_unknown_target(pb):
    with pytest.raises(KeyError):
        ServiceGenerator().generate_set([pb.file_proto], ["missing.proto"])


def test_formatter_failure_keeps_source():
    generator = ServiceGenerator(GeneratorConfig(formatter="protwirp-no-such-formatter --quiet"))
    assert generator.format("x = 1\n") == "x = 1\n"


def test_formatter_nonzero_exit_keeps_source():
    generator = ServiceGenerator(GeneratorConfig(formatter=f"{sys.executable} -c 'import sys; sys.exit(3)'"))
    assert generator.format("x = 1\n") == "x = 1\n"


def test_formatter_output_is_used():
    script = "import sys; sys.stdout.write(sys.stdin.read().upper())"
    generator = ServiceGenerator(GeneratorConfig(formatter=f'{sys.executable} -c "{script}"'))
    assert generator.format("x = 1\n") == "X = 1\n"


@pytest.fixture
def generated(pb, monkeypatch):
    """Generated module executed against a stand-in for protoc's haberdasher_pb2."""
    fake_pb2 = types.ModuleType("haberdasher_pb2")
    fake_pb2.Size = pb.Size
    fake_pb2.Hat = pb.Hat
    monkeypatch.setitem(sys.modules, "haberdasher_pb2", fake_pb2)

    source = ServiceGenerator().generate_file(pb.file_proto, TypeIndex.from_files([pb.file_proto]))
    module = types.ModuleType("haberdasher_twirp")
    exec(compile(source, "haberdasher_twirp.py", "exec"), module.__dict__)
    return module


class Hats:
    def __init__(self, hat_type):
        self.hat_type = hat_type

    async def make_hat(self, request):
        if request.input.inches <= 0:
            raise TwirpError(400, "invalid_argument", "inches must be positive")
        return self.hat_type(size=request.input.inches, color="purple", name="bowler")


@pytest.mark.asyncio
async def test_generated_client_and_server_talk(generated, pb):
    hats = Hats(pb.Hat)
    server = generated.HaberdasherServer(hats)
    assert isinstance(hats, generated.Haberdasher)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=server)) as http_client:
        client = generated.HaberdasherClient.new(http_client, "http://test")
        resp = await client.make_hat(pb.Size(inches=8))
        assert resp.output == pb.Hat(size=8, color="purple", name="bowler")

        with pytest.raises(TwirpError) as excinfo:
            await client.make_hat(pb.Size(inches=0))
        assert excinfo.value == TwirpError(400, "invalid_argument", "inches must be positive")


@pytest.mark.asyncio
async def test_methods_named_like_client_members(pb, monkeypatch):
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.CopyFrom(pb.file_proto)
    for name in ("New", "Inner"):
        file_proto.service[0].method.add(
            name=name,
            input_type=".twitch.twirp.example.Size",
            output_type=".twitch.twirp.example.Hat",
        )
    fake_pb2 = types.ModuleType("haberdasher_pb2")
    fake_pb2.Size = pb.Size
    fake_pb2.Hat = pb.Hat
    monkeypatch.setitem(sys.modules, "haberdasher_pb2", fake_pb2)

    source = ServiceGenerator().generate_file(file_proto, TypeIndex.from_files([file_proto]))
    assert source.count("def new(") == 1
    assert "def new_(self, request" in source
    assert "def inner_(self, request" in source
    assert '"/twirp/twitch.twirp.example.Haberdasher/New", "new_",' in source
    module = types.ModuleType("haberdasher_twirp")
    exec(compile(source, "haberdasher_twirp.py", "exec"), module.__dict__)

    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, content=pb.Hat(name="top").SerializeToString())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = module.HaberdasherClient.new(http_client, "http://test")
        resp = await client.new_(pb.Size(inches=1))
        await client.inner_(pb.Size(inches=2))

    assert resp.output == pb.Hat(name="top")
    assert paths == [
        "/twirp/twitch.twirp.example.Haberdasher/New",
        "/twirp/twitch.twirp.example.Haberdasher/Inner",
    ]
