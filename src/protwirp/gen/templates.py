"""Source templates for generated Twirp bindings (str.format placeholders)."""

MODULE_HEADER = '''"""Generated Twirp bindings for {source}. Do not edit."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

{imports}

PTReq = {runtime}.PTReq
PTRes = {runtime}.PTRes'''

SERVICE_INTERFACE = '''@runtime_checkable
class {name}(Protocol):
    """Twirp service ``{full_name}``."""
{methods}'''

INTERFACE_METHOD = '''
    def {method}(self, request: PTReq[{input_type}]) -> PTRes[{output_type}]:
        ...'''

SERVICE_CLIENT = '''class {name}Client({name}):
    """Client for ``{full_name}``; every method is one HTTP POST."""

    def __init__(self, inner: {runtime}.TwirpClient) -> None:
        self.inner = inner

    @classmethod
    def new(cls, http_client: httpx.AsyncClient, root_url: str) -> {name}Client:
        return cls({runtime}.TwirpClient(http_client, root_url))
{methods}'''

CLIENT_METHOD = '''
    def {method}(self, request: PTReq[{input_type}]) -> PTRes[{output_type}]:
        return self.inner.call("{path}", request, {output_type})'''

SERVICE_SERVER = '''class {name}Server({runtime}.TwirpServer):
    """ASGI application serving ``{full_name}`` from a {name} implementation."""

    endpoints = ({endpoints}
    )

    def __init__(self, service: {name}) -> None:
        super().__init__(service)'''

SERVER_ENDPOINT = '''
        {runtime}.Endpoint("{path}", "{method}", {input_type}),'''
