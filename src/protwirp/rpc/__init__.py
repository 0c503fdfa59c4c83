from protwirp.rpc.client import TwirpClient
from protwirp.rpc.protocol import PTReq, PTRes, TwirpHandler
from protwirp.rpc.server import Endpoint, TwirpServer

__all__ = [
    "Endpoint",
    "PTReq",
    "PTRes",
    "TwirpClient",
    "TwirpHandler",
    "TwirpServer",
]
