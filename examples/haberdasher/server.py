"""
Haberdasher server. Generate the bindings first (from this directory):
    protoc --python_out=. service.proto
    protoc --include_imports -o service.pb service.proto && protwirp generate service.pb
To run: uvicorn server:app --port 8080
"""
import sys
from pathlib import Path

# example lives in examples/haberdasher
sys.path.insert(0, str(Path(__file__).resolve().parent))

from protwirp import PTReq, ServiceResponse, TwirpError

import service_pb2
from service_twirp import HaberdasherServer


class HaberdasherService:
    async def make_hat(self, request: PTReq[service_pb2.Size]) -> ServiceResponse[service_pb2.Hat]:
        if request.input.inches <= 0:
            raise TwirpError(400, "invalid_argument", "I can't make a hat that small!", meta={"argument": "inches"})
        return ServiceResponse(service_pb2.Hat(size=request.input.inches, color="blue", name="fedora"))


app = HaberdasherServer(HaberdasherService())
