"""RPC protocols and the type aliases generated bindings refer to."""
from typing import Awaitable, Protocol, TypeVar, runtime_checkable

from protwirp.core.envelope import ServiceRequest, ServiceResponse

O = TypeVar("O")

# The type of every service request: PTReq[Size]
PTReq = ServiceRequest

# The type of every service response, awaited by the caller: PTRes[Hat]
PTRes = Awaitable[ServiceResponse[O]]


@runtime_checkable
class TwirpHandler(Protocol):
    """Byte-level Twirp handler: raw service request in, raw service response out."""

    async def dispatch(self, request: ServiceRequest[bytes]) -> ServiceResponse[bytes]:
        ...
