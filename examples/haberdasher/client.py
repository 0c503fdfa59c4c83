"""
Haberdasher client. Start server.py first, then: python client.py [inches]
Root URL from HABERDASHER_TWIRP_URL (default http://localhost:8080).
"""
import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import httpx
from loguru import logger

from protwirp import TwirpError

import service_pb2
from service_twirp import HaberdasherClient


async def main(inches: int) -> None:
    root_url = os.environ.get("HABERDASHER_TWIRP_URL", "http://localhost:8080")
    async with httpx.AsyncClient() as http_client:
        client = HaberdasherClient.new(http_client, root_url)
        try:
            resp = await client.make_hat(service_pb2.Size(inches=inches))
        except TwirpError as err:
            logger.error("MakeHat failed: {} {} {}", err.status, err.code, err.msg)
            return
        logger.info("Made a {} {} of size {}", resp.output.color, resp.output.name, resp.output.size)


if __name__ == "__main__":
    asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else 12))
