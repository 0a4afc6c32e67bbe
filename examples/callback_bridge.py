"""
Bridge a callback-driven producer into ``async for``.

Usage:
  python examples/callback_bridge.py
"""

import asyncio
import logging

from stream_aiter import MemoryReadable, stream_to_async_iterator
from stream_aiter.logging_utils import setup_logging


async def produce(source: MemoryReadable) -> None:
    for line in (b"alpha\n", b"beta\n", b"gamma\n"):
        source.push(line)
        await asyncio.sleep(0.05)
    source.end()


async def main() -> None:
    source = MemoryReadable()
    producer = asyncio.create_task(produce(source))

    async for chunk in stream_to_async_iterator(source, size=4):
        print(chunk)

    await producer


if __name__ == "__main__":
    setup_logging(level=logging.DEBUG)
    asyncio.run(main())
