from __future__ import annotations

import logging
from collections.abc import AsyncIterable

logger = logging.getLogger("horizonrelay.collector")


async def collect_stream(stream: AsyncIterable[bytes | str], encoding: str = "utf-8") -> str:
    """Drain a byte stream into a single string.

    Chunks are joined in arrival order and decoded only once the stream has
    ended, so multi-byte characters split between chunks survive. Errors
    raised by the stream propagate instead of returning partial text.
    """
    chunks: list[bytes] = []
    async for chunk in stream:
        if isinstance(chunk, str):
            chunk = chunk.encode(encoding)
        chunks.append(bytes(chunk))

    data = b"".join(chunks)
    logger.debug("Collected %d chunks (%d bytes)", len(chunks), len(data))
    return data.decode(encoding, errors="replace")
