from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing
from enum import Enum

import httpx

from horizonrelay.exceptions import (
    PayloadDecodeError,
    UpstreamRequestError,
    UpstreamStreamError,
    describe_error,
)
from horizonrelay.utils.sse import (
    SSE_DATA_PREFIX,
    SSE_DONE_PAYLOAD,
    SSE_RECORD_SEPARATOR,
    canonical_json,
    format_sse_data,
    format_sse_done,
    format_sse_error,
    parse_json_strict,
)

logger = logging.getLogger("horizonrelay.relay")


class RelayState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FLUSHING = "flushing"
    TERMINATED = "terminated"
    FAILED = "failed"


_FINAL_STATES = (RelayState.TERMINATED, RelayState.FAILED)


class RecordBuffer:
    """Accumulates upstream text and hands out complete records.

    The trailing fragment after the last separator is always kept back,
    so a separator split across two chunks is never cut early.
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        records = self._buffer.split(SSE_RECORD_SEPARATOR)
        self._buffer = records.pop()
        return records

    def drain(self) -> str:
        remainder, self._buffer = self._buffer, ""
        return remainder


def canonicalize_payload(payload: str) -> str:
    """Parse a JSON payload and return its canonical serialization.

    Anything that cannot round-trip as strict JSON, including nesting too
    deep to decode and numbers that overflow to infinity, raises
    PayloadDecodeError.
    """
    try:
        return canonical_json(parse_json_strict(payload))
    except (ValueError, RecursionError) as exc:
        raise PayloadDecodeError(describe_error(exc)) from exc


def normalize_payload(record: str) -> str | None:
    """Resolve one record into the payload of the frame to emit.

    Returns None for blank records. JSON payloads come back re-serialized
    canonically; anything else is passed through untouched.
    """
    if not record.strip():
        return None

    if record.startswith(SSE_DATA_PREFIX):
        payload = record[len(SSE_DATA_PREFIX):]
    else:
        payload = record

    if payload == SSE_DONE_PAYLOAD:
        return payload

    try:
        return canonicalize_payload(payload)
    except PayloadDecodeError as exc:
        logger.debug("Passing through non-JSON payload: %s", exc)
        return payload


class SseTranscoder:
    """Turns a chunk source into normalized SSE frames.

    One instance serves exactly one upstream stream. The output always ends
    with a single ``[DONE]`` frame or a single error frame.
    """

    def __init__(self) -> None:
        self.state = RelayState.IDLE
        self._records = RecordBuffer()

    async def transcode(self, chunks: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
        if self.state in _FINAL_STATES:
            raise RuntimeError(f"Relay already {self.state.value}")
        self.state = RelayState.STREAMING

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        source = aiter(chunks)

        while True:
            try:
                chunk = await anext(source)
            except StopAsyncIteration:
                break
            except Exception as exc:
                message = describe_error(exc)
                logger.error("Upstream stream failed: %s", message)
                self.state = RelayState.FAILED
                yield format_sse_error(message)
                return

            text = decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
            for record in self._records.feed(text):
                payload = normalize_payload(record)
                if payload is None:
                    continue
                if payload == SSE_DONE_PAYLOAD:
                    self.state = RelayState.TERMINATED
                    yield format_sse_done()
                    return
                yield format_sse_data(payload)

        self.state = RelayState.FLUSHING
        remainder = self._records.drain() + decoder.decode(b"", final=True)
        payload = normalize_payload(remainder)
        if payload is not None and payload != SSE_DONE_PAYLOAD:
            yield format_sse_data(payload)

        self.state = RelayState.TERMINATED
        yield format_sse_done()


def relay_records(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
    """Transcode any chunk source without an HTTP request behind it."""
    return SseTranscoder().transcode(chunks)


class StreamRelay:
    """Relays one upstream event-stream request as normalized SSE frames.

    Call ``open()`` to dispatch the request; connection failures and non-2xx
    answers raise ``UpstreamRequestError`` before any frame exists. Failures
    after that point are reported in-band as a single error frame.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        payload: dict,
        api_key: str | None = None,
    ):
        self.http_client = http_client
        self.url = url
        self.payload = payload
        self.api_key = api_key
        self._transcoder = SseTranscoder()
        self._response: httpx.Response | None = None

    @property
    def state(self) -> RelayState:
        return self._transcoder.state

    def _build_headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def open(self) -> None:
        if self._response is not None:
            return
        if self.state in _FINAL_STATES:
            raise RuntimeError(f"Relay already {self.state.value}")

        request = self.http_client.build_request(
            "POST", self.url, json=self.payload, headers=self._build_headers()
        )
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            self._transcoder.state = RelayState.FAILED
            logger.error("Cannot connect to upstream %s: %s", self.url, describe_error(exc))
            raise UpstreamRequestError(
                f"Cannot connect to upstream: {describe_error(exc)}"
            ) from exc

        if not response.is_success:
            self._transcoder.state = RelayState.FAILED
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = None
            finally:
                await response.aclose()
            logger.error("Upstream %s answered HTTP %d", self.url, response.status_code)
            raise UpstreamRequestError(
                f"Upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        self._response = response
        self._transcoder.state = RelayState.STREAMING
        logger.debug("Upstream stream opened: %s", self.url)

    async def _iter_upstream(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as exc:
            raise UpstreamStreamError(describe_error(exc)) from exc

    async def frames(self) -> AsyncIterator[str]:
        await self.open()
        try:
            async with aclosing(self._transcoder.transcode(self._iter_upstream())) as frames:
                async for frame in frames:
                    yield frame
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the upstream response. Safe to call more than once."""
        if self._response is None or self._response.is_closed:
            return
        await self._response.aclose()
        logger.debug("Upstream stream closed in state %s", self.state.value)
