from __future__ import annotations

import logging
import httpx

from horizonrelay.config import Settings
from horizonrelay.models.chat import ChatRequest
from horizonrelay.services.stream_collector import collect_stream
from horizonrelay.services.stream_relay import StreamRelay

logger = logging.getLogger("horizonrelay.chat")


class ChatService:
    """Forwards chat requests to the upstream provider through a StreamRelay.

    Streaming callers get the live frame sequence; buffered callers get the
    same frames drained into one event-stream body.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def _build_upstream_payload(self, request: ChatRequest) -> dict:
        payload = request.model_dump(exclude_none=True, exclude={"messages", "stream"})
        payload["model"] = request.model or self.settings.upstream_model

        messages = []
        if self.settings.system_prompt:
            messages.append({"role": "system", "content": self.settings.system_prompt})
        messages.extend(m.model_dump(exclude_none=True) for m in request.messages)
        payload["messages"] = messages
        payload["stream"] = True
        return payload

    async def open_relay(self, request: ChatRequest) -> StreamRelay:
        """Dispatch the upstream request. Raises UpstreamRequestError on failure."""
        relay = StreamRelay(
            http_client=self.http_client,
            url=self.settings.upstream_url,
            payload=self._build_upstream_payload(request),
            api_key=self.settings.upstream_api_key or None,
        )
        await relay.open()
        logger.info(
            "Relaying chat: model=%s messages=%d stream=%s",
            relay.payload["model"],
            len(request.messages),
            request.stream,
        )
        return relay

    async def buffered_chat(self, request: ChatRequest) -> str:
        relay = await self.open_relay(request)
        body = await collect_stream(relay.frames())
        logger.info("Buffered chat finished in state %s (%d chars)", relay.state.value, len(body))
        return body
