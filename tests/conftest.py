import httpx
import pytest

from horizonrelay.config import Settings

UPSTREAM_URL = "http://test-upstream/v1/chat/completions"


@pytest.fixture
def settings():
    """Test settings pointing at a mocked upstream."""
    return Settings(
        upstream_url=UPSTREAM_URL,
        upstream_api_key="test-key",
        upstream_model="test-model",
        system_prompt="You are a test assistant.",
        frontend_url="http://localhost:5173",
    )


@pytest.fixture
def chunk_source():
    """Build an async chunk source, optionally failing after the last chunk."""

    def build(chunks, error=None):
        async def source():
            for chunk in chunks:
                yield chunk
            if error is not None:
                raise error

        return source()

    return build


@pytest.fixture
def upstream():
    """Mocked upstream provider streaming the given chunks.

    Every request the client sends is recorded in ``upstream.requests``.
    """

    class Upstream:
        def __init__(self):
            self.requests = []
            self.chunks = []
            self.status_code = 200
            self.error = None
            self.connect_error = None

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if self.connect_error is not None:
                raise self.connect_error

            chunks, error = list(self.chunks), self.error

            async def body():
                for chunk in chunks:
                    yield chunk
                if error is not None:
                    raise error

            return httpx.Response(
                self.status_code,
                headers={"Content-Type": "text/event-stream"},
                content=body(),
            )

        def client(self) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    return Upstream()


async def drain(frames):
    return [frame async for frame in frames]


@pytest.fixture
def collect_frames():
    return drain
