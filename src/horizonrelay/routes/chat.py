from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from horizonrelay.config import Settings, get_settings
from horizonrelay.models.chat import ChatRequest
from horizonrelay.services.chat_service import ChatService

router = APIRouter(tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/v1/chat")
async def chat(
    request: Request,
    body: ChatRequest,
    settings: Settings = Depends(get_settings),
):
    if not body.messages:
        return JSONResponse(status_code=400, content={"error": "Messages array is required"})

    chat_svc = ChatService(http_client=request.app.state.http_client, settings=settings)

    if body.stream:
        relay = await chat_svc.open_relay(body)
        # Closes the upstream even if the client leaves before the first frame.
        return StreamingResponse(
            relay.frames(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
            background=BackgroundTask(relay.aclose),
        )

    return Response(
        content=await chat_svc.buffered_chat(body),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
