"""
Chat Routes - placement assistant

POST /chatbot - One complete reply: {"response": "..."} (no /api prefix)
POST /chat/stream - Server-Sent Events, one "data:" frame per chunk, ends with "data: [DONE]"
"""

import json
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from app.schemas.schemas import ChatRequest, ChatResponse
from app.services.chat_client import ChatUnavailable, get_chat_assistant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])
form_router = APIRouter(tags=["Chat"])

CHAT_ERROR_MESSAGE = "Error generating response from AI."
END_OF_STREAM = "[DONE]"


def sse_frame(data: str) -> str:
    # JSON-encode so newlines inside a chunk cannot split the frame
    return f"data: {json.dumps(data)}\n\n"


@form_router.post("/chatbot", response_model=ChatResponse)
async def chatbot(request: ChatRequest):
    try:
        reply = get_chat_assistant().reply(request.message)
    except ChatUnavailable:
        return JSONResponse(status_code=500, content={"response": CHAT_ERROR_MESSAGE})
    return ChatResponse(response=reply)


@router.post("/stream")
def chat_stream(request: ChatRequest):
    """
    Stream the reply as it is generated.
    A failure mid-stream sends an [ERROR] frame; chunks already sent stand.
    """
    assistant = get_chat_assistant()

    def events():
        try:
            for chunk in assistant.stream(request.message):
                yield sse_frame(chunk)
        except ChatUnavailable:
            yield f"data: [ERROR] {CHAT_ERROR_MESSAGE}\n\n"
        yield f"data: {END_OF_STREAM}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")
