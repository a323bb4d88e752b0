"""Chat API routes."""

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, Field, StrictStr, ValidationError

from ...app import IApplication
from ...logging_config import get_logger
from ...stream import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    RunSession,
    new_id,
    run_single_shot,
    stream_session,
)

logger = get_logger(__name__)

INVALID_BODY = {
    "error": "Invalid request body",
    "details": "Request body must be valid JSON",
}
INVALID_QUESTION = {
    "error": "Invalid request",
    "details": "Question parameter is required and must be a string",
}


class ChatRequest(BaseModel):
    """Request model for a chat question."""

    question: StrictStr = Field(min_length=1)


def parse_question(body: object) -> str | None:
    """Extract a valid question from a decoded request body."""
    try:
        return ChatRequest.model_validate(body).question
    except ValidationError:
        return None


def create_chat_router(app: IApplication) -> APIRouter:
    """Create chat router."""
    router = APIRouter(prefix="/api", tags=["chat"])

    async def answer(question: str) -> Response:
        request_id = new_id()
        processor = app.query_processor

        if not app.is_streaming_enabled():
            result = await run_single_shot(processor, question, request_id=request_id)
            return JSONResponse(result.body, status_code=result.status_code)

        logger.info("Streaming run %s", request_id, extra={"run_id": request_id})
        session = RunSession(processor, question, request_id=request_id)
        # An explicit Content-Type keeps Starlette from appending a charset.
        return StreamingResponse(
            stream_session(session),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )

    @router.post("/chat")
    async def chat(request: Request) -> Response:
        """Answer a question given in the JSON body."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(INVALID_BODY, status_code=400)

        question = parse_question(body)
        if question is None:
            return JSONResponse(INVALID_QUESTION, status_code=400)
        return await answer(question)

    @router.get("/chat")
    async def chat_query(
        question: str | None = Query(None, description="Question to answer"),
    ) -> Response:
        """Answer a question given as a query parameter."""
        if not question:
            return JSONResponse(INVALID_QUESTION, status_code=400)
        return await answer(question)

    return router
