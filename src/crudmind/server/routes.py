"""API routes for the crudmind server."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from crudmind.agent.builder import build_orchestrator
from crudmind.agent.orchestrator import AgentOrchestrator
from crudmind.config.schema import CrudmindConfig


class ChatRequest(BaseModel):
    """Request body for chat endpoints."""

    conversation_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


class ConversationRequest(BaseModel):
    """Request body for confirm/reject endpoints."""

    conversation_id: str = Field(min_length=1)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    model: str
    version: str
    tables: list[str]


def create_router(config: CrudmindConfig, orchestrator: AgentOrchestrator | None = None) -> APIRouter:
    """Create API router with configured orchestrator.

    Args:
        config: crudmind configuration
        orchestrator: Prebuilt orchestrator (built from config if omitted)

    Returns:
        Configured API router
    """
    router = APIRouter()

    if orchestrator is None:
        orchestrator = build_orchestrator(config)

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        from crudmind import __version__

        return HealthResponse(
            status="healthy",
            model=config.model.name,
            version=__version__,
            tables=orchestrator.schema.table_names,
        )

    @router.post("/chat")
    async def chat(request: ChatRequest) -> dict[str, Any]:
        """Send a message and wait for the agent's response.

        Returns:
            Response envelope: message, confirmation or error
        """
        try:
            response = await orchestrator.handle(request.conversation_id, request.message)
            return response.to_dict()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

    @router.post("/chat/stream")
    async def chat_stream(request: ChatRequest) -> EventSourceResponse:
        """Send a message and stream the agent's steps as Server-Sent Events."""

        async def event_generator() -> Any:
            async for event in orchestrator.stream(request.conversation_id, request.message):
                yield event.to_sse()

        return EventSourceResponse(event_generator())

    @router.post("/chat/confirm")
    async def confirm(request: ConversationRequest) -> dict[str, Any]:
        """Confirm the pending write of a conversation."""
        try:
            response = await orchestrator.confirm(request.conversation_id)
            return response.to_dict()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

    @router.post("/chat/confirm/stream")
    async def confirm_stream(request: ConversationRequest) -> EventSourceResponse:
        """Confirm the pending write and stream the remaining steps."""

        async def event_generator() -> Any:
            async for event in orchestrator.stream_confirm(request.conversation_id):
                yield event.to_sse()

        return EventSourceResponse(event_generator())

    @router.post("/chat/reject")
    async def reject(request: ConversationRequest) -> dict[str, Any]:
        """Reject the pending write of a conversation."""
        try:
            response = await orchestrator.reject(request.conversation_id)
            return response.to_dict()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

    @router.delete("/conversations/{conversation_id}")
    async def reset(conversation_id: str) -> dict[str, str]:
        """Forget a conversation."""
        await orchestrator.reset(conversation_id)
        return {"status": "deleted", "conversation_id": conversation_id}

    return router
