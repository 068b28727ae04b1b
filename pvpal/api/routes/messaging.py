"""Messaging API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...models import InboundMessage


class MessageRequest(BaseModel):
    """An inbound chat message as reported by the messaging adapter."""

    author_id: str
    channel_id: str
    content: str
    community_id: str | None = None
    replied_to_message_id: str | None = None
    addressed: bool = False
    is_direct: bool = False
    author_name: str | None = None


class MessageResponse(BaseModel):
    """Reply to post back, or null when the bot stays silent."""

    reply: str | None


def create_messaging_router(app) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    @router.post("/messages", response_model=MessageResponse)
    async def send_message(request: MessageRequest) -> dict:
        """Hand a message to the turn dispatcher."""
        try:
            reply = await app.dispatcher.handle(InboundMessage(**request.model_dump()))
            return {"reply": reply}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
