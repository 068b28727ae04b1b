"""Observability API routes."""

from datetime import datetime

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query


class ConversationLogResponse(BaseModel):
    """Response model for one logged turn."""

    id: int
    user_id: str
    channel_id: str
    community_id: str | None
    channel_type: str | None
    message: str
    detected_intent: str
    confidence: float
    success: bool
    response: str | None
    latency_ms: int | None
    error: str | None
    timestamp: datetime


def create_observability_router(app) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/conversation-logs", response_model=list[ConversationLogResponse])
    async def get_conversation_logs(
        limit: int = Query(100, ge=1, le=1000),
        user_id: str | None = Query(None, description="Filter by user"),
    ) -> list[dict]:
        """Get recently handled turns, newest first."""
        try:
            records = await app.storage.get_conversation_logs(limit=limit, user_id=user_id)
            return [
                {
                    "id": r.id,
                    "user_id": r.user_id,
                    "channel_id": r.channel_id,
                    "community_id": r.community_id,
                    "channel_type": r.channel_type,
                    "message": r.message,
                    "detected_intent": r.detected_intent,
                    "confidence": r.confidence,
                    "success": r.success,
                    "response": r.response,
                    "latency_ms": r.latency_ms,
                    "error": r.error,
                    "timestamp": r.timestamp.isoformat(),
                }
                for r in records
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
