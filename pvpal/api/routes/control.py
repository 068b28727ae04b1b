"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class SweepResponse(BaseModel):
    """Entries removed by a manual sweep."""

    contexts: int
    history_entries: int
    retry_markers: int


def create_control_router(app) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Reset system data between test runs."""
        try:
            await app.reset()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sweep", response_model=SweepResponse)
    async def sweep_state() -> dict:
        """Prune expired dialogue state now instead of waiting for the sweeper."""
        try:
            return app.sweeper.sweep_once()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
