"""Health router."""

from fastapi import APIRouter, Request

from backend.models import HealthResponse
from siteaudit import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return {
        "status": "ok" if orchestrator else "starting",
        "version": __version__,
        "checks": [c.value for c in orchestrator.checkers] if orchestrator else [],
    }
