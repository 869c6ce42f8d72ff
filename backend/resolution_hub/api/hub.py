from fastapi import APIRouter, Depends

from resolution_hub.core.auth import get_current_user
from resolution_hub.models.case import HubStats
from resolution_hub.storage import case_store

router = APIRouter(prefix="/api/hub", tags=["hub"])


@router.get("/stats", response_model=HubStats)
def stats(user: dict = Depends(get_current_user)):
    """Case counts by status and type for the hub dashboard."""
    return case_store.hub_stats()


@router.get("/sessions/{session_id}/events")
def session_events(session_id: str, user: dict = Depends(get_current_user)):
    """Chat-flow events recorded for one session, oldest first."""
    return {"sessionId": session_id, "events": case_store.get_session_events(session_id)}
