"""
In-memory resolution session storage.

Sessions live here between chat turns. Each stored session also gets its own
lock so two requests for the same conversation never mutate it at once.
Sessions whose case has been emitted are swept out after
``FINISHED_SESSION_TTL_SECONDS``.
For multi-process deployments, replace with Redis or a database table.
"""
import threading
import time
from typing import Optional

from resolution_hub.core.config import settings
from resolution_hub.ladder.state import ResolutionSession
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

_STORE: dict[str, ResolutionSession] = {}
_LOCKS: dict[str, threading.Lock] = {}
_FINISHED: dict[str, float] = {}
_LOCKS_GUARD = threading.Lock()


def session_lock(session_id: str) -> Optional[threading.Lock]:
    """The lock that serialises turns for one session id, or None for unknown ids."""
    with _LOCKS_GUARD:
        if session_id not in _STORE:
            return None
        return _LOCKS.setdefault(session_id, threading.Lock())


def create_session(flow_type: Optional[str] = None) -> ResolutionSession:
    evict_finished_sessions()
    session = ResolutionSession(flow_type=flow_type)
    with _LOCKS_GUARD:
        _STORE[session.session_id] = session
        _LOCKS[session.session_id] = threading.Lock()
    logger.info(f"🆕 MEMORY: Session {session.session_id} created (flow={flow_type})")
    return session


def load_session(session_id: str) -> Optional[ResolutionSession]:
    """
    Load a resolution session.

    Args:
        session_id: Opaque id handed out by create_session

    Returns:
        ResolutionSession or None if not found
    """
    logger.debug(f"📂 MEMORY: Loading session {session_id}")
    session = _STORE.get(session_id)
    if session is None:
        logger.info(f"ℹ️ MEMORY: No session stored for {session_id}")
    return session


def save_session(session: ResolutionSession):
    logger.debug(f"💾 MEMORY: Saving session {session.session_id}")
    with _LOCKS_GUARD:
        _STORE[session.session_id] = session
        if session.is_terminal and session.case_id:
            _FINISHED.setdefault(session.session_id, time.monotonic())


def clear_session(session_id: str):
    """Drop a session (abandoned flows need no other cleanup)."""
    with _LOCKS_GUARD:
        session = _STORE.pop(session_id, None)
        _LOCKS.pop(session_id, None)
        _FINISHED.pop(session_id, None)
    if session is not None:
        logger.info(f"✅ MEMORY: Session {session_id} cleared")
    else:
        logger.warning(f"⚠️ MEMORY: No session to clear for {session_id}")


def evict_finished_sessions() -> int:
    """Drop sessions whose case was emitted more than the configured TTL ago."""
    cutoff = time.monotonic() - settings.FINISHED_SESSION_TTL_SECONDS
    with _LOCKS_GUARD:
        expired = [sid for sid, finished_at in _FINISHED.items() if finished_at <= cutoff]
        for sid in expired:
            _STORE.pop(sid, None)
            _LOCKS.pop(sid, None)
            _FINISHED.pop(sid, None)
    if expired:
        logger.info(f"🧹 MEMORY: Evicted {len(expired)} finished session(s)")
    return len(expired)


def get_all_sessions() -> list[str]:
    sessions = list(_STORE.keys())
    logger.debug(f"📋 MEMORY: {len(sessions)} sessions in storage")
    return sessions
