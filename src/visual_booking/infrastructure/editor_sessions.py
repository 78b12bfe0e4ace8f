"""In-memory registry of open schedule editor sessions."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, Optional
from uuid import uuid4

from ..application.services.schedule_editor import ScheduleEditor
from .logging import get_logger


logger = get_logger(__name__)


class SessionNotFoundError(LookupError):
    """No open editor session has the requested id."""


@dataclass
class EditorSession:
    """One admin's editor for one date, plus a lock serializing its calls."""
    id: str
    editor: ScheduleEditor
    last_used: float = field(default_factory=time.monotonic)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def touch(self) -> None:
        self.last_used = time.monotonic()


class EditorSessionRegistry:
    """Holds editor sessions between HTTP calls; idle sessions expire."""

    def __init__(self, idle_timeout_seconds: float = 3600):
        self.idle_timeout_seconds = idle_timeout_seconds
        self._sessions: Dict[str, EditorSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, editor: ScheduleEditor) -> EditorSession:
        """Register an editor and return its new session."""
        self.purge_expired()
        session = EditorSession(id=str(uuid4()), editor=editor)
        self._sessions[session.id] = session
        logger.info("Opened editor session", extra={"session_id": session.id, "date_key": editor.date})
        return session

    def get(self, session_id: str) -> EditorSession:
        """Find an open session, refreshing its idle timer."""
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Editor session not found: {session_id}")
        session.touch()
        return session

    def close(self, session_id: str) -> Optional[EditorSession]:
        """Drop a session; closing an unknown id is a no-op."""
        return self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        """Remove sessions idle longer than the timeout."""
        cutoff = time.monotonic() - self.idle_timeout_seconds
        expired = [
            sid for sid, s in self._sessions.items()
            if s.last_used < cutoff and not s.lock.locked()
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug(f"Expired {len(expired)} editor session(s)")
        return len(expired)
