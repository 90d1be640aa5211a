"""
Login Session Management

Holds the server side of login sessions. The client only ever sees the opaque
token, carried inside Flask's signed session cookie.
"""

import time
import uuid
import logging
import threading
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class SessionStore:
    """
    In-memory store of authenticated sessions with a fixed lifetime
    """

    def __init__(self, session_timeout: int = 3600, clock: Callable[[], float] = time.time):
        self.session_timeout = session_timeout
        self.clock = clock
        self.active_sessions: Dict[str, Dict[str, Any]] = {}
        self.lock = threading.Lock()

    def create_session(self) -> str:
        """
        Create a new authenticated session

        Returns:
            Session token
        """
        session_id = uuid.uuid4().hex
        now = self.clock()
        with self.lock:
            self.active_sessions[session_id] = {
                'session_id': session_id,
                'authenticated': True,
                'created_at': now,
                'expires_at': now + self.session_timeout,
            }
        logger.info(f"Created login session {session_id[:8]}...")
        return session_id

    def get_session(self, session_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Get session data

        Args:
            session_id: Session token

        Returns:
            Session data or None if not found/expired
        """
        if not session_id:
            return None
        with self.lock:
            session = self.active_sessions.get(session_id)
            if session is None:
                return None
            if self.clock() >= session['expires_at']:
                del self.active_sessions[session_id]
                logger.info(f"Login session {session_id[:8]}... expired")
                return None
            return session

    def is_authenticated(self, session_id: Optional[str]) -> bool:
        session = self.get_session(session_id)
        return bool(session and session['authenticated'])

    def remove_session(self, session_id: Optional[str]) -> bool:
        """Destroy a session. Returns True if it existed."""
        if not session_id:
            return False
        with self.lock:
            removed = self.active_sessions.pop(session_id, None) is not None
        if removed:
            logger.info(f"Removed login session {session_id[:8]}...")
        return removed

    def cleanup_expired_sessions(self) -> int:
        """
        Drop every expired session

        Returns:
            Number of sessions removed
        """
        now = self.clock()
        with self.lock:
            expired = [sid for sid, session in self.active_sessions.items() if now >= session['expires_at']]
            for sid in expired:
                del self.active_sessions[sid]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired login sessions")
        return len(expired)
