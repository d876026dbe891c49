# activation/sessions.py
"""In-memory admin sessions.

Expiry is detected lazily: an idle or user-agent-mismatched session is
removed the next time someone presents its token, never by a sweep.
Sessions live only as long as the process.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from activation.utils.crypto import generate_session_token

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 30 * 60  # seconds


@dataclass
class AdminSession:
    created_at: float
    last_seen: float
    user_agent: Optional[str] = None


class SessionManager:
    def __init__(self, idle_timeout: float = DEFAULT_IDLE_TIMEOUT, clock: Callable[[], float] = time.time):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: Dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, token) -> bool:
        with self._lock:
            return token in self._sessions

    def create(self, user_agent: Optional[str] = None) -> str:
        now = self._clock()
        token = generate_session_token()
        with self._lock:
            self._sessions[token] = AdminSession(created_at=now, last_seen=now, user_agent=user_agent or None)
        return token

    def validate(self, token: Optional[str], user_agent: Optional[str] = None, now: Optional[float] = None) -> Optional[AdminSession]:
        if not token:
            return None
        if now is None:
            now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.user_agent is not None and session.user_agent != user_agent:
                del self._sessions[token]
                logger.info("Admin session dropped: user agent changed")
                return None
            if now - session.last_seen > self.idle_timeout:
                del self._sessions[token]
                logger.info("Admin session expired after idle timeout")
                return None
            session.last_seen = now
            return session

    def destroy(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)
