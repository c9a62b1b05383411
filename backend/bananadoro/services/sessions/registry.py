import random
import threading
from typing import Dict, List, Optional

from bananadoro.models import CODE_LENGTH, Session, generate_session_code


class SessionRegistry:
    """Owns the code -> Session mapping.

    Create and remove run under one lock shared with lookups, so a session
    is never handed out halfway through its removal.
    """

    def __init__(self, logger, code_length: int = CODE_LENGTH, rng=None):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._logger = logger
        self._code_length = code_length
        self._rng = rng or random

    def create(self, work_duration: int, break_duration: int) -> Session:
        with self._lock:
            code = generate_session_code(
                lambda c: c in self._sessions,
                length=self._code_length,
                on_collision=self._log_collision,
                rng=self._rng,
            )
            session = Session(code, work_duration, break_duration)
            self._sessions[code] = session
        self._logger.info(
            f"[session-create] code={code} work={session.work_duration}s break={session.break_duration}s"
        )
        return session

    def get(self, code: str) -> Optional[Session]:
        if not code:
            return None
        with self._lock:
            return self._sessions.get(code)

    def remove(self, code: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.pop(code, None)
        if session is not None:
            session.closed = True
            self._logger.info(f"[session-remove] code={code}")
        return session

    def sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _log_collision(self, code: str) -> None:
        self._logger.debug(f"[code-collision] code={code} regenerating")
