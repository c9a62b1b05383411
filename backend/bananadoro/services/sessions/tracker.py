import threading
from typing import Dict, Optional, Set


class ConnectionTracker:
    """Single source of truth for which session a connection is in.

    Sessions only keep the bare connection ids in ``members``; the binding
    and the optional display label live here.
    """

    def __init__(self):
        self._sid_to_code: Dict[str, str] = {}
        self._labels: Dict[str, str] = {}
        self._connected: Set[str] = set()
        self._lock = threading.Lock()

    def connect(self, sid: str, label: Optional[str] = None) -> None:
        with self._lock:
            self._connected.add(sid)
            if label:
                self._labels[sid] = label
            else:
                self._labels.pop(sid, None)

    def forget(self, sid: str) -> None:
        with self._lock:
            self._connected.discard(sid)
            self._labels.pop(sid, None)

    def label_for(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._labels.get(sid)

    def bind(self, sid: str, code: str) -> bool:
        """Record the binding unless ``sid`` has already disconnected."""
        with self._lock:
            if sid not in self._connected:
                return False
            self._sid_to_code[sid] = code
            return True

    def unbind(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sid_to_code.pop(sid, None)

    def session_code_for(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sid_to_code.get(sid)
