"""
In-memory session store for the conversion API.

One ConversionSession per editor session, keyed by session id. Nothing is
persisted; sessions disappear when the process exits.
"""

import threading
from typing import Dict, List, Optional

from interchange.convert import ConversionSession


class SessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, ConversionSession] = {}
        self._lock = threading.Lock()

    def create(self) -> ConversionSession:
        session = ConversionSession()
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[ConversionSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def clear(self) -> int:
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
