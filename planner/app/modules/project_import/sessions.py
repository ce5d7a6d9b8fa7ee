"""In-memory registry of suspended imports.

Each upload gets its own controller and draft store; nothing is shared
between sessions. A session expires once it has been idle for the TTL, and
is then dropped as if it had been cancelled.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from cachetools import TTLCache

from .controller import ImportController
from .drafts import ProjectDraftStore
from .errors import ImportSessionNotFoundError


@dataclass
class ImportSession:
    session_id: str
    filename: str
    controller: ImportController
    store: ProjectDraftStore
    cancelled: bool = False


class ImportSessionRegistry:
    """Thread-safe session store with idle expiry and a size bound."""

    def __init__(
        self,
        ttl_seconds: float,
        *,
        max_sessions: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: TTLCache[str, ImportSession] = TTLCache(
            maxsize=max_sessions, ttl=ttl_seconds, timer=clock
        )
        self._lock = threading.Lock()

    def create(self, filename: str, controller: ImportController, store: ProjectDraftStore) -> ImportSession:
        session = ImportSession(
            session_id=uuid.uuid4().hex,
            filename=filename,
            controller=controller,
            store=store,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> ImportSession:
        """Return the session and restart its idle timer."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                # re-inserting resets the entry's expiry
                self._sessions[session_id] = session
        if session is None:
            raise ImportSessionNotFoundError(f"Import session {session_id} not found")
        return session
