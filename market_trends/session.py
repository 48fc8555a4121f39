# SPDX-License-Identifier: AGPL-3.0-only

"""
Analysis session state machine.

A session moves IDLE -> LOADING -> RESULTS | ERROR, and back to IDLE on reset.
Each ``begin`` issues a new request id; a result or error that arrives for any
other id is stale and leaves the session untouched, so a slow earlier request
can never overwrite a newer one or a reset.
"""

import threading
import uuid
from typing import Any, Dict, Optional

from .errors import MarketAnalysisError
from .models import AnalysisState, ErrorInfo, MarketReport

# Oldest settled sessions are evicted past this count
MAX_SESSIONS = 1000


class AnalysisSession:
    """Holds the current report and loading status for one caller."""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self._lock = threading.Lock()
        self.state = AnalysisState.IDLE
        self.subject: Optional[str] = None
        self.request_id: Optional[str] = None
        self.report: Optional[MarketReport] = None
        self.error: Optional[ErrorInfo] = None

    def begin(self, subject: str) -> str:
        """Start a new analysis, superseding any request in flight."""
        with self._lock:
            self.request_id = str(uuid.uuid4())
            self.subject = subject
            self.state = AnalysisState.LOADING
            self.error = None
            return self.request_id

    def is_current(self, request_id: str) -> bool:
        with self._lock:
            return self._is_current(request_id)

    def resolve(self, request_id: str, report: MarketReport) -> bool:
        """
        Record a successful result.

        Returns:
            False if the request was superseded or reset, True otherwise
        """
        with self._lock:
            if not self._is_current(request_id):
                return False
            self.report = report
            self.error = None
            self.state = AnalysisState.RESULTS
            return True

    def fail(self, request_id: str, error: MarketAnalysisError) -> bool:
        """
        Record a failure.

        Returns:
            False if the request was superseded or reset, True otherwise
        """
        with self._lock:
            if not self._is_current(request_id):
                return False
            self.error = error.to_info()
            self.state = AnalysisState.ERROR
            return True

    def reset(self) -> None:
        """Discard the current report and return to IDLE."""
        with self._lock:
            self.request_id = None
            self.subject = None
            self.report = None
            self.error = None
            self.state = AnalysisState.IDLE

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the session."""
        with self._lock:
            return {
                "session_id": self.session_id,
                "state": self.state.value,
                "subject": self.subject,
                "request_id": self.request_id,
                "report": self.report.to_dict() if self.report else None,
                "error": self.error.model_dump(exclude={"details"}) if self.error else None,
            }

    def _is_current(self, request_id: str) -> bool:
        return (
            self.request_id is not None
            and request_id == self.request_id
            and self.state == AnalysisState.LOADING
        )


class SessionRegistry:
    """In-memory sessions keyed by session id, bounded by ``max_sessions``."""

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, AnalysisSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: Optional[str] = None) -> AnalysisSession:
        with self._lock:
            if session_id and session_id in self._sessions:
                return self._sessions[session_id]
            self._evict_locked()
            session = AnalysisSession(session_id)
            self._sessions[session.session_id] = session
            return session

    def get(self, session_id: str) -> Optional[AnalysisSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_locked(self) -> None:
        """Drop the oldest sessions not in LOADING until there is room for one more."""
        excess = len(self._sessions) - self.max_sessions + 1
        if excess <= 0:
            return
        idle = [sid for sid, s in self._sessions.items() if s.state != AnalysisState.LOADING]
        for sid in idle[:excess]:
            del self._sessions[sid]


# Global session registry for the HTTP layer
session_registry = SessionRegistry()
