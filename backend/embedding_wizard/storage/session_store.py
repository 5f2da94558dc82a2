from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from embedding_wizard.config import settings
from embedding_wizard.services.baseline_sync import BaselineSync
from embedding_wizard.services.wizard import WizardController

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory wizard sessions. Nothing outlives the process."""

    def __init__(self, baseline: BaselineSync) -> None:
        self.baseline = baseline
        self._sessions: dict[str, WizardController] = {}
        self._last_seen: dict[str, datetime] = {}

    def create(self) -> WizardController:
        session = WizardController(self.baseline)
        self._sessions[session.session_id] = session
        self._last_seen[session.session_id] = datetime.now(timezone.utc)
        logger.info("Opened wizard session %s", session.session_id)
        return session

    def get(self, session_id: str) -> WizardController | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = datetime.now(timezone.utc)
        return session

    def last_seen(self, session_id: str) -> datetime | None:
        return self._last_seen.get(session_id)

    def discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info("Closed wizard session %s", session_id)
        return True

    def cleanup_expired(self, ttl: float | None = None) -> int:
        """Discard sessions idle for longer than ``ttl`` seconds. Returns the count."""
        if ttl is None:
            ttl = settings.session_ttl
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=ttl)
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            self.discard(session_id)
        return len(expired)

    def clear(self) -> None:
        for session_id in list(self._sessions):
            self.discard(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
