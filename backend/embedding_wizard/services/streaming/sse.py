from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncGenerator

from embedding_wizard.storage.session_store import SessionStore

logger = logging.getLogger(__name__)


async def session_event_stream(
    session_id: str, store: SessionStore, poll_interval: float = 0.5
) -> AsyncGenerator[dict, None]:
    """Generate SSE events as a wizard session changes.

    Emits the view whenever its status, step or dialog changes, every new
    notification and alert, and a final ``redirect`` event once the
    post-replace redirect fires.
    """
    last_view_key = None
    sent_notifications = 0
    sent_alerts = 0

    while True:
        session = store.get(session_id)
        if session is None:
            yield {"event": "error", "data": json.dumps({"error": "Session not found"})}
            return

        view = session.view()
        view_key = (view.status, view.step, view.dialog is not None, view.submit_label)
        if view_key != last_view_key:
            last_view_key = view_key
            yield {"event": "view", "data": view.model_dump_json()}

        events = session.events
        for notification in events.notifications[sent_notifications:]:
            yield {"event": "notification", "data": notification.model_dump_json()}
        sent_notifications = len(events.notifications)

        for alert in events.alerts[sent_alerts:]:
            yield {"event": "alert", "data": alert.model_dump_json()}
        sent_alerts = len(events.alerts)

        if events.redirect is not None and events.redirect.fired:
            yield {"event": "redirect", "data": events.redirect.model_dump_json()}
            return

        await asyncio.sleep(poll_interval)
