from datetime import datetime, timedelta, timezone

import pytest

from embedding_wizard.storage.session_store import SessionStore


class TestSessionStore:
    def test_create_and_get(self, baseline):
        store = SessionStore(baseline)
        session = store.create()
        assert store.get(session.session_id) is session
        assert len(store) == 1

    def test_get_missing(self, baseline):
        assert SessionStore(baseline).get("missing") is None

    def test_get_refreshes_last_seen(self, baseline):
        store = SessionStore(baseline)
        session = store.create()
        old = datetime.now(timezone.utc) - timedelta(hours=2)
        store._last_seen[session.session_id] = old
        store.get(session.session_id)
        assert store.last_seen(session.session_id) > old

    @pytest.mark.asyncio
    async def test_discard_stops_following_baseline(self, baseline, backend):
        store = SessionStore(baseline)
        session = store.create()
        await baseline.refresh()
        assert store.discard(session.session_id) is True
        assert store.last_seen(session.session_id) is None
        backend.current["num_rerank"] = 30
        await baseline.refresh()
        assert session.draft.reranking.num_rerank == 20


class TestSessionExpiry:
    def test_cleanup_expired_removes_idle_sessions(self, baseline):
        store = SessionStore(baseline)
        idle = store.create()
        active = store.create()

        # Last touched two hours ago
        store._last_seen[idle.session_id] = datetime.now(timezone.utc) - timedelta(hours=2)

        discarded = store.cleanup_expired(ttl=3600)
        assert discarded == 1
        assert store.get(idle.session_id) is None
        assert store.get(active.session_id) is active

    def test_cleanup_expired_no_idle_sessions(self, baseline):
        store = SessionStore(baseline)
        store.create()
        assert store.cleanup_expired(ttl=3600) == 0
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_expired_session_is_unsubscribed(self, baseline, backend):
        store = SessionStore(baseline)
        session = store.create()
        await baseline.refresh()
        store._last_seen[session.session_id] = datetime.now(timezone.utc) - timedelta(hours=2)
        store.cleanup_expired(ttl=60)
        backend.current["num_rerank"] = 30
        await baseline.refresh()
        assert session.draft.reranking.num_rerank == 20
