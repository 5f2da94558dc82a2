"""Polls the search settings backend and publishes the live baseline.

Every tick starts a new fetch without waiting for the previous one, so
responses may land out of order; whichever lands last wins. A response
whose settings equal the previous snapshot's reuses that snapshot. The live
model object is keyed on its identity (kind, provider type, model name), so
``current_model`` is only a new object when a different model goes live.
Hot-swapped fields such as the prefixes are read from ``settings``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import httpx
from pydantic import ValidationError

from embedding_wizard.config import settings
from embedding_wizard.models.search_settings import (
    BaselineSnapshot,
    EmbeddingModel,
    SavedSearchSettings,
    project_current_model,
)
from embedding_wizard.models.wizard import Error, FetchState, Loading, Ready
from embedding_wizard.services.settings_client import SearchSettingsClient

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[BaselineSnapshot], None]


class BaselineSync:
    def __init__(
        self,
        client: SearchSettingsClient | None = None,
        poll_interval: float | None = None,
    ) -> None:
        self.client = client or SearchSettingsClient()
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.poll_interval
        )
        self._state: FetchState = Loading()
        self._snapshot: BaselineSnapshot | None = None
        self._revision = 0
        self._models: dict[tuple[str, str | None, str], EmbeddingModel] = {}
        self._listeners: list[SnapshotListener] = []
        self._poll_task: asyncio.Task | None = None
        self._fetches: set[asyncio.Task] = set()

    # ── Read side ───────────────────────────────────────────────

    def current_model(self) -> FetchState:
        if isinstance(self._state, Ready):
            return Ready(self._state.value.current_model)
        return self._state

    def current_settings(self) -> FetchState:
        if isinstance(self._state, Ready):
            return Ready(self._state.value.settings)
        return self._state

    @property
    def snapshot(self) -> BaselineSnapshot | None:
        """Latest successful snapshot, kept even while the last fetch failed."""
        return self._snapshot

    # ── Subscriptions ───────────────────────────────────────────

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)
        if isinstance(self._state, Ready):
            listener(self._state.value)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Fetching ────────────────────────────────────────────────

    async def refresh(self) -> FetchState:
        """Fetch the live settings once and publish the result."""
        try:
            saved = await self.client.get_current_settings()
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("Fetching current search settings failed: %s", exc)
            self._state = Error(str(exc) or type(exc).__name__)
            return self._state

        if saved is None:
            logger.warning("Search settings backend returned no current settings")
            self._state = Error("No current search settings")
            return self._state

        self._publish(saved)
        return self._state

    def _publish(self, saved: SavedSearchSettings) -> None:
        previous = self._snapshot
        if previous is not None and previous.settings == saved:
            snapshot = previous
        else:
            self._revision += 1
            snapshot = BaselineSnapshot(
                revision=self._revision,
                settings=saved,
                current_model=self._live_model(saved),
            )
            logger.info(
                "Baseline revision %d: model %s", snapshot.revision, saved.model_name
            )
        self._snapshot = snapshot
        self._state = Ready(snapshot)
        for listener in list(self._listeners):
            listener(snapshot)

    def _live_model(self, saved: SavedSearchSettings) -> EmbeddingModel:
        projected = project_current_model(saved)
        key = (type(projected).__name__, saved.provider_type or None, saved.model_name)
        return self._models.setdefault(key, projected)

    async def refresh_secondary(self) -> SavedSearchSettings | None:
        """Settings being switched to, or None when no switch is in progress."""
        try:
            return await self.client.get_secondary_settings()
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("Fetching secondary search settings failed: %s", exc)
            return None

    # ── Polling ─────────────────────────────────────────────────

    def start(self) -> None:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        tasks = [t for t in (self._poll_task, *self._fetches) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_task = None
        self._fetches.clear()

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def _poll_loop(self) -> None:
        while True:
            task = asyncio.create_task(self.refresh())
            self._fetches.add(task)
            task.add_done_callback(self._fetches.discard)
            await asyncio.sleep(self.poll_interval)

