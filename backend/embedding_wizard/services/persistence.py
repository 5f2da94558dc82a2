"""Sends the draft to the search settings backend.

Two commands, one per submission:

- update: reranking and advanced fields only, applied in place.
- replace: the full configuration with a new embedding model; the backend
  starts a re-index and the operator is redirected to the search admin page.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from embedding_wizard.config import settings
from embedding_wizard.errors import (
    BaselineUnavailableError,
    ReplaceRejectedError,
    SubmissionInFlightError,
    UpdateRejectedError,
)
from embedding_wizard.models.search_settings import CloudModel, EmbeddingModel, HostedModel
from embedding_wizard.models.wizard import (
    NotificationType,
    Redirect,
    SessionEvents,
    SubmissionResult,
)
from embedding_wizard.services.baseline_sync import BaselineSync
from embedding_wizard.services.draft_store import DraftStore

logger = logging.getLogger(__name__)

UPDATE_SUCCESS_MESSAGE = "Updated search settings successfully"
UPDATE_FAILURE_MESSAGE = "Failed to update search settings"
REPLACE_SUCCESS_MESSAGE = "Changed provider successfully. Redirecting to embedding page"
REPLACE_FAILURE_MESSAGE = "Failed to update embedding model"


def _require_provider(draft: DraftStore) -> EmbeddingModel:
    if draft.selected_provider is None:
        raise BaselineUnavailableError("No embedding model selected")
    return draft.selected_provider


def _update_provider_type(model: EmbeddingModel) -> str | None:
    if isinstance(model, CloudModel):
        return model.provider_type.lower()
    if isinstance(model, HostedModel):
        return None
    raise TypeError(f"Unsupported embedding model type: {type(model).__name__}")


def _replace_provider_type(model: EmbeddingModel) -> str | None:
    if isinstance(model, CloudModel):
        # "Cohere Embed" -> "cohere"
        tokens = model.provider_type.lower().split()
        return tokens[0] if tokens else None
    if isinstance(model, HostedModel):
        return None
    raise TypeError(f"Unsupported embedding model type: {type(model).__name__}")


def compose_update_payload(draft: DraftStore) -> dict[str, Any]:
    provider = _require_provider(draft)
    return {
        **draft.reranking.model_dump(mode="json"),
        **draft.advanced.model_dump(mode="json"),
        "provider_type": _update_provider_type(provider),
    }


def compose_replace_payload(draft: DraftStore) -> dict[str, Any]:
    provider = _require_provider(draft)
    payload = {
        **draft.advanced.model_dump(mode="json"),
        **provider.model_dump(mode="json"),
        **draft.reranking.model_dump(mode="json"),
        "model_name": provider.model_name,
        "provider_type": _replace_provider_type(provider),
    }
    # The server names the new index
    payload["index_name"] = None
    return payload


class PersistenceGateway:
    def __init__(
        self,
        baseline: BaselineSync,
        events: SessionEvents | None = None,
        redirect_url: str | None = None,
        redirect_delay: float | None = None,
        settle_interval: float | None = None,
    ) -> None:
        self.baseline = baseline
        self.client = baseline.client
        self.events = events if events is not None else SessionEvents()
        self.redirect_url = redirect_url or settings.redirect_url
        self.redirect_delay = (
            redirect_delay if redirect_delay is not None else settings.redirect_delay
        )
        self.settle_interval = (
            settle_interval if settle_interval is not None else settings.redirect_settle_interval
        )
        self.redirect_task: asyncio.Task | None = None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @asynccontextmanager
    async def _submission(self, action: str) -> AsyncIterator[SubmissionResult]:
        if self._in_flight:
            raise SubmissionInFlightError("A search settings submission is already running")
        self._in_flight = True
        result = SubmissionResult(action=action, success=False)
        try:
            yield result
        finally:
            self._in_flight = False
            self.events.notifications.extend(result.events.notifications)
            self.events.alerts.extend(result.events.alerts)
            if result.events.redirect is not None:
                self.events.redirect = result.events.redirect

    # ── Commands ────────────────────────────────────────────────

    async def update_search_settings(self, draft: DraftStore) -> SubmissionResult:
        async with self._submission("update") as result:
            result.update_succeeded = await self._update(draft, result.events)
            result.success = result.update_succeeded
        return result

    async def set_new_search_settings(self, draft: DraftStore) -> SubmissionResult:
        async with self._submission("replace") as result:
            result.replace_attempted = True
            result.replace_succeeded = await self._replace(draft, result.events)
            result.success = result.replace_succeeded
        return result

    async def reindex(self, draft: DraftStore) -> SubmissionResult:
        """Update, then replace only once the update went through."""
        async with self._submission("reindex") as result:
            result.update_succeeded = await self._update(draft, result.events)
            if not result.update_succeeded:
                logger.info("Skipping re-index: search settings update failed")
                return result
            result.replace_attempted = True
            result.replace_succeeded = await self._replace(draft, result.events)
            result.success = result.replace_succeeded
        return result

    # ── Internals ───────────────────────────────────────────────

    async def _update(self, draft: DraftStore, events: SessionEvents) -> bool:
        payload = compose_update_payload(draft)
        live = self.baseline.snapshot
        previous_model = live.current_model if live is not None else None
        try:
            resp = await self.client.update_inference_settings(payload)
            if not resp.is_success:
                raise UpdateRejectedError(resp.status_code, resp.text)
        except (UpdateRejectedError, httpx.HTTPError) as exc:
            logger.warning("Search settings update failed: %s", exc)
            events.notify(UPDATE_FAILURE_MESSAGE, NotificationType.error)
            return False

        logger.info("Search settings updated")
        events.notify(UPDATE_SUCCESS_MESSAGE, NotificationType.success)
        await self.baseline.refresh()
        if self.baseline.snapshot is not None:
            draft.rebase(previous_model, self.baseline.snapshot)
        return True

    async def _replace(self, draft: DraftStore, events: SessionEvents) -> bool:
        payload = compose_replace_payload(draft)
        try:
            resp = await self.client.set_new_search_settings(payload)
            if not resp.is_success:
                raise ReplaceRejectedError(resp.status_code, resp.text)
        except ReplaceRejectedError as exc:
            self._replace_failed(events, exc, exc.body)
            return False
        except httpx.HTTPError as exc:
            self._replace_failed(events, exc, str(exc))
            return False

        logger.info("New search settings accepted for model %s", payload["model_name"])
        events.notify(REPLACE_SUCCESS_MESSAGE, NotificationType.success)
        events.redirect = Redirect(url=self.redirect_url)
        self.redirect_task = asyncio.create_task(
            self._redirect_when_live(events.redirect, payload["model_name"])
        )
        return True

    def _replace_failed(self, events: SessionEvents, exc: Exception, body: str) -> None:
        logger.warning("Setting new search settings failed: %s", exc)
        events.notify(REPLACE_FAILURE_MESSAGE, NotificationType.error)
        events.alert(f"{REPLACE_FAILURE_MESSAGE} - {body}")

    async def _wait_for_transition(self, model_name: str) -> None:
        while True:
            secondary = await self.baseline.refresh_secondary()
            if secondary is not None and secondary.model_name == model_name:
                return
            await asyncio.sleep(self.settle_interval)

    async def _redirect_when_live(self, redirect: Redirect, model_name: str) -> None:
        """Redirect once the backend reports the switch, or after the delay."""
        try:
            await asyncio.wait_for(
                self._wait_for_transition(model_name), timeout=self.redirect_delay
            )
        except asyncio.TimeoutError:
            logger.debug("Switch to %s not visible yet; redirecting anyway", model_name)
        redirect.fired = True
        logger.info("Redirecting to %s", redirect.url)
