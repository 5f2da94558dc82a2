"""Decides whether a draft needs a full corpus re-index.

Only two changes require one: switching the active embedding model, and
toggling multipass indexing. Everything else is applied in place by the
update command.
"""

from __future__ import annotations

import logging

from embedding_wizard.models.search_settings import (
    BaselineSnapshot,
    CloudModel,
    EmbeddingModel,
    HostedModel,
)
from embedding_wizard.models.wizard import ReindexDecision
from embedding_wizard.services.draft_store import DraftStore

logger = logging.getLogger(__name__)

CHANGED_PROVIDER_REASON = "Changed embedding provider."
MULTIPASS_REASON = "Multipass indexing modification."


def _provider_changed(current: EmbeddingModel | None, selected: EmbeddingModel | None) -> bool:
    # Identity, not equality: picking a model from the catalog always counts
    # as a switch, even when it describes the live one.
    if selected is None:
        return current is not None
    if isinstance(selected, (CloudModel, HostedModel)):
        return current is not selected
    raise TypeError(f"Unsupported embedding model type: {type(selected).__name__}")


def needs_reindex(baseline: BaselineSnapshot | None, draft: DraftStore) -> ReindexDecision:
    current_model = baseline.current_model if baseline is not None else None
    live_multipass = baseline.settings.multipass_indexing if baseline is not None else None

    reasons: list[str] = []
    if baseline is None or _provider_changed(current_model, draft.selected_provider):
        reasons.append(CHANGED_PROVIDER_REASON)
    if live_multipass != draft.advanced.multipass_indexing:
        reasons.append(MULTIPASS_REASON)

    logger.debug("Re-index check: %s", reasons or "not required")
    return ReindexDecision(required=bool(reasons), reasons=reasons)
