from __future__ import annotations

import logging
from typing import Any

from embedding_wizard.errors import UnknownFieldError
from embedding_wizard.models.search_settings import (
    AdvancedConfig,
    BaselineSnapshot,
    EmbeddingModel,
    RerankingConfig,
)

logger = logging.getLogger(__name__)


class DraftStore:
    """Operator's working copy of the search configuration.

    Updates replace the named fields and nothing else. Values are taken as
    given; the pickers that produce them own validation.
    """

    def __init__(self) -> None:
        self.selected_provider: EmbeddingModel | None = None
        self.advanced = AdvancedConfig()
        self.reranking = RerankingConfig()
        self.original_reranking = RerankingConfig()
        self.origin_revision: int | None = None
        self.edited = False

    # ── Edits ───────────────────────────────────────────────────

    def update_selected_provider(self, model: EmbeddingModel) -> None:
        self.selected_provider = model
        self.edited = True

    def update_advanced(self, key: str, value: Any) -> None:
        if key not in AdvancedConfig.model_fields:
            raise UnknownFieldError(f"Unknown advanced setting: {key}")
        self.advanced = self.advanced.model_copy(update={key: value})
        self.edited = True

    def update_reranking(self, **fields: Any) -> None:
        unknown = sorted(set(fields) - set(RerankingConfig.model_fields))
        if unknown:
            raise UnknownFieldError(f"Unknown reranking setting(s): {', '.join(unknown)}")
        self.reranking = self.reranking.model_copy(update=fields)
        self.edited = True

    def update_num_rerank(self, num_rerank: int) -> None:
        self.update_reranking(num_rerank=num_rerank)

    # ── Seeding ─────────────────────────────────────────────────

    def seed(self, snapshot: BaselineSnapshot) -> None:
        saved = snapshot.settings
        self.selected_provider = snapshot.current_model
        self.advanced = saved.advanced().model_copy(update={"api_url": None})
        self.reranking = saved.reranking()
        self.original_reranking = saved.reranking()
        self.origin_revision = snapshot.revision
        self.edited = False

    def rebase(self, previous_model: EmbeddingModel | None, snapshot: BaselineSnapshot) -> None:
        """Follow the baseline this draft was just saved into.

        A draft still pointing at the model that was live before the save is
        moved to the new live model, so a saved draft never looks like a
        provider switch. Edits are kept.
        """
        if previous_model is not None and self.selected_provider is previous_model:
            self.selected_provider = snapshot.current_model
        self.origin_revision = snapshot.revision

    def reconcile(self, snapshot: BaselineSnapshot) -> bool:
        """Re-seed from a new baseline unless the operator has edited the draft.

        Returns True when the draft was overwritten.
        """
        if self.origin_revision is None:
            self.seed(snapshot)
            return True
        if snapshot.revision == self.origin_revision:
            return False
        if self.edited:
            logger.debug(
                "Draft edited since revision %d; keeping it over revision %d",
                self.origin_revision,
                snapshot.revision,
            )
            return False
        self.seed(snapshot)
        return True
