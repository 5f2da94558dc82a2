"""Tests for the re-index decision rule."""

import pytest

from embedding_wizard.models.search_settings import (
    BaselineSnapshot,
    CloudModel,
    HostedModel,
    RerankerProvider,
    SavedSearchSettings,
    project_current_model,
)
from embedding_wizard.services.draft_store import DraftStore
from embedding_wizard.services.reindex_diff import (
    CHANGED_PROVIDER_REASON,
    MULTIPASS_REASON,
    needs_reindex,
)
from tests.conftest import COHERE_MODEL, HOSTED_SETTINGS


def _snapshot(**overrides) -> BaselineSnapshot:
    saved = SavedSearchSettings.model_validate({**HOSTED_SETTINGS, **overrides})
    return BaselineSnapshot(revision=1, settings=saved, current_model=project_current_model(saved))


def _seeded(snapshot: BaselineSnapshot) -> DraftStore:
    draft = DraftStore()
    draft.seed(snapshot)
    return draft


class TestNeedsReindex:
    def test_unchanged_draft_needs_nothing(self):
        snapshot = _snapshot()
        decision = needs_reindex(snapshot, _seeded(snapshot))
        assert decision.required is False
        assert decision.reasons == []

    def test_switching_to_cloud_model(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_selected_provider(CloudModel.model_validate(COHERE_MODEL))
        decision = needs_reindex(snapshot, draft)
        assert decision.required is True
        assert decision.reasons == [CHANGED_PROVIDER_REASON]

    def test_equal_but_distinct_model_counts_as_change(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_selected_provider(snapshot.current_model.model_copy())
        assert needs_reindex(snapshot, draft).reasons == [CHANGED_PROVIDER_REASON]

    def test_reselecting_live_object_is_no_change(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_selected_provider(snapshot.current_model)
        assert needs_reindex(snapshot, draft).required is False

    def test_multipass_toggle(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_advanced("multipass_indexing", False)
        decision = needs_reindex(snapshot, draft)
        assert decision.required is True
        assert decision.reasons == [MULTIPASS_REASON]

    def test_both_triggers_in_order(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_advanced("multipass_indexing", False)
        draft.update_selected_provider(HostedModel(model_name="intfloat/e5-base-v2"))
        assert needs_reindex(snapshot, draft).reasons == [
            CHANGED_PROVIDER_REASON,
            MULTIPASS_REASON,
        ]

    @pytest.mark.parametrize(
        "key,value",
        [
            ("model_dim", 1024),
            ("normalize", False),
            ("query_prefix", "query: "),
            ("passage_prefix", "passage: "),
            ("index_name", None),
            ("multilingual_expansion", ["German", "French"]),
            ("disable_rerank_for_streaming", True),
            ("api_url", "http://localhost:9000"),
        ],
    )
    def test_other_advanced_fields_are_hot_swappable(self, key, value):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_advanced(key, value)
        assert needs_reindex(snapshot, draft).required is False

    def test_reranking_changes_are_hot_swappable(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.update_reranking(
            rerank_provider_type=RerankerProvider.cohere,
            rerank_model_name="rerank-english-v3.0",
            rerank_api_key="key",
            num_rerank=50,
        )
        assert needs_reindex(snapshot, draft).required is False

    def test_missing_baseline_requires_reindex(self):
        decision = needs_reindex(None, DraftStore())
        assert decision.required is True
        assert decision.reasons == [CHANGED_PROVIDER_REASON, MULTIPASS_REASON]

    def test_rejects_unknown_model_type(self):
        snapshot = _snapshot()
        draft = _seeded(snapshot)
        draft.selected_provider = {"model_name": "raw dict"}
        with pytest.raises(TypeError):
            needs_reindex(snapshot, draft)
