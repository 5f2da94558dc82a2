"""Three-step embedding model wizard: model -> reranking -> advanced.

The wizard blocks on the live baseline: until a model is selected and the
current model fetch is ready, no step body is shown and every action is
refused. Submission is available from the reranking and advanced steps.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from embedding_wizard.errors import BaselineUnavailableError, InvalidTransitionError
from embedding_wizard.models.search_settings import BaselineSnapshot, EmbeddingModel
from embedding_wizard.models.wizard import (
    AdvancedStepBody,
    ConfirmationDialog,
    Error,
    ModelStepBody,
    ModelTab,
    Ready,
    ReindexDecision,
    RerankingStepBody,
    SessionEvents,
    SubmissionResult,
    ViewStatus,
    WizardAction,
    WizardStep,
    WizardView,
)
from embedding_wizard.services.baseline_sync import BaselineSync
from embedding_wizard.services.draft_store import DraftStore
from embedding_wizard.services.persistence import PersistenceGateway
from embedding_wizard.services.quality_gate import QualityGate
from embedding_wizard.services.reindex_diff import needs_reindex

logger = logging.getLogger(__name__)

BASELINE_ERROR_TITLE = "Failed to fetch embedding model status"
REINDEX_LABEL = "Re-index"
UPDATE_LABEL = "Update Search"

_SUBMIT_STEPS = (WizardStep.RERANKING, WizardStep.ADVANCED)


class WizardController:
    def __init__(
        self,
        baseline: BaselineSync,
        session_id: str | None = None,
        gate: QualityGate | None = None,
        gateway: PersistenceGateway | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self.baseline = baseline
        self.draft = DraftStore()
        self.gate = gate or QualityGate()
        self.gateway = gateway or PersistenceGateway(baseline, events=SessionEvents())
        self.step = WizardStep.MODEL_SELECT
        self.dialog: ConfirmationDialog | None = None
        self.model_tab: ModelTab | None = None
        baseline.subscribe(self._on_baseline)

    @property
    def events(self) -> SessionEvents:
        return self.gateway.events

    def close(self) -> None:
        """Stop following the baseline; the draft is dropped with the session."""
        self.baseline.unsubscribe(self._on_baseline)
        task = self.gateway.redirect_task
        if task is not None and not task.done():
            task.cancel()

    def _on_baseline(self, snapshot: BaselineSnapshot) -> None:
        if self.draft.reconcile(snapshot):
            logger.debug(
                "Session %s draft seeded from revision %d", self.session_id, snapshot.revision
            )

    # ── Guards ──────────────────────────────────────────────────

    @property
    def awaiting_baseline(self) -> bool:
        return self.draft.selected_provider is None or not isinstance(
            self.baseline.current_model(), Ready
        )

    def _require_baseline(self) -> None:
        if self.awaiting_baseline:
            raise BaselineUnavailableError("Waiting for the current search settings")

    def _require_step(self, action: WizardAction, *steps: WizardStep) -> None:
        self._require_baseline()
        if self.dialog is not None:
            raise InvalidTransitionError(f"Cannot {action.value} while a confirmation is open")
        if self.step not in steps:
            raise InvalidTransitionError(
                f"Cannot {action.value} from step {self.step.value}"
            )

    # ── Draft edits ─────────────────────────────────────────────

    def select_provider(self, model: EmbeddingModel) -> None:
        self._require_baseline()
        self.draft.update_selected_provider(model)

    def update_advanced(self, key: str, value: Any) -> None:
        self._require_baseline()
        self.draft.update_advanced(key, value)

    def update_reranking(self, **fields: Any) -> None:
        self._require_baseline()
        self.draft.update_reranking(**fields)

    def set_model_tab(self, model_tab: ModelTab | None) -> None:
        self.model_tab = model_tab

    # ── Navigation ──────────────────────────────────────────────

    def continue_(self) -> None:
        self._require_step(WizardAction.CONTINUE, WizardStep.MODEL_SELECT)
        dialog = self.gate.check(self.draft.selected_provider.model_name)
        if dialog is not None:
            self.dialog = dialog
            return
        self.step = WizardStep.RERANKING

    def cancel_dialog(self) -> None:
        if self.dialog is None:
            raise InvalidTransitionError("No confirmation is open")
        self.dialog = None

    def confirm_dialog(self) -> None:
        if self.dialog is None:
            raise InvalidTransitionError("No confirmation is open")
        self.dialog = None
        self.step = WizardStep.RERANKING

    # Clicking outside the dialog
    dismiss_dialog = cancel_dialog

    def previous(self) -> None:
        self._require_step(WizardAction.PREVIOUS, WizardStep.RERANKING, WizardStep.ADVANCED)
        self.step = WizardStep(self.step.value - 1)

    def advanced(self) -> None:
        self._require_step(WizardAction.ADVANCED, WizardStep.RERANKING)
        self.step = WizardStep.ADVANCED

    # ── Submission ──────────────────────────────────────────────

    def decision(self) -> ReindexDecision:
        return needs_reindex(self.baseline.snapshot, self.draft)

    async def submit(self) -> SubmissionResult:
        """Re-index when the draft needs it, otherwise a plain update."""
        self._require_step(WizardAction.SUBMIT, *_SUBMIT_STEPS)
        decision = self.decision()
        if decision.required:
            logger.info(
                "Session %s re-indexing: %s", self.session_id, " ".join(decision.reasons)
            )
            return await self.gateway.reindex(self.draft)
        return await self.gateway.update_search_settings(self.draft)

    async def update_search(self) -> SubmissionResult:
        self._require_step(WizardAction.UPDATE, *_SUBMIT_STEPS)
        return await self.gateway.update_search_settings(self.draft)

    # ── View ────────────────────────────────────────────────────

    def view(self) -> WizardView:
        state = self.baseline.current_model()
        if isinstance(state, Error):
            return WizardView(
                session_id=self.session_id,
                status=ViewStatus.ERROR,
                error_title=BASELINE_ERROR_TITLE,
                error_detail=state.detail,
            )
        if self.awaiting_baseline:
            return WizardView(session_id=self.session_id, status=ViewStatus.LOADING)

        decision = self.decision()
        view = WizardView(
            session_id=self.session_id,
            status=ViewStatus.READY,
            step=self.step,
            body=self._body(state.value),
            dialog=self.dialog,
            reindex=decision,
            actions=self._actions(),
        )
        if self.step in _SUBMIT_STEPS:
            view.submit_label = REINDEX_LABEL if decision.required else UPDATE_LABEL
        return view

    def _body(self, current_model: EmbeddingModel):
        if self.step is WizardStep.MODEL_SELECT:
            return ModelStepBody(
                selected_provider=self.draft.selected_provider,
                current_model=current_model,
            )
        if self.step is WizardStep.RERANKING:
            model_tab = self.model_tab
            if not self.draft.original_reranking.rerank_model_name and model_tab is None:
                model_tab = ModelTab.cloud
            return RerankingStepBody(
                current_reranking=self.draft.reranking,
                original_reranking=self.draft.original_reranking,
                model_tab=model_tab,
            )
        return AdvancedStepBody(
            advanced=self.draft.advanced,
            num_rerank=self.draft.reranking.num_rerank,
        )

    def _actions(self) -> list[WizardAction]:
        if self.dialog is not None:
            return [WizardAction.CANCEL_DIALOG, WizardAction.CONFIRM_DIALOG]
        if self.step is WizardStep.MODEL_SELECT:
            return [WizardAction.CONTINUE]
        actions = [WizardAction.PREVIOUS, WizardAction.SUBMIT, WizardAction.UPDATE]
        if self.step is WizardStep.RERANKING:
            actions.append(WizardAction.ADVANCED)
        return actions
