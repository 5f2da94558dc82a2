from __future__ import annotations

import enum
import logging

from embedding_wizard.config import settings
from embedding_wizard.models.wizard import ConfirmationDialog

logger = logging.getLogger(__name__)

RECOMMENDED_ALTERNATIVES = [
    "Cohere embed-english-v3.0 for cloud-based",
    "Nomic nomic-embed-text-v1 for self-hosted",
]


class GateState(str, enum.Enum):
    ARMED = "armed"
    SUPPRESSED = "suppressed"
    CONSUMED = "consumed"


class QualityGate:
    """Asks once per session before moving on with a low-accuracy model.

    The gate is consumed the first time it fires, whatever the operator
    answers, so a second Continue never re-opens the dialog.
    """

    def __init__(
        self,
        markers: list[str] | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.markers = list(markers if markers is not None else settings.low_accuracy_markers)
        if enabled is None:
            enabled = settings.low_accuracy_warning
        self.state = GateState.ARMED if enabled and self.markers else GateState.SUPPRESSED

    def is_low_accuracy(self, model_name: str) -> bool:
        return any(marker in model_name for marker in self.markers)

    def check(self, model_name: str) -> ConfirmationDialog | None:
        if self.state is not GateState.ARMED or not self.is_low_accuracy(model_name):
            return None
        self.state = GateState.CONSUMED
        logger.info("Low-accuracy model selected: %s", model_name)
        return build_dialog(model_name)


def build_dialog(model_name: str) -> ConfirmationDialog:
    return ConfirmationDialog(
        model_name=model_name,
        title=f"Are you sure you want to select {model_name}?",
        message=f"{model_name} is a lower accuracy model.",
        recommendations=list(RECOMMENDED_ALTERNATIVES),
        confirm_label=f"Continue with {model_name}",
    )
