from embedding_wizard.models.search_settings import (
    AdvancedConfig,
    BaselineSnapshot,
    CloudModel,
    EmbeddingModel,
    HostedModel,
    RerankerProvider,
    RerankingConfig,
    SavedSearchSettings,
)
from embedding_wizard.models.wizard import (
    ConfirmationDialog,
    ReindexDecision,
    SessionEvents,
    WizardStep,
    WizardView,
)

__all__ = [
    "AdvancedConfig",
    "BaselineSnapshot",
    "CloudModel",
    "ConfirmationDialog",
    "EmbeddingModel",
    "HostedModel",
    "ReindexDecision",
    "RerankerProvider",
    "RerankingConfig",
    "SavedSearchSettings",
    "SessionEvents",
    "WizardStep",
    "WizardView",
]
