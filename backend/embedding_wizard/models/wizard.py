from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from embedding_wizard.models.search_settings import (
    AdvancedConfig,
    CloudModel,
    HostedModel,
    RerankerProvider,
    RerankingConfig,
)

T = TypeVar("T")


# ── Fetch state ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Error:
    detail: str


@dataclass(frozen=True)
class Ready(Generic[T]):
    value: T


FetchState = Union[Loading, Error, Ready]


# ── Wizard state ────────────────────────────────────────────────


class WizardStep(int, enum.Enum):
    MODEL_SELECT = 0
    RERANKING = 1
    ADVANCED = 2


class ViewStatus(str, enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class WizardAction(str, enum.Enum):
    CONTINUE = "continue"
    PREVIOUS = "previous"
    ADVANCED = "advanced"
    CANCEL_DIALOG = "cancel_dialog"
    CONFIRM_DIALOG = "confirm_dialog"
    SUBMIT = "submit"
    UPDATE = "update"


class ModelTab(str, enum.Enum):
    open = "open"
    cloud = "cloud"


class ReindexDecision(BaseModel):
    required: bool
    reasons: list[str] = Field(default_factory=list)


class ConfirmationDialog(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    title: str
    message: str
    recommendations: list[str] = Field(default_factory=list)
    cancel_label: str = "Cancel update"
    confirm_label: str


# ── Session events ──────────────────────────────────────────────


class NotificationType(str, enum.Enum):
    success = "success"
    error = "error"


class Notification(BaseModel):
    message: str
    type: NotificationType
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Alert(BaseModel):
    """Blocking message the operator has to acknowledge."""

    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Redirect(BaseModel):
    url: str
    scheduled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    fired: bool = False


class SessionEvents(BaseModel):
    notifications: list[Notification] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    redirect: Redirect | None = None

    def notify(self, message: str, type: NotificationType) -> Notification:
        notification = Notification(message=message, type=type)
        self.notifications.append(notification)
        return notification

    def alert(self, message: str) -> Alert:
        alert = Alert(message=message)
        self.alerts.append(alert)
        return alert


class SubmissionResult(BaseModel):
    action: str
    success: bool
    update_succeeded: bool = False
    replace_attempted: bool = False
    replace_succeeded: bool = False
    events: SessionEvents = Field(default_factory=SessionEvents)


# ── Views ───────────────────────────────────────────────────────


class ModelStepBody(BaseModel):
    selected_provider: CloudModel | HostedModel
    current_model: CloudModel | HostedModel


class RerankingStepBody(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    current_reranking: RerankingConfig
    original_reranking: RerankingConfig
    model_tab: ModelTab | None = None


class AdvancedStepBody(BaseModel):
    advanced: AdvancedConfig
    num_rerank: int


class WizardView(BaseModel):
    session_id: str
    status: ViewStatus
    error_title: str | None = None
    error_detail: str | None = None
    step: WizardStep | None = None
    body: ModelStepBody | RerankingStepBody | AdvancedStepBody | None = None
    dialog: ConfirmationDialog | None = None
    reindex: ReindexDecision | None = None
    submit_label: str | None = None
    actions: list[WizardAction] = Field(default_factory=list)


# ── Requests ────────────────────────────────────────────────────


class ProviderSelection(BaseModel):
    """Body of a model pick: a cloud model when provider_type is set."""

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    provider_type: str | None = None
    model_name: str

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AdvancedUpdate(BaseModel):
    key: str
    value: Any = None


class RerankingUpdate(BaseModel):
    """Partial reranking edit: only the fields sent are applied."""

    model_config = ConfigDict(extra="forbid")

    rerank_api_key: str | None = None
    num_rerank: int | None = None
    rerank_provider_type: RerankerProvider | None = None
    rerank_model_name: str | None = None

    def as_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class ModelTabUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_tab: ModelTab | None = None
