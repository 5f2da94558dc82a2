"""Models for search settings: the live baseline, the draft sub-configurations
and the embedding model sum type."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class RerankerProvider(str, Enum):
    cohere = "cohere"


class AdvancedConfig(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str = ""
    model_dim: int = 0
    normalize: bool = False
    query_prefix: str = ""
    passage_prefix: str = ""
    index_name: str | None = ""
    multipass_indexing: bool = True
    multilingual_expansion: list[str] = Field(default_factory=list)
    disable_rerank_for_streaming: bool = False
    api_url: str | None = None


class RerankingConfig(BaseModel):
    rerank_api_key: str = ""
    num_rerank: int = 0
    rerank_provider_type: RerankerProvider | None = None
    rerank_model_name: str = ""


class SavedSearchSettings(AdvancedConfig, RerankingConfig):
    """Server-persisted configuration currently considered live."""

    provider_type: str | None = None

    def advanced(self) -> AdvancedConfig:
        return AdvancedConfig(
            **{name: getattr(self, name) for name in AdvancedConfig.model_fields}
        )

    def reranking(self) -> RerankingConfig:
        return RerankingConfig(
            **{name: getattr(self, name) for name in RerankingConfig.model_fields}
        )


class CloudModel(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    provider_type: str
    model_name: str
    model_dim: int = 0
    normalize: bool = False
    query_prefix: str = ""
    passage_prefix: str = ""
    api_url: str | None = None
    description: str | None = None
    pricing_per_token: float | None = None


class HostedModel(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    model_dim: int = 0
    normalize: bool = False
    query_prefix: str = ""
    passage_prefix: str = ""
    description: str | None = None
    link: str | None = None


EmbeddingModel = Union[CloudModel, HostedModel]


def parse_embedding_model(data: dict[str, Any]) -> EmbeddingModel:
    """Build the right model class from a wire object.

    A non-empty ``provider_type`` marks a cloud model; anything else is
    served by the locally hosted model server.
    """
    if data.get("provider_type"):
        return CloudModel.model_validate(data)
    return HostedModel.model_validate(data)


def project_current_model(settings: SavedSearchSettings) -> EmbeddingModel:
    """Read the active embedding model out of a settings payload."""
    common = {
        "model_name": settings.model_name,
        "model_dim": settings.model_dim,
        "normalize": settings.normalize,
        "query_prefix": settings.query_prefix,
        "passage_prefix": settings.passage_prefix,
    }
    if settings.provider_type:
        return CloudModel(
            provider_type=settings.provider_type,
            api_url=settings.api_url,
            **common,
        )
    return HostedModel(**common)


@dataclass(frozen=True)
class BaselineSnapshot:
    """One successful read of the live settings, with both projections.

    Both come from the same response body, so they never disagree.
    """

    revision: int
    settings: SavedSearchSettings
    current_model: EmbeddingModel
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
