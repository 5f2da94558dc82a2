from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from embedding_wizard.config import settings
from embedding_wizard.models.wizard import Error, Loading, Ready

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/health/detail")
async def health_detail(request: Request) -> dict:
    """Detailed health check for the baseline poller and sessions."""
    return {
        "backend": {"status": "ok"},
        "baseline": _check_baseline(request),
        "sessions": {"open": len(request.app.state.sessions)},
    }


def _check_baseline(request: Request) -> dict:
    baseline = request.app.state.baseline
    state = baseline.current_settings()
    result = {
        "polling": baseline.running,
        "poll_interval": baseline.poll_interval,
        "api_base_url": settings.api_base_url,
    }
    if isinstance(state, Loading):
        result["status"] = "loading"
    elif isinstance(state, Error):
        result["status"] = "error"
        result["message"] = state.detail
    elif isinstance(state, Ready):
        snapshot = baseline.snapshot
        result.update(
            {
                "status": "ready",
                "revision": snapshot.revision,
                "model_name": state.value.model_name,
                "provider_type": state.value.provider_type,
                "fetched_at": snapshot.fetched_at.isoformat(),
            }
        )
    return result
