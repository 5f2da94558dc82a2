from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from embedding_wizard.models.search_settings import parse_embedding_model
from embedding_wizard.models.wizard import (
    AdvancedUpdate,
    ModelTabUpdate,
    ProviderSelection,
    RerankingUpdate,
    SessionEvents,
    SubmissionResult,
    WizardView,
)
from embedding_wizard.services.streaming.sse import session_event_stream
from embedding_wizard.services.wizard import WizardController
from embedding_wizard.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wizard/sessions", tags=["wizard"])


def _store(request: Request) -> SessionStore:
    return request.app.state.sessions


def _session(request: Request, session_id: str) -> WizardController:
    session = _store(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("", status_code=201)
async def open_session(request: Request) -> WizardView:
    session = _store(request).create()
    return session.view()


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str) -> WizardView:
    return _session(request, session_id).view()


@router.delete("/{session_id}")
async def close_session(request: Request, session_id: str) -> dict:
    """Navigate away: the draft is discarded."""
    if not _store(request).discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "closed", "session_id": session_id}


# ── Draft edits ─────────────────────────────────────────────────


@router.put("/{session_id}/provider")
async def select_provider(request: Request, session_id: str, req: ProviderSelection) -> WizardView:
    session = _session(request, session_id)
    session.select_provider(parse_embedding_model(req.as_payload()))
    return session.view()


@router.patch("/{session_id}/advanced")
async def update_advanced(request: Request, session_id: str, req: AdvancedUpdate) -> WizardView:
    session = _session(request, session_id)
    session.update_advanced(req.key, req.value)
    return session.view()


@router.patch("/{session_id}/reranking")
async def update_reranking(
    request: Request, session_id: str, req: RerankingUpdate
) -> WizardView:
    session = _session(request, session_id)
    session.update_reranking(**req.as_fields())
    return session.view()


@router.put("/{session_id}/model-tab")
async def set_model_tab(request: Request, session_id: str, req: ModelTabUpdate) -> WizardView:
    session = _session(request, session_id)
    session.set_model_tab(req.model_tab)
    return session.view()


# ── Navigation ──────────────────────────────────────────────────


@router.post("/{session_id}/continue")
async def continue_step(request: Request, session_id: str) -> WizardView:
    session = _session(request, session_id)
    session.continue_()
    return session.view()


@router.post("/{session_id}/previous")
async def previous_step(request: Request, session_id: str) -> WizardView:
    session = _session(request, session_id)
    session.previous()
    return session.view()


@router.post("/{session_id}/advanced-step")
async def advanced_step(request: Request, session_id: str) -> WizardView:
    session = _session(request, session_id)
    session.advanced()
    return session.view()


@router.post("/{session_id}/dialog/cancel")
async def cancel_dialog(request: Request, session_id: str) -> WizardView:
    session = _session(request, session_id)
    session.cancel_dialog()
    return session.view()


@router.post("/{session_id}/dialog/confirm")
async def confirm_dialog(request: Request, session_id: str) -> WizardView:
    session = _session(request, session_id)
    session.confirm_dialog()
    return session.view()


# ── Submission ──────────────────────────────────────────────────


@router.post("/{session_id}/submit")
async def submit(request: Request, session_id: str) -> SubmissionResult:
    return await _session(request, session_id).submit()


@router.post("/{session_id}/update")
async def update_search(request: Request, session_id: str) -> SubmissionResult:
    return await _session(request, session_id).update_search()


@router.post("/{session_id}/reindex")
async def reindex(request: Request, session_id: str) -> SubmissionResult:
    """The Re-index button: only offered while a re-index is required."""
    session = _session(request, session_id)
    if not session.decision().required:
        raise HTTPException(status_code=409, detail="No re-index required")
    return await session.submit()


@router.get("/{session_id}/events")
async def get_events(request: Request, session_id: str) -> SessionEvents:
    return _session(request, session_id).events


@router.get("/{session_id}/events/stream")
async def stream_events(request: Request, session_id: str):
    _session(request, session_id)
    return EventSourceResponse(session_event_stream(session_id, _store(request)))
