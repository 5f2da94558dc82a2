from __future__ import annotations

import copy
from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from httpx import ASGITransport, AsyncClient

from embedding_wizard.main import create_app
from embedding_wizard.services.baseline_sync import BaselineSync
from embedding_wizard.services.persistence import PersistenceGateway
from embedding_wizard.services.quality_gate import QualityGate
from embedding_wizard.services.settings_client import (
    CURRENT_SETTINGS_PATH,
    SECONDARY_SETTINGS_PATH,
    SET_NEW_SEARCH_SETTINGS_PATH,
    UPDATE_INFERENCE_SETTINGS_PATH,
    SearchSettingsClient,
)
from embedding_wizard.services.wizard import WizardController

BACKEND_URL = "http://backend"

HOSTED_SETTINGS: dict[str, Any] = {
    "model_name": "nomic-embed-text-v1",
    "model_dim": 768,
    "normalize": True,
    "query_prefix": "search_query: ",
    "passage_prefix": "search_document: ",
    "index_name": "danswer_chunk_nomic_embed_text_v1",
    "multipass_indexing": True,
    "multilingual_expansion": [],
    "disable_rerank_for_streaming": False,
    "api_url": None,
    "provider_type": None,
    "rerank_api_key": "",
    "num_rerank": 20,
    "rerank_provider_type": None,
    "rerank_model_name": "",
}

COHERE_MODEL: dict[str, Any] = {
    "provider_type": "Cohere Embed",
    "model_name": "embed-english-v3.0",
    "model_dim": 1024,
    "normalize": False,
    "query_prefix": "",
    "passage_prefix": "",
    "description": "Cohere's English embedding model",
}


class FakeSettingsBackend:
    """Search settings service double, served over ASGI."""

    def __init__(self, current: dict[str, Any] | None = None) -> None:
        self.current = copy.deepcopy(current)
        self.secondary: dict[str, Any] | None = None
        self.current_status = 200
        self.update_status = 200
        self.update_body = ""
        self.replace_status = 200
        self.replace_body = ""
        self.register_secondary = True
        self.apply_updates = False
        self.calls: list[tuple[str, Any]] = []
        self.app = self._build_app()

    def posted(self, name: str) -> list[dict[str, Any]]:
        return [payload for call, payload in self.calls if call == name]

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get(CURRENT_SETTINGS_PATH)
        async def current_settings():
            self.calls.append(("current", None))
            if self.current_status != 200:
                return PlainTextResponse("settings unavailable", status_code=self.current_status)
            return JSONResponse(self.current)

        @app.get(SECONDARY_SETTINGS_PATH)
        async def secondary_settings():
            self.calls.append(("secondary", None))
            return JSONResponse(self.secondary)

        @app.post(UPDATE_INFERENCE_SETTINGS_PATH)
        async def update_inference_settings(request: Request):
            payload = await request.json()
            self.calls.append(("update", payload))
            if self.update_status != 200:
                return PlainTextResponse(self.update_body, status_code=self.update_status)
            if self.apply_updates:
                self.current = {**self.current, **payload}
            return JSONResponse({"status": "ok"})

        @app.post(SET_NEW_SEARCH_SETTINGS_PATH)
        async def set_new_search_settings(request: Request):
            payload = await request.json()
            self.calls.append(("replace", payload))
            if self.replace_status != 200:
                return PlainTextResponse(self.replace_body, status_code=self.replace_status)
            if self.register_secondary:
                self.secondary = payload
            return JSONResponse({"id": 2})

        return app


@pytest.fixture
def backend() -> FakeSettingsBackend:
    return FakeSettingsBackend(HOSTED_SETTINGS)


@pytest.fixture
def settings_client(backend: FakeSettingsBackend) -> SearchSettingsClient:
    return SearchSettingsClient(
        base_url=BACKEND_URL, transport=httpx.ASGITransport(app=backend.app)
    )


@pytest.fixture
def baseline(settings_client: SearchSettingsClient) -> BaselineSync:
    return BaselineSync(client=settings_client, poll_interval=0.01)


@pytest.fixture
async def ready_baseline(baseline: BaselineSync) -> BaselineSync:
    await baseline.refresh()
    return baseline


def make_gateway(baseline: BaselineSync) -> PersistenceGateway:
    return PersistenceGateway(baseline, redirect_delay=0.2, settle_interval=0.01)


@pytest.fixture
def gateway(baseline: BaselineSync) -> PersistenceGateway:
    return make_gateway(baseline)


@pytest.fixture
async def wizard(ready_baseline: BaselineSync) -> WizardController:
    controller = WizardController(
        ready_baseline,
        gate=QualityGate(markers=["e5"], enabled=True),
        gateway=make_gateway(ready_baseline),
    )
    yield controller
    controller.close()


@pytest.fixture
def app(baseline: BaselineSync) -> FastAPI:
    return create_app(baseline=baseline, poll_baseline=False)


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
