from __future__ import annotations

import logging
from typing import Any

import httpx

from embedding_wizard.config import settings
from embedding_wizard.models.search_settings import SavedSearchSettings

logger = logging.getLogger(__name__)

CURRENT_SETTINGS_PATH = "/search-settings/get-current-search-settings"
SECONDARY_SETTINGS_PATH = "/search-settings/get-secondary-search-settings"
UPDATE_INFERENCE_SETTINGS_PATH = "/search-settings/update-inference-settings"
SET_NEW_SEARCH_SETTINGS_PATH = "/search-settings/set-new-search-settings"


class SearchSettingsClient:
    """Search settings backend over its REST API via httpx."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base,
            timeout=self._timeout,
            transport=self._transport,
        )

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _get_settings(self, path: str) -> SavedSearchSettings | None:
        async with self._client() as client:
            resp = await client.get(path)
            resp.raise_for_status()
            data = resp.json()
        if data is None:
            return None
        return SavedSearchSettings.model_validate(data)

    async def get_current_settings(self) -> SavedSearchSettings | None:
        return await self._get_settings(CURRENT_SETTINGS_PATH)

    async def get_secondary_settings(self) -> SavedSearchSettings | None:
        """Settings of a model switch that is still re-indexing, if any."""
        return await self._get_settings(SECONDARY_SETTINGS_PATH)

    async def update_inference_settings(self, payload: dict[str, Any]) -> httpx.Response:
        async with self._client() as client:
            return await client.post(
                UPDATE_INFERENCE_SETTINGS_PATH, headers=self._headers(), json=payload
            )

    async def set_new_search_settings(self, payload: dict[str, Any]) -> httpx.Response:
        async with self._client() as client:
            return await client.post(
                SET_NEW_SEARCH_SETTINGS_PATH, headers=self._headers(), json=payload
            )
