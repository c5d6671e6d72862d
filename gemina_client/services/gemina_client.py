"""HTTP client for the Gemina document-extraction API.

Each call returns a WebResponse whatever the status code; interpreting the
status is left to the caller (see ``poller``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from gemina_client.core.config import Settings, get_settings
from gemina_client.core.exceptions import ConfigurationError
from gemina_client.models.schemas import WebResponse
from gemina_client.utils.file_handler import read_as_base64


class GeminaClient:
    """Thin async wrapper around the three Gemina endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        if not self._settings.api_key or not self._settings.client_id:
            raise ConfigurationError("Both api_key and client_id must be configured")
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def initialize(self) -> None:
        """Create the async HTTP client unless one was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
            self._owns_client = True
        logger.debug(f"Gemina client initialized: base={self._settings.api_base}")

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GeminaClient:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ── Headers / payloads ──

    def _auth_header(self) -> dict[str, str]:
        # "Basic" followed by the raw api key, not a base64 user:password pair
        return {"Authorization": f"Basic {self._settings.api_key}"}

    def _json_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._auth_header(),
        }

    def _base_payload(self, external_id: str) -> dict[str, Any]:
        return {
            "client_id": self._settings.client_id,
            "external_id": external_id,
            "use_llm": self._settings.use_llm,
        }

    # ── Endpoints ──

    async def upload_image(self, path: Path, external_id: str) -> WebResponse:
        """Upload a local image, base64-encoded, for extraction."""
        payload = self._base_payload(external_id)
        payload["file"] = await read_as_base64(Path(path))

        logger.info(f"Uploading {Path(path).name} as {external_id}")
        return await self._send("POST", self._settings.upload_url, json=payload,
                                headers=self._json_headers())

    async def upload_by_url(self, url: str, external_id: str) -> WebResponse:
        """Ask the service to fetch and extract a remote image."""
        payload = self._base_payload(external_id)
        payload["url"] = url

        logger.info(f"Uploading {url} as {external_id}")
        return await self._send("POST", self._settings.upload_web_url, json=payload,
                                headers=self._json_headers())

    async def fetch_prediction(self, external_id: str) -> WebResponse:
        """Fetch the prediction for a previously uploaded document."""
        headers = {"Accept": "application/json", **self._auth_header()}
        return await self._send("GET", self._settings.prediction_url(external_id),
                                headers=headers)

    async def _send(self, method: str, url: str, **kwargs: Any) -> WebResponse:
        if self._client is None:
            await self.initialize()

        # httpx.TransportError propagates to the caller
        resp = await self._client.request(method, url, **kwargs)
        logger.debug(f"{method} {url} -> {resp.status_code}")
        return WebResponse.from_http(resp.status_code, resp.text)
